"""HR payroll core: payslip calculation and monthly payroll runs."""

__version__ = "0.1.0"
