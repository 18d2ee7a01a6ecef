"""Payroll calculation engine."""

from hr_payroll.calculators.engine import PayslipComputer, compute_payslip
from hr_payroll.calculators.overtime import compute_overtime_pay
from hr_payroll.calculators.tax_calculator import TaxCalculator, compute_tax
from hr_payroll.calculators.types import DEFAULT_RATES, PayrollRates, PayslipFields, TaxBracket
from hr_payroll.calculators.unpaid_leave import compute_unpaid_deduction

__all__ = [
    "PayslipComputer",
    "compute_payslip",
    "compute_overtime_pay",
    "TaxCalculator",
    "compute_tax",
    "DEFAULT_RATES",
    "PayrollRates",
    "PayslipFields",
    "TaxBracket",
    "compute_unpaid_deduction",
]
