"""ORM models."""

from hr_payroll.models.base import Base, TimestampMixin
from hr_payroll.models.employee import Employee, LeaveRequest, OvertimeRequest
from hr_payroll.models.payroll import PayrollConfig, PayrollRun, Payslip

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "LeaveRequest",
    "OvertimeRequest",
    "PayrollConfig",
    "PayrollRun",
    "Payslip",
]
