"""Payroll core services."""

from hr_payroll.services.bank_export import BankExportService, UnsupportedBankFormatError
from hr_payroll.services.config_service import InvalidPayrollConfigError, PayrollConfigService
from hr_payroll.services.locking_service import PayrollRunInProgressError, PeriodLock
from hr_payroll.services.payroll_runner import (
    PayrollRunner,
    PayrollRunNotFoundError,
    PayrollRunSummary,
    PayrollRunTimeoutError,
)
from hr_payroll.services.repository import EmployeeRecord, PayrollRepository
from hr_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)

__all__ = [
    "BankExportService",
    "UnsupportedBankFormatError",
    "InvalidPayrollConfigError",
    "PayrollConfigService",
    "PayrollRunInProgressError",
    "PeriodLock",
    "PayrollRunner",
    "PayrollRunNotFoundError",
    "PayrollRunSummary",
    "PayrollRunTimeoutError",
    "EmployeeRecord",
    "PayrollRepository",
    "InvalidTransitionError",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
]
