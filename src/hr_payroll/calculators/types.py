"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
WHOLE_UNIT = Decimal("1")
CENT = Decimal("0.01")

# Policy constants: 22 working days of 8 hours per month.
WORKING_DAYS_PER_MONTH = Decimal("22")
WORKING_HOURS_PER_MONTH = Decimal("176")


def round_currency(amount: Decimal) -> Decimal:
    """Round half-up to a whole currency unit."""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def round_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.05 for 5%


@dataclass(frozen=True)
class PayrollRates:
    """Immutable snapshot of the payroll configuration used for one run.

    Defaults follow Vietnamese statutory values.
    """

    ot_multiplier: Decimal = Decimal("1.5")
    social_insurance_rate: Decimal = Decimal("0.08")
    health_insurance_rate: Decimal = Decimal("0.015")
    # Stored and validated but not deducted from net salary.
    unemployment_insurance_rate: Decimal = Decimal("0.01")
    personal_deduction: Decimal = Decimal("11000000")
    dependent_deduction: Decimal = Decimal("4400000")


DEFAULT_RATES = PayrollRates()


@dataclass
class PayslipFields:
    """Monetary fields of a payslip computed for one employee."""

    base_salary: Decimal
    overtime: Decimal
    social_insurance: Decimal
    health_insurance: Decimal
    taxable_income: Decimal
    tax: Decimal
    deductions: Decimal  # unpaid-leave deduction
    net_salary: Decimal
    bonus: Decimal = ZERO
    allowances: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    unpaid_days: Decimal = ZERO
    warnings: list[str] = field(default_factory=list)

    @property
    def gross_salary(self) -> Decimal:
        return self.base_salary + self.overtime + self.bonus + self.allowances
