"""Salary deduction for approved unpaid leave."""

from __future__ import annotations

from decimal import Decimal

from hr_payroll.calculators.types import WORKING_DAYS_PER_MONTH, ZERO, round_cents


def daily_rate(base_salary: Decimal) -> Decimal:
    return Decimal(base_salary) / WORKING_DAYS_PER_MONTH


def compute_unpaid_deduction(base_salary: Decimal, unpaid_days: Decimal) -> Decimal:
    """Deduction for unpaid leave days.

    Not rounded to whole units: the fractional part is kept at cent precision
    so that net salary stays exactly gross minus the stored components.
    """
    days = Decimal(unpaid_days)
    if days <= 0:
        return ZERO
    return round_cents(daily_rate(base_salary) * days)
