"""Overtime pay."""

from __future__ import annotations

from decimal import Decimal

from hr_payroll.calculators.types import WORKING_HOURS_PER_MONTH, ZERO, round_currency


def hourly_rate(base_salary: Decimal) -> Decimal:
    """Hourly rate derived from the monthly base salary."""
    return Decimal(base_salary) / WORKING_HOURS_PER_MONTH


def compute_overtime_pay(
    base_salary: Decimal,
    approved_ot_hours: Decimal,
    ot_multiplier: Decimal,
) -> Decimal:
    """Pay for approved overtime hours, rounded to a whole currency unit."""
    hours = Decimal(approved_ot_hours)
    if hours <= 0:
        return ZERO
    return round_currency(hourly_rate(base_salary) * hours * Decimal(ot_multiplier))
