"""Payroll period helpers.

A period is a calendar month written as ``YYYY-MM``.
"""

from __future__ import annotations

import calendar
import re
from datetime import date

# ASCII digits only: other Unicode digits would parse to the same month under a different key
_PERIOD_RE = re.compile(r"^([0-9]{4})-([0-9]{2})$")


class InvalidPeriodError(ValueError):
    """Raised when a period string is not a valid ``YYYY-MM`` month."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(f"Invalid payroll period '{period}', expected YYYY-MM")


def parse_period(period: str) -> tuple[int, int]:
    """Return (year, month) for a period, raising InvalidPeriodError."""
    match = _PERIOD_RE.match(period or "")
    if match is None:
        raise InvalidPeriodError(period)
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidPeriodError(period)
    return year, month


def validate_period(period: str) -> str:
    parse_period(period)
    return period


def period_bounds(period: str) -> tuple[date, date]:
    """First and last calendar day of the period (inclusive)."""
    year, month = parse_period(period)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def period_label(period: str) -> str:
    """Human label used on payslips, e.g. ``Tháng 03, 2024``."""
    year, month = parse_period(period)
    return f"Tháng {month:02d}, {year}"
