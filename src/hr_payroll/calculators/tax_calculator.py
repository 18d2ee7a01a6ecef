"""Progressive personal income tax."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from hr_payroll.calculators.types import ZERO, TaxBracket


class InvalidTaxScheduleError(ValueError):
    """Raised when a bracket schedule is not contiguous and ascending."""


# Vietnamese monthly personal income tax schedule.
VN_PIT_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("0"), Decimal("5000000"), Decimal("0.05")),
    TaxBracket(Decimal("5000000"), Decimal("10000000"), Decimal("0.10")),
    TaxBracket(Decimal("10000000"), Decimal("18000000"), Decimal("0.15")),
    TaxBracket(Decimal("18000000"), Decimal("32000000"), Decimal("0.20")),
    TaxBracket(Decimal("32000000"), Decimal("52000000"), Decimal("0.25")),
    TaxBracket(Decimal("52000000"), Decimal("80000000"), Decimal("0.30")),
    TaxBracket(Decimal("80000000"), None, Decimal("0.35")),
)


class TaxCalculator:
    """Calculates tax with marginal (progressive) brackets.

    Each bracket taxes only the part of the income that falls between its
    ``min_amount`` and ``max_amount``. The result is not rounded; callers
    round to a whole currency unit.
    """

    def __init__(self, brackets: Sequence[TaxBracket] = VN_PIT_BRACKETS):
        self.brackets = self._validate(brackets)

    @staticmethod
    def _validate(brackets: Sequence[TaxBracket]) -> tuple[TaxBracket, ...]:
        if not brackets:
            raise InvalidTaxScheduleError("Tax schedule needs at least one bracket")

        ordered = tuple(sorted(brackets, key=lambda b: b.min_amount))
        if ordered[0].min_amount != ZERO:
            raise InvalidTaxScheduleError("First bracket must start at 0")

        for current, following in zip(ordered, ordered[1:]):
            if current.max_amount is None or current.max_amount != following.min_amount:
                raise InvalidTaxScheduleError(
                    f"Bracket starting at {following.min_amount} does not follow "
                    f"bracket ending at {current.max_amount}"
                )
        for bracket in ordered:
            if bracket.rate < 0:
                raise InvalidTaxScheduleError(f"Negative rate {bracket.rate}")
            if bracket.max_amount is not None and bracket.max_amount <= bracket.min_amount:
                raise InvalidTaxScheduleError(
                    f"Empty bracket {bracket.min_amount}-{bracket.max_amount}"
                )
        if ordered[-1].max_amount is not None:
            raise InvalidTaxScheduleError("Last bracket must be open-ended")
        return ordered

    def calculate(self, taxable_income: Decimal) -> Decimal:
        """Tax owed on ``taxable_income``; zero for zero or negative income."""
        income = Decimal(taxable_income)
        if income <= 0:
            return ZERO

        total_tax = ZERO
        for bracket in self.brackets:
            if income <= bracket.min_amount:
                break
            upper = income if bracket.max_amount is None else min(income, bracket.max_amount)
            total_tax += (upper - bracket.min_amount) * bracket.rate

        return total_tax


_default_calculator = TaxCalculator()


def compute_tax(taxable_income: Decimal | int) -> Decimal:
    """Vietnamese personal income tax on a monthly taxable income."""
    return _default_calculator.calculate(Decimal(taxable_income))
