"""Single-flight guard for payroll runs of the same period."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class PayrollRunInProgressError(Exception):
    """Raised when a payroll run for the period is already executing."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(f"Payroll run for period {period} is already in progress")


class PeriodLock:
    """Non-blocking per-period lock for runs within this process.

    Runs from other processes are excluded by the conditional claim of the
    payroll_run row (see PayrollRepository.claim_payroll_run).
    """

    def __init__(self) -> None:
        self._held: set[str] = set()

    def is_held(self, period: str) -> bool:
        return period in self._held

    @asynccontextmanager
    async def hold(self, period: str) -> AsyncIterator[None]:
        if period in self._held:
            raise PayrollRunInProgressError(period)
        self._held.add(period)
        try:
            yield
        finally:
            self._held.discard(period)


# Shared by every runner in the process
period_lock = PeriodLock()
