"""Payroll runner - computes and stores payslips for every active employee."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.calculators.engine import PayslipComputer
from hr_payroll.calculators.types import ZERO, PayrollRates, PayslipFields
from hr_payroll.config import Settings, get_settings
from hr_payroll.models import PayrollRun
from hr_payroll.models.base import utcnow
from hr_payroll.periods import validate_period
from hr_payroll.services.config_service import PayrollConfigService
from hr_payroll.services.locking_service import (
    PayrollRunInProgressError,
    PeriodLock,
    period_lock,
)
from hr_payroll.services.repository import EmployeeRecord, PayrollRepository
from hr_payroll.services.state_machine import PayrollRunStateMachine, PayrollRunStatus

logger = logging.getLogger(__name__)


class PayrollRunNotFoundError(Exception):
    """Raised when no payroll run exists for a period."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(f"Payroll run for period {period} not found")


class PayrollRunTimeoutError(Exception):
    """Raised when a run exceeds its deadline; the run stays in processing."""

    def __init__(self, period: str, deadline_seconds: float):
        self.period = period
        self.deadline_seconds = deadline_seconds
        super().__init__(
            f"Payroll run for period {period} exceeded its {deadline_seconds:g}s deadline"
        )


@dataclass
class EmployeeIssue:
    """A failure or warning attached to one employee in a run."""

    employee_id: UUID
    employee_code: str
    message: str


@dataclass
class PayrollRunSummary:
    """Result of running payroll for a period."""

    period: str
    status: str
    total_employees: int = 0
    total_gross_salary: Decimal = ZERO
    total_net_salary: Decimal = ZERO
    run_by: str | None = None
    run_at: datetime | None = None
    completed_at: datetime | None = None
    failures: list[EmployeeIssue] = field(default_factory=list)
    warnings: list[EmployeeIssue] = field(default_factory=list)
    reset_paid_payslips: list[UUID] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0


@dataclass
class _EmployeeOutcome:
    employee: EmployeeRecord
    fields: PayslipFields
    previous_status: str | None


class _EmployeeDeadlineExceeded(Exception):
    """Raised between steps once an employee's time budget is spent."""


def _check_deadline(deadline: float) -> None:
    if asyncio.get_running_loop().time() > deadline:
        raise _EmployeeDeadlineExceeded()


class PayrollRunner:
    """Runs payroll for a period.

    Pipeline:
    1) Claim the payroll_run row (status processing) and commit
    2) Load the current payroll configuration
    3) For each active employee: gather approved overtime and unpaid leave,
       compute the payslip and upsert it, committing per employee
    4) Write totals and mark the run completed

    A payslip that cannot be written is rolled back and reported in
    ``summary.failures``; the remaining employees are still processed.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        repository: PayrollRepository | None = None,
        computer: PayslipComputer | None = None,
        lock: PeriodLock | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repository = repository or PayrollRepository(session)
        self.config_service = PayrollConfigService(session, self.repository)
        self.computer = computer or PayslipComputer()
        self.lock = lock or period_lock

    async def run_payroll(self, period: str, initiator: str) -> PayrollRunSummary:
        """Compute and store payslips for every active employee in ``period``."""
        validate_period(period)

        async with self.lock.hold(period):
            rates = await self.config_service.get_rates()
            run = await self._start_run(period, initiator)

            employees = await self.repository.list_active_employees()
            logger.info(
                "Payroll run %s started by %s for %d employee(s)",
                period,
                initiator,
                len(employees),
            )
            if not self.settings.filter_unpaid_leave_by_period:
                logger.warning(
                    "Unpaid leave is deducted across all periods (UNPAID_LEAVE_SCOPE=all_time)"
                )

            summary = PayrollRunSummary(
                period=period,
                status=run.status,
                run_by=run.run_by,
                run_at=run.run_at,
            )

            loop = asyncio.get_running_loop()
            deadline = loop.time() + self.settings.run_deadline_seconds
            outcomes: list[_EmployeeOutcome] = []

            for employee in employees:
                if loop.time() > deadline:
                    logger.error(
                        "Payroll run %s hit its deadline after %d of %d employee(s); "
                        "run left in processing",
                        period,
                        len(outcomes) + len(summary.failures),
                        len(employees),
                    )
                    raise PayrollRunTimeoutError(period, self.settings.run_deadline_seconds)

                outcome = await self._process_employee_safely(employee, period, rates, summary)
                if outcome is not None:
                    outcomes.append(outcome)

            return await self._complete_run(period, outcomes, summary)

    async def get_run(self, period: str) -> PayrollRun:
        validate_period(period)
        run = await self.repository.get_payroll_run(period)
        if run is None:
            raise PayrollRunNotFoundError(period)
        return run

    async def _start_run(self, period: str, initiator: str) -> PayrollRun:
        run = await self.repository.get_or_create_payroll_run(period)
        from_status = run.status
        PayrollRunStateMachine.validate_transition(from_status, PayrollRunStatus.PROCESSING)

        now = utcnow()
        stale_before = now - timedelta(seconds=self.settings.run_deadline_seconds)
        claimed = await self.repository.claim_payroll_run(run, initiator, now, stale_before)
        if not claimed:
            await self.session.rollback()
            raise PayrollRunInProgressError(period)

        if PayrollRunStateMachine.is_restart(from_status, PayrollRunStatus.PROCESSING):
            logger.warning("Restarting stale payroll run %s", period)
        elif PayrollRunStateMachine.is_rerun(from_status, PayrollRunStatus.PROCESSING):
            logger.info("Re-running completed payroll period %s", period)

        await self.session.commit()
        return run

    async def _process_employee_safely(
        self,
        employee: EmployeeRecord,
        period: str,
        rates: PayrollRates,
        summary: PayrollRunSummary,
    ) -> _EmployeeOutcome | None:
        timeout = self.settings.employee_timeout_seconds
        deadline = asyncio.get_running_loop().time() + timeout
        try:
            outcome = await self._process_employee(employee, period, rates, deadline)
            await self.session.commit()
        except _EmployeeDeadlineExceeded:
            await self.session.rollback()
            logger.error(
                "Payslip for employee %s timed out after %gs", employee.employee_code, timeout
            )
            summary.failures.append(
                EmployeeIssue(
                    employee.employee_id,
                    employee.employee_code,
                    f"Timed out after {timeout:g}s",
                )
            )
            return None
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception(
                "Payslip for employee %s could not be written", employee.employee_code
            )
            summary.failures.append(
                EmployeeIssue(employee.employee_id, employee.employee_code, str(e))
            )
            return None

        for message in outcome.fields.warnings:
            logger.warning("Employee %s: %s", employee.employee_code, message)
            summary.warnings.append(
                EmployeeIssue(employee.employee_id, employee.employee_code, message)
            )

        if outcome.previous_status == "paid":
            logger.warning(
                "Paid payslip of employee %s for %s was reset to pending",
                employee.employee_code,
                period,
            )
            summary.reset_paid_payslips.append(employee.employee_id)

        return outcome

    async def _process_employee(
        self,
        employee: EmployeeRecord,
        period: str,
        rates: PayrollRates,
        deadline: float,
    ) -> _EmployeeOutcome:
        # The deadline is checked between statements; a statement in flight is
        # never cancelled, so the session stays usable for the rollback.
        ot_hours = await self.repository.get_approved_overtime_hours(
            employee.employee_id, period
        )
        _check_deadline(deadline)
        unpaid_days = await self.repository.get_approved_unpaid_leave_days(
            employee.employee_id,
            period if self.settings.filter_unpaid_leave_by_period else None,
        )
        _check_deadline(deadline)

        fields = self.computer.compute(employee.base_salary, rates, ot_hours, unpaid_days)
        _, previous_status = await self.repository.upsert_payslip(
            employee.employee_id, period, fields
        )
        _check_deadline(deadline)
        return _EmployeeOutcome(employee, fields, previous_status)

    async def _complete_run(
        self,
        period: str,
        outcomes: list[_EmployeeOutcome],
        summary: PayrollRunSummary,
    ) -> PayrollRunSummary:
        # Re-select: the row may have been expired by a per-employee rollback
        run = await self.repository.get_payroll_run(period)
        if run is None:
            raise PayrollRunNotFoundError(period)
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.COMPLETED)

        total_gross = sum((o.fields.gross_salary for o in outcomes), ZERO)
        total_net = sum((o.fields.net_salary for o in outcomes), ZERO)

        run.status = PayrollRunStatus.COMPLETED.value
        run.total_employees = len(outcomes)
        run.failed_employees = len(summary.failures)
        run.total_gross_salary = total_gross
        run.total_net_salary = total_net
        run.completed_at = utcnow()
        await self.repository.update_payroll_run(run)
        await self.session.commit()

        summary.status = run.status
        summary.total_employees = run.total_employees
        summary.total_gross_salary = total_gross
        summary.total_net_salary = total_net
        summary.completed_at = run.completed_at

        logger.info(
            "Payroll run %s completed: %d employee(s), gross %s, net %s, %d failure(s)",
            period,
            summary.total_employees,
            total_gross,
            total_net,
            len(summary.failures),
        )
        return summary
