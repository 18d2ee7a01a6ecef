"""Data access for the payroll core.

Employee, overtime and leave tables are owned by the HR portal and only read
here. Payslips, payroll runs and payroll configuration versions are written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hr_payroll.calculators.types import PayslipFields
from hr_payroll.models import (
    Employee,
    LeaveRequest,
    OvertimeRequest,
    PayrollConfig,
    PayrollRun,
    Payslip,
)
from hr_payroll.models.base import utcnow
from hr_payroll.periods import period_bounds, period_label


@dataclass(frozen=True)
class EmployeeRecord:
    """Read-only snapshot of an employee taking part in a run."""

    employee_id: UUID
    employee_code: str
    full_name: str
    id_number: str | None
    base_salary: Decimal | None
    status: str

    @classmethod
    def from_model(cls, employee: Employee) -> EmployeeRecord:
        return cls(
            employee_id=employee.employee_id,
            employee_code=employee.employee_code,
            full_name=employee.full_name,
            id_number=employee.id_number,
            base_salary=employee.base_salary,
            status=employee.status,
        )


def _to_decimal(value: object) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class PayrollRepository:
    """SQLAlchemy implementation of the collaborators the payroll core needs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ===== Employees and approved inputs =====

    async def list_active_employees(self) -> list[EmployeeRecord]:
        """Every employee whose status is not inactive (active and probation)."""
        result = await self.session.execute(
            select(Employee)
            .where(Employee.status != "inactive")
            .order_by(Employee.employee_code)
        )
        return [EmployeeRecord.from_model(e) for e in result.scalars().all()]

    async def get_approved_overtime_hours(self, employee_id: UUID, period: str) -> Decimal:
        """Sum of approved overtime hours worked inside the period."""
        period_start, period_end = period_bounds(period)
        result = await self.session.execute(
            select(func.coalesce(func.sum(OvertimeRequest.hours_count), 0)).where(
                OvertimeRequest.employee_id == employee_id,
                OvertimeRequest.status == "approved",
                OvertimeRequest.work_date >= period_start,
                OvertimeRequest.work_date <= period_end,
            )
        )
        return _to_decimal(result.scalar_one())

    async def get_approved_unpaid_leave_days(
        self, employee_id: UUID, period: str | None = None
    ) -> Decimal:
        """Sum of approved unpaid leave days.

        Without a period every approved unpaid leave ever recorded is counted.
        With a period only leave starting inside it is counted.
        """
        conditions = [
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.leave_type == "unpaid",
            LeaveRequest.status == "approved",
        ]
        if period is not None:
            period_start, period_end = period_bounds(period)
            conditions += [
                LeaveRequest.start_date >= period_start,
                LeaveRequest.start_date <= period_end,
            ]

        result = await self.session.execute(
            select(func.coalesce(func.sum(LeaveRequest.days_count), 0)).where(*conditions)
        )
        return _to_decimal(result.scalar_one())

    # ===== Payroll configuration =====

    async def get_payroll_config(self) -> PayrollConfig | None:
        """Current (highest version) configuration, if any."""
        result = await self.session.execute(
            select(PayrollConfig).order_by(PayrollConfig.version.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_payroll_configs(self) -> list[PayrollConfig]:
        result = await self.session.execute(
            select(PayrollConfig).order_by(PayrollConfig.version.desc())
        )
        return list(result.scalars().all())

    async def add_payroll_config(self, config: PayrollConfig) -> PayrollConfig:
        self.session.add(config)
        await self.session.flush()
        return config

    # ===== Payslips =====

    async def get_payslip(self, employee_id: UUID, period: str) -> Payslip | None:
        result = await self.session.execute(
            select(Payslip).where(
                Payslip.employee_id == employee_id,
                Payslip.period == period,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_payslip(
        self,
        employee_id: UUID,
        period: str,
        fields: PayslipFields,
    ) -> tuple[Payslip, str | None]:
        """Insert or overwrite the payslip keyed by (employee, period).

        Returns the payslip and its status before the write (None if created).
        An existing payslip is reset to pending, including one already paid.
        """
        payslip = await self.get_payslip(employee_id, period)
        previous_status = payslip.status if payslip is not None else None

        if payslip is None:
            payslip = Payslip(
                employee_id=employee_id,
                period=period,
                period_label=period_label(period),
            )
            self.session.add(payslip)

        payslip.base_salary = fields.base_salary
        payslip.overtime = fields.overtime
        payslip.bonus = fields.bonus
        payslip.allowances = fields.allowances
        payslip.social_insurance = fields.social_insurance
        payslip.health_insurance = fields.health_insurance
        payslip.tax = fields.tax
        payslip.deductions = fields.deductions
        payslip.net_salary = fields.net_salary
        payslip.status = "pending"
        payslip.paid_date = None
        payslip.updated_at = utcnow()

        await self.session.flush()
        return payslip, previous_status

    async def list_payslips(self, period: str) -> list[Payslip]:
        result = await self.session.execute(
            select(Payslip)
            .join(Employee, Payslip.employee_id == Employee.employee_id)
            .where(Payslip.period == period)
            .options(selectinload(Payslip.employee))
            .order_by(Employee.employee_code)
        )
        return list(result.scalars().all())

    async def payslips_by_employee(self, period: str) -> dict[UUID, Payslip]:
        return {p.employee_id: p for p in await self.list_payslips(period)}

    async def list_employee_payslips(self, employee_id: UUID) -> list[Payslip]:
        """Payslips of one employee, newest period first."""
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.employee_id == employee_id)
            .order_by(Payslip.period.desc())
        )
        return list(result.scalars().all())

    # ===== Payroll runs =====

    async def get_payroll_run(self, period: str) -> PayrollRun | None:
        result = await self.session.execute(
            select(PayrollRun).where(PayrollRun.period == period)
        )
        return result.scalar_one_or_none()

    async def list_payroll_runs(self) -> list[PayrollRun]:
        result = await self.session.execute(
            select(PayrollRun).order_by(PayrollRun.period.desc())
        )
        return list(result.scalars().all())

    async def get_or_create_payroll_run(self, period: str) -> PayrollRun:
        """Load the run row for a period, creating it in not_run status."""
        run = await self.get_payroll_run(period)
        if run is not None:
            return run

        run = PayrollRun(
            period=period,
            period_label=period_label(period),
            status="not_run",
            total_employees=0,
            failed_employees=0,
            total_gross_salary=Decimal("0"),
            total_net_salary=Decimal("0"),
        )
        self.session.add(run)
        try:
            await self.session.flush()
        except IntegrityError:
            # Another writer created the row first
            await self.session.rollback()
            run = await self.get_payroll_run(period)
            if run is None:
                raise
        return run

    async def claim_payroll_run(
        self,
        run: PayrollRun,
        initiator: str,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        """Move the run to processing unless another run is actively processing it.

        A run left in processing is taken over once it started before
        ``stale_before``. Returns False when the claim was refused.
        """
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == run.payroll_run_id,
                or_(
                    PayrollRun.status != "processing",
                    PayrollRun.run_at.is_(None),
                    PayrollRun.run_at < stale_before,
                ),
            )
            .values(
                status="processing",
                run_at=now,
                run_by=initiator,
                completed_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        await self.session.refresh(run)
        return True

    async def update_payroll_run(self, run: PayrollRun) -> PayrollRun:
        self.session.add(run)
        await self.session.flush()
        return run
