"""Payroll configuration, payslip and payroll run models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.calculators.types import PayrollRates
from hr_payroll.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from hr_payroll.models.employee import Employee


class PayrollConfig(Base):
    """One version of the payroll configuration.

    The configuration is a singleton that is versioned by update: every admin
    change inserts a new row and the highest version is the current one.
    """

    __tablename__ = "payroll_config"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    ot_multiplier: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False)
    social_insurance_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)
    health_insurance_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)
    unemployment_insurance_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False)
    personal_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    dependent_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_by: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("ot_multiplier >= 0", name="payroll_config_ot_multiplier_check"),
        CheckConstraint(
            "social_insurance_rate BETWEEN 0 AND 1 "
            "AND health_insurance_rate BETWEEN 0 AND 1 "
            "AND unemployment_insurance_rate BETWEEN 0 AND 1",
            name="payroll_config_rates_check",
        ),
        CheckConstraint(
            "personal_deduction >= 0 AND dependent_deduction >= 0",
            name="payroll_config_deductions_check",
        ),
    )

    def to_rates(self) -> PayrollRates:
        """Detached snapshot used by the calculators."""
        return PayrollRates(
            ot_multiplier=Decimal(self.ot_multiplier),
            social_insurance_rate=Decimal(self.social_insurance_rate),
            health_insurance_rate=Decimal(self.health_insurance_rate),
            unemployment_insurance_rate=Decimal(self.unemployment_insurance_rate),
            personal_deduction=Decimal(self.personal_deduction),
            dependent_deduction=Decimal(self.dependent_deduction),
        )


class Payslip(Base, TimestampMixin):
    """Monthly payslip, one per employee per period."""

    __tablename__ = "payslip"

    payslip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    period_label: Mapped[str] = mapped_column(String, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    overtime: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    allowances: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    social_insurance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    health_insurance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    # Unpaid-leave deduction
    deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    net_salary: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "period", name="payslip_employee_period_unique"),
        CheckConstraint("status IN ('pending', 'paid')", name="payslip_status_check"),
    )

    employee: Mapped[Employee] = relationship(back_populates="payslips")

    @property
    def gross_salary(self) -> Decimal:
        return self.base_salary + self.overtime + self.bonus + self.allowances


class PayrollRun(Base, TimestampMixin):
    """Payroll batch execution for a period, with aggregate totals."""

    __tablename__ = "payroll_run"

    payroll_run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    period_label: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="not_run")
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross_salary: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_net_salary: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    run_at: Mapped[datetime | None] = mapped_column(nullable=True)
    run_by: Mapped[str | None] = mapped_column(String, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("period", name="payroll_run_period_unique"),
        CheckConstraint(
            "status IN ('not_run', 'processing', 'completed')",
            name="payroll_run_status_check",
        ),
    )
