"""Employee, overtime and leave records.

These tables belong to the surrounding HR portal. The payroll core only reads
them; they are mapped here so the repository can query them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_payroll.models.payroll import Payslip


class Employee(Base, TimestampMixin):
    """Employee record."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_code: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    # CMND/CCCD number, also used as the bank account column in transfer files
    id_number: Mapped[str | None] = mapped_column(String, nullable=True)
    base_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        UniqueConstraint("employee_code", name="employee_code_unique"),
        CheckConstraint(
            "status IN ('active', 'probation', 'inactive')",
            name="employee_status_check",
        ),
        CheckConstraint(
            "base_salary IS NULL OR base_salary >= 0",
            name="employee_base_salary_check",
        ),
    )

    # Relationships
    overtime_requests: Mapped[list[OvertimeRequest]] = relationship(back_populates="employee")
    leave_requests: Mapped[list[LeaveRequest]] = relationship(back_populates="employee")
    payslips: Mapped[list[Payslip]] = relationship(back_populates="employee")


class OvertimeRequest(Base, TimestampMixin):
    """Overtime request submitted by an employee."""

    __tablename__ = "overtime_request"

    overtime_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours_count: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    __table_args__ = (
        CheckConstraint("hours_count > 0", name="overtime_hours_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="overtime_status_check",
        ),
    )

    employee: Mapped[Employee] = relationship(back_populates="overtime_requests")


class LeaveRequest(Base, TimestampMixin):
    """Leave request submitted by an employee."""

    __tablename__ = "leave_request"

    leave_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_count: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    __table_args__ = (
        CheckConstraint("days_count > 0", name="leave_days_positive"),
        CheckConstraint("end_date >= start_date", name="leave_dates_check"),
        CheckConstraint(
            "leave_type IN ('annual', 'sick', 'unpaid')",
            name="leave_type_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="leave_status_check",
        ),
    )

    employee: Mapped[Employee] = relationship(back_populates="leave_requests")
