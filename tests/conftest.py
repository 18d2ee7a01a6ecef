"""Pytest fixtures for payroll core tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from hr_payroll.config import Settings
from hr_payroll.database import make_session_factory
from hr_payroll.models import Base, Employee, LeaveRequest, OvertimeRequest, Payslip
from hr_payroll.services.locking_service import PeriodLock

# In-memory SQLite shared by every connection of the engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PERIOD = "2024-03"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with make_session_factory(engine)() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    """Settings with the default all-time unpaid leave scope."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="DEBUG",
        employee_timeout_seconds=5,
        run_deadline_seconds=600,
    )


@pytest.fixture
def period_scoped_settings(settings: Settings) -> Settings:
    """Settings that only deduct unpaid leave starting in the run period."""
    return replace(settings, unpaid_leave_scope="period")


@pytest.fixture
def lock() -> PeriodLock:
    return PeriodLock()


def make_employee(
    code: str,
    base_salary: Decimal | None = Decimal("25000000"),
    status: str = "active",
    full_name: str | None = None,
    id_number: str | None = None,
) -> Employee:
    return Employee(
        employee_code=code,
        full_name=full_name or f"Nhan Vien {code}",
        id_number=id_number or f"0790{code}",
        base_salary=base_salary,
        status=status,
    )


def make_overtime(
    employee: Employee,
    hours: str,
    work_date: date = date(2024, 3, 15),
    status: str = "approved",
) -> OvertimeRequest:
    return OvertimeRequest(
        employee_id=employee.employee_id,
        work_date=work_date,
        hours_count=Decimal(hours),
        status=status,
    )


def make_unpaid_leave(
    employee: Employee,
    days: str,
    start_date: date = date(2024, 3, 4),
    status: str = "approved",
    leave_type: str = "unpaid",
) -> LeaveRequest:
    return LeaveRequest(
        employee_id=employee.employee_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=start_date,
        days_count=Decimal(days),
        status=status,
    )


@pytest_asyncio.fixture
async def employees(session: AsyncSession) -> list[Employee]:
    """Three payable employees and one inactive one.

    - NV001: 25,000,000, no overtime, no leave
    - NV002: 22,000,000, 10h approved overtime in March, 1h pending
    - NV003: probation, 11,000,000, 2 days approved unpaid leave
    - NV004: inactive
    """
    nv001 = make_employee("NV001", Decimal("25000000"), full_name="Nguyen Van An")
    nv002 = make_employee("NV002", Decimal("22000000"), full_name="Tran Thi Binh")
    nv003 = make_employee(
        "NV003", Decimal("11000000"), status="probation", full_name="Le Van Cuong"
    )
    nv004 = make_employee("NV004", Decimal("30000000"), status="inactive")
    session.add_all([nv001, nv002, nv003, nv004])
    await session.flush()

    session.add_all(
        [
            make_overtime(nv002, "10"),
            make_overtime(nv002, "1", status="pending"),
            make_unpaid_leave(nv003, "2"),
        ]
    )
    await session.commit()
    return [nv001, nv002, nv003, nv004]


def payslip_for(employee: Employee, period: str = PERIOD, **values) -> Payslip:
    """Build a payslip row directly, bypassing the runner."""
    defaults = {
        "period_label": "Tháng 03, 2024",
        "base_salary": employee.base_salary or Decimal("0"),
        "net_salary": Decimal("1000000"),
    }
    defaults.update(values)
    return Payslip(employee_id=employee.employee_id, period=period, **defaults)
