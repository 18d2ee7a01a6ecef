"""HTTP API tests using httpx against the ASGI app."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll import __version__
from hr_payroll.api.app import create_app
from hr_payroll.api.dependencies import get_app_settings, get_db_session
from hr_payroll.database import make_session_factory
from hr_payroll.services.locking_service import period_lock
from tests.conftest import PERIOD


@pytest_asyncio.fixture
async def client(engine, settings) -> AsyncGenerator[AsyncClient, None]:
    """API client backed by the per-test in-memory database."""
    app = create_app(manage_database=False)
    session_factory = make_session_factory(engine)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_app_settings] = lambda: settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["processing_runs"] == 0
        assert data["version"] == __version__

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestPayrollRunEndpoints:
    """Test payroll run endpoints."""

    async def test_run_payroll(self, client: AsyncClient, employees):
        response = await client.post(
            f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"}
        )
        assert response.status_code == 200

        data = response.json()
        assert data["period"] == PERIOD
        assert data["status"] == "completed"
        assert data["total_employees"] == 3
        assert Decimal(data["total_gross_salary"]) == Decimal("59875000")
        assert Decimal(data["total_net_salary"]) == Decimal("51352094")
        assert data["failures"] == []
        assert data["run_by"] == "HR Admin"

    async def test_run_at_has_utc_offset(self, client: AsyncClient, employees):
        await client.post(f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"})

        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}")
        assert response.status_code == 200
        run_at = datetime.fromisoformat(response.json()["run_at"].replace("Z", "+00:00"))
        assert run_at.utcoffset() == timedelta(0)

    async def test_rerun_keeps_single_run(self, client: AsyncClient, employees):
        for _ in range(2):
            response = await client.post(
                f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"}
            )
            assert response.status_code == 200

        response = await client.get("/api/v1/payroll-runs")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["period_label"] == "Tháng 03, 2024"

        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}/payslips")
        assert response.json()["total"] == 3

    async def test_run_requires_initiator(self, client: AsyncClient):
        response = await client.post(f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": ""})
        assert response.status_code == 422

    async def test_malformed_period(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll-runs/March", json={"initiator": "HR Admin"}
        )
        assert response.status_code == 422

    async def test_invalid_month(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/payroll-runs/2024-13", json={"initiator": "HR Admin"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PERIOD"

    async def test_non_ascii_digit_period(self, client: AsyncClient, employees):
        response = await client.post(
            "/api/v1/payroll-runs/٢٠٢٤-٠٣", json={"initiator": "HR Admin"}
        )
        assert response.status_code == 422

        response = await client.get("/api/v1/payroll-runs")
        assert response.json()["total"] == 0

    async def test_run_in_progress(self, client: AsyncClient, employees):
        async with period_lock.hold(PERIOD):
            response = await client.post(
                f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"}
            )

        assert response.status_code == 409
        assert response.json()["code"] == "PAYROLL_RUN_IN_PROGRESS"

    async def test_get_payroll_run(self, client: AsyncClient, employees):
        await client.post(f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"})

        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["failed_employees"] == 0

    async def test_get_payroll_run_not_found(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll-runs/2023-01")
        assert response.status_code == 404
        assert response.json()["code"] == "PAYROLL_RUN_NOT_FOUND"

    async def test_list_payslips(self, client: AsyncClient, employees):
        await client.post(f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"})

        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}/payslips")
        assert response.status_code == 200

        items = response.json()["items"]
        assert [i["employee_name"] for i in items] == [
            "Nguyen Van An",
            "Tran Thi Binh",
            "Le Van Cuong",
        ]
        first = items[0]
        assert Decimal(first["gross_salary"]) == Decimal("25000000")
        assert Decimal(first["tax"]) == Decimal("993750")
        assert Decimal(first["net_salary"]) == Decimal("21631250")
        assert first["status"] == "pending"


class TestBankExportEndpoint:
    async def test_export_vcb(self, client: AsyncClient, employees):
        await client.post(f"/api/v1/payroll-runs/{PERIOD}", json={"initiator": "HR Admin"})

        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}/bank-export?bank=vcb")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "salary_VCB_2024-03.txt" in response.headers["content-disposition"]

        lines = response.text.split("\n")
        assert lines[0] == "STT,Số tài khoản,Tên người nhận,Số tiền,Nội dung"
        assert lines[1] == "1,0790NV001,Nguyen Van An,21631250,Luong thang 2024-03"
        assert len(lines) == 4

    async def test_export_unsupported_bank(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll-runs/{PERIOD}/bank-export?bank=TCB")
        assert response.status_code == 400
        assert response.json()["code"] == "UNSUPPORTED_BANK_FORMAT"


class TestPayrollConfigEndpoints:
    async def test_get_config_defaults(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll-config")
        assert response.status_code == 200

        data = response.json()
        assert data["version"] == 1
        assert data["updated_by"] == "system"
        assert Decimal(data["ot_multiplier"]) == Decimal("1.5")
        assert Decimal(data["personal_deduction"]) == Decimal("11000000")

    async def test_update_config(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/payroll-config",
            json={"updated_by": "admin", "ot_multiplier": "2", "personal_deduction": 15500000},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == 2
        assert Decimal(data["ot_multiplier"]) == Decimal("2")
        assert Decimal(data["personal_deduction"]) == Decimal("15500000")

        response = await client.get("/api/v1/payroll-config/versions")
        assert [v["version"] for v in response.json()["items"]] == [2, 1]

    async def test_update_config_out_of_range(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/payroll-config",
            json={"updated_by": "admin", "social_insurance_rate": "1.2"},
        )
        assert response.status_code == 422

    async def test_update_config_unknown_field(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/payroll-config",
            json={"updated_by": "admin", "bonus_rate": "0.1"},
        )
        assert response.status_code == 422


class TestTaxPreview:
    async def test_preview(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/preview", json={"taxable_income": "11625000"})
        assert response.status_code == 200
        assert Decimal(response.json()["tax"]) == Decimal("993750")

    async def test_preview_negative_income(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/preview", json={"taxable_income": "-500000"})
        assert Decimal(response.json()["tax"]) == Decimal("0")

    async def test_preview_what_if_schedule(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/tax/preview",
            json={
                "taxable_income": "20000000",
                "brackets": [
                    {"min_amount": "0", "max_amount": "10000000", "rate": "0"},
                    {"min_amount": "10000000", "max_amount": None, "rate": "0.1"},
                ],
            },
        )
        assert response.status_code == 200
        assert Decimal(response.json()["tax"]) == Decimal("1000000")

    async def test_preview_schedule_with_gap(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/tax/preview",
            json={
                "taxable_income": "20000000",
                "brackets": [
                    {"min_amount": "0", "max_amount": "5000000", "rate": "0.05"},
                    {"min_amount": "6000000", "rate": "0.1"},
                ],
            },
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TAX_SCHEDULE"


class TestEmployeePayslips:
    async def test_newest_period_first(self, client: AsyncClient, employees):
        employee_id = employees[0].employee_id
        for period in ("2024-02", "2024-03"):
            await client.post(f"/api/v1/payroll-runs/{period}", json={"initiator": "HR Admin"})

        response = await client.get(f"/api/v1/employees/{employee_id}/payslips")
        assert response.status_code == 200
        assert [p["period"] for p in response.json()["items"]] == ["2024-03", "2024-02"]

    async def test_unknown_employee(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/employees/00000000-0000-0000-0000-000000000000/payslips"
        )
        assert response.status_code == 200
        assert response.json()["total"] == 0
