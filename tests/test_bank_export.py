"""Tests for bank transfer file export."""

from decimal import Decimal

import pytest
import pytest_asyncio

from hr_payroll.periods import InvalidPeriodError
from hr_payroll.services import BankExportService, UnsupportedBankFormatError
from hr_payroll.services.bank_export import format_amount, get_bank_format
from tests.conftest import PERIOD, payslip_for


@pytest_asyncio.fixture
async def paid_period(session, employees):
    """Payslips for NV001 and NV003 only."""
    nv001, _, nv003, _ = employees
    session.add_all(
        [
            payslip_for(nv001, net_salary=Decimal("21631250")),
            payslip_for(nv003, net_salary=Decimal("8955000.50")),
        ]
    )
    await session.commit()
    return employees


class TestFormatHelpers:
    def test_format_amount_whole(self):
        assert format_amount(Decimal("21631250.00")) == "21631250"

    def test_format_amount_fraction(self):
        assert format_amount(Decimal("8955000.50")) == "8955000.5"

    def test_bank_code_case_insensitive(self):
        assert get_bank_format("vcb").code == "VCB"

    def test_unknown_bank_rejected(self):
        with pytest.raises(UnsupportedBankFormatError):
            get_bank_format("TCB")


class TestBankExport:
    async def test_vcb_file(self, session, paid_period):
        content = await BankExportService(session).export_bank_file(PERIOD, "VCB")

        assert content.split("\n") == [
            "STT,Số tài khoản,Tên người nhận,Số tiền,Nội dung",
            "1,0790NV001,Nguyen Van An,21631250,Luong thang 2024-03",
            "3,0790NV003,Le Van Cuong,8955000.5,Luong thang 2024-03",
        ]

    async def test_acb_file(self, session, paid_period):
        content = await BankExportService(session).export_bank_file(PERIOD, "ACB")

        assert content.split("\n") == [
            "STT|Ho ten|So tai khoan|So tien|Dien giai",
            "1|Nguyen Van An|0790NV001|21631250|Luong thang 2024-03",
            "3|Le Van Cuong|0790NV003|8955000.5|Luong thang 2024-03",
        ]

    async def test_period_without_payslips(self, session, employees):
        content = await BankExportService(session).export_bank_file("2023-12", "VCB")

        assert content == "STT,Số tài khoản,Tên người nhận,Số tiền,Nội dung"

    async def test_unsupported_format(self, session, employees):
        with pytest.raises(UnsupportedBankFormatError):
            await BankExportService(session).export_bank_file(PERIOD, "XYZ")

    async def test_invalid_period(self, session):
        with pytest.raises(InvalidPeriodError):
            await BankExportService(session).export_bank_file("March", "VCB")
