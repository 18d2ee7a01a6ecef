"""Bank transfer files for paying net salaries."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hr_payroll.models import Payslip
from hr_payroll.periods import validate_period
from hr_payroll.services.repository import EmployeeRecord, PayrollRepository

logger = logging.getLogger(__name__)


class UnsupportedBankFormatError(ValueError):
    def __init__(self, bank_format: str):
        self.bank_format = bank_format
        super().__init__(
            f"Unsupported bank format '{bank_format}', expected one of {sorted(BANK_FORMATS)}"
        )


@dataclass(frozen=True)
class BankFileFormat:
    """Layout of one bank's salary transfer file."""

    code: str
    header: str
    separator: str
    columns: tuple[str, ...]


BANK_FORMATS: dict[str, BankFileFormat] = {
    "VCB": BankFileFormat(
        code="VCB",
        header="STT,Số tài khoản,Tên người nhận,Số tiền,Nội dung",
        separator=",",
        columns=("index", "id_number", "full_name", "amount", "memo"),
    ),
    "ACB": BankFileFormat(
        code="ACB",
        header="STT|Ho ten|So tai khoan|So tien|Dien giai",
        separator="|",
        columns=("index", "full_name", "id_number", "amount", "memo"),
    ),
}


def get_bank_format(bank_format: str) -> BankFileFormat:
    fmt = BANK_FORMATS.get((bank_format or "").upper())
    if fmt is None:
        raise UnsupportedBankFormatError(bank_format)
    return fmt


def format_amount(amount: Decimal) -> str:
    """Plain amount without grouping; whole amounts have no decimals."""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount.normalize():f}"


def render_bank_file(
    fmt: BankFileFormat,
    period: str,
    employees: Sequence[EmployeeRecord],
    payslips: Mapping[UUID, Payslip],
) -> str:
    """Render the transfer file.

    STT is the employee's position in ``employees``; employees without a
    payslip for the period are skipped and leave a gap in the numbering.
    """
    lines = [fmt.header]
    memo = f"Luong thang {period}"
    for index, employee in enumerate(employees, start=1):
        payslip = payslips.get(employee.employee_id)
        if payslip is None:
            continue
        values = {
            "index": str(index),
            "id_number": employee.id_number or "",
            "full_name": employee.full_name,
            "amount": format_amount(payslip.net_salary),
            "memo": memo,
        }
        lines.append(fmt.separator.join(values[column] for column in fmt.columns))
    return "\n".join(lines)


class BankExportService:
    def __init__(self, session: AsyncSession, repository: PayrollRepository | None = None):
        self.session = session
        self.repository = repository or PayrollRepository(session)

    async def export_bank_file(self, period: str, bank_format: str) -> str:
        validate_period(period)
        fmt = get_bank_format(bank_format)

        employees = await self.repository.list_active_employees()
        payslips = await self.repository.payslips_by_employee(period)
        content = render_bank_file(fmt, period, employees, payslips)

        logger.info(
            "Exported %s bank file for %s with %d row(s)",
            fmt.code,
            period,
            content.count("\n"),
        )
        return content
