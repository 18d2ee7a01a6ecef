"""Payroll run, payslip, configuration and tax preview endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status
from fastapi.responses import PlainTextResponse

from hr_payroll.api.dependencies import AppSettings, DbSession
from hr_payroll.api.schemas import (
    ErrorResponse,
    PayrollConfigListResponse,
    PayrollConfigResponse,
    PayrollConfigUpdate,
    PayrollRunListResponse,
    PayrollRunRequest,
    PayrollRunResponse,
    PayrollRunSummaryResponse,
    PayslipListResponse,
    PayslipResponse,
    TaxPreviewRequest,
    TaxPreviewResponse,
)
from hr_payroll.calculators import TaxBracket, TaxCalculator, compute_tax
from hr_payroll.periods import validate_period
from hr_payroll.services.bank_export import BankExportService
from hr_payroll.services.config_service import PayrollConfigService
from hr_payroll.services.payroll_runner import PayrollRunner
from hr_payroll.services.repository import PayrollRepository

router = APIRouter(tags=["payroll"])

PeriodPath = Annotated[str, Path(pattern=r"^[0-9]{4}-[0-9]{2}$", examples=["2024-03"])]


# ============================================================================
# Payroll runs
# ============================================================================


@router.post(
    "/payroll-runs/{period}",
    response_model=PayrollRunSummaryResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def run_payroll(
    db: DbSession,
    settings: AppSettings,
    period: PeriodPath,
    payload: PayrollRunRequest,
) -> PayrollRunSummaryResponse:
    """Run payroll for a period. Re-running overwrites the period's payslips."""
    runner = PayrollRunner(db, settings=settings)
    summary = await runner.run_payroll(period, payload.initiator)
    return PayrollRunSummaryResponse.model_validate(summary)


@router.get("/payroll-runs", response_model=PayrollRunListResponse)
async def list_payroll_runs(db: DbSession) -> PayrollRunListResponse:
    """List payroll runs, newest period first."""
    runs = await PayrollRepository(db).list_payroll_runs()
    return PayrollRunListResponse(
        items=[PayrollRunResponse.model_validate(r) for r in runs],
        total=len(runs),
    )


@router.get(
    "/payroll-runs/{period}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    db: DbSession,
    settings: AppSettings,
    period: PeriodPath,
) -> PayrollRunResponse:
    """Get the payroll run of a period."""
    run = await PayrollRunner(db, settings=settings).get_run(period)
    return PayrollRunResponse.model_validate(run)


@router.get("/payroll-runs/{period}/payslips", response_model=PayslipListResponse)
async def list_payslips(db: DbSession, period: PeriodPath) -> PayslipListResponse:
    """List the payslips of a period."""
    validate_period(period)
    payslips = await PayrollRepository(db).list_payslips(period)

    items = []
    for payslip in payslips:
        resp = PayslipResponse.model_validate(payslip)
        resp.employee_name = payslip.employee.full_name
        items.append(resp)

    return PayslipListResponse(items=items, total=len(items))


@router.get("/employees/{employee_id}/payslips", response_model=PayslipListResponse)
async def list_employee_payslips(db: DbSession, employee_id: UUID) -> PayslipListResponse:
    """An employee's payslips, newest period first."""
    payslips = await PayrollRepository(db).list_employee_payslips(employee_id)
    items = [PayslipResponse.model_validate(p) for p in payslips]
    return PayslipListResponse(items=items, total=len(items))


@router.get(
    "/payroll-runs/{period}/bank-export",
    response_class=PlainTextResponse,
    responses={400: {"model": ErrorResponse}},
)
async def export_bank_file(
    db: DbSession,
    period: PeriodPath,
    bank: Annotated[str, Query(description="Bank file format: VCB or ACB")] = "VCB",
) -> PlainTextResponse:
    """Render the salary transfer file for a bank."""
    content = await BankExportService(db).export_bank_file(period, bank)
    filename = f"salary_{bank.upper()}_{period}.txt"
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# Payroll configuration
# ============================================================================


@router.get("/payroll-config", response_model=PayrollConfigResponse)
async def get_payroll_config(db: DbSession) -> PayrollConfigResponse:
    """Current payroll configuration (defaults are stored on first read)."""
    config = await PayrollConfigService(db).get_config()
    await db.commit()
    return PayrollConfigResponse.model_validate(config)


@router.put(
    "/payroll-config",
    response_model=PayrollConfigResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_payroll_config(
    db: DbSession,
    payload: PayrollConfigUpdate,
) -> PayrollConfigResponse:
    """Store a new configuration version."""
    updates = payload.model_dump(exclude={"updated_by"}, exclude_none=True)
    config = await PayrollConfigService(db).update_config(updates, payload.updated_by)
    await db.commit()
    return PayrollConfigResponse.model_validate(config)


@router.get("/payroll-config/versions", response_model=PayrollConfigListResponse)
async def list_payroll_config_versions(db: DbSession) -> PayrollConfigListResponse:
    """Configuration history, newest version first."""
    versions = await PayrollConfigService(db).list_versions()
    return PayrollConfigListResponse(
        items=[PayrollConfigResponse.model_validate(v) for v in versions],
        total=len(versions),
    )


# ============================================================================
# Tax preview
# ============================================================================


@router.post(
    "/tax/preview",
    response_model=TaxPreviewResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
)
async def preview_tax(payload: TaxPreviewRequest) -> TaxPreviewResponse:
    """Personal income tax owed on a monthly taxable income.

    Supplying ``brackets`` previews a what-if schedule instead of the
    statutory one; a schedule with gaps or overlaps is rejected.
    """
    if payload.brackets is None:
        tax = compute_tax(payload.taxable_income)
    else:
        calculator = TaxCalculator(
            [TaxBracket(b.min_amount, b.max_amount, b.rate) for b in payload.brackets]
        )
        tax = calculator.calculate(payload.taxable_income)

    return TaxPreviewResponse(taxable_income=payload.taxable_income, tax=tax)
