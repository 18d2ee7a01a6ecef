"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Error body returned for handled domain errors."""

    detail: str
    code: str


# ============================================================================
# Payroll run schemas
# ============================================================================


class PayrollRunRequest(BaseModel):
    """Schema for starting a payroll run."""

    initiator: str = Field(min_length=1)


class EmployeeIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_code: str
    message: str


class PayrollRunSummaryResponse(BaseModel):
    """Result of a payroll run invocation."""

    model_config = ConfigDict(from_attributes=True)

    period: str
    status: str
    total_employees: int
    total_gross_salary: Decimal
    total_net_salary: Decimal
    run_by: str | None = None
    run_at: datetime | None = None
    completed_at: datetime | None = None
    failures: list[EmployeeIssueResponse] = []
    warnings: list[EmployeeIssueResponse] = []
    reset_paid_payslips: list[UUID] = []


class PayrollRunResponse(BaseModel):
    """Schema for a stored payroll run."""

    model_config = ConfigDict(from_attributes=True)

    payroll_run_id: UUID
    period: str
    period_label: str
    status: str
    total_employees: int
    failed_employees: int
    total_gross_salary: Decimal
    total_net_salary: Decimal
    run_at: datetime | None = None
    run_by: str | None = None
    completed_at: datetime | None = None


class PayrollRunListResponse(BaseModel):
    items: list[PayrollRunResponse]
    total: int


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    employee_id: UUID
    employee_name: str | None = None
    period: str
    period_label: str
    base_salary: Decimal
    overtime: Decimal
    bonus: Decimal
    allowances: Decimal
    gross_salary: Decimal
    social_insurance: Decimal
    health_insurance: Decimal
    tax: Decimal
    deductions: Decimal
    net_salary: Decimal
    status: str
    paid_date: date | None = None


class PayslipListResponse(BaseModel):
    items: list[PayslipResponse]
    total: int


# ============================================================================
# Configuration schemas
# ============================================================================


class PayrollConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    version: int
    ot_multiplier: Decimal
    social_insurance_rate: Decimal
    health_insurance_rate: Decimal
    unemployment_insurance_rate: Decimal
    personal_deduction: Decimal
    dependent_deduction: Decimal
    updated_at: datetime
    updated_by: str


class PayrollConfigUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = ConfigDict(extra="forbid")

    updated_by: str = Field(min_length=1)
    ot_multiplier: Decimal | None = Field(default=None, ge=0)
    social_insurance_rate: Decimal | None = Field(default=None, ge=0, le=1)
    health_insurance_rate: Decimal | None = Field(default=None, ge=0, le=1)
    unemployment_insurance_rate: Decimal | None = Field(default=None, ge=0, le=1)
    personal_deduction: Decimal | None = Field(default=None, ge=0)
    dependent_deduction: Decimal | None = Field(default=None, ge=0)


class PayrollConfigListResponse(BaseModel):
    items: list[PayrollConfigResponse]
    total: int


# ============================================================================
# Tax preview schemas
# ============================================================================


class TaxBracketSchema(BaseModel):
    min_amount: Decimal
    max_amount: Decimal | None = None
    rate: Decimal


class TaxPreviewRequest(BaseModel):
    taxable_income: Decimal
    brackets: list[TaxBracketSchema] | None = Field(
        default=None,
        description="What-if bracket schedule; the statutory schedule is used when omitted",
    )


class TaxPreviewResponse(BaseModel):
    taxable_income: Decimal
    tax: Decimal
