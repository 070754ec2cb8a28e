"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Period schemas
# ============================================================================


class PeriodResponse(BaseModel):
    """Schema for a canonical pay period."""

    start: date
    end: date
    label: str
    year: int
    index_in_year: int


# ============================================================================
# Contribution schemas
# ============================================================================


class SSSResponse(BaseModel):
    """SSS contribution with its WISP split."""

    model_config = ConfigDict(from_attributes=True)

    msc: Decimal
    regular_msc: Decimal
    wisp_msc: Decimal
    employee_share: Decimal
    employer_share: Decimal
    regular_employee_share: Decimal
    regular_employer_share: Decimal
    wisp_employee_share: Decimal
    wisp_employer_share: Decimal


class ContributionResponse(BaseModel):
    """PhilHealth or Pag-IBIG contribution."""

    model_config = ConfigDict(from_attributes=True)

    employee_share: Decimal
    employer_share: Decimal
    salary_base: Decimal


class GovernmentContributionsResponse(BaseModel):
    """Schema for monthly government contributions."""

    monthly_salary: Decimal
    as_of: date
    sss: SSSResponse
    philhealth: ContributionResponse
    pagibig: ContributionResponse
    employee_total: Decimal
    warnings: list[str] = []


# ============================================================================
# Overtime schemas
# ============================================================================


class OvertimeSubmit(BaseModel):
    """Schema for submitting an overtime request.

    Times are optional here so that a missing time is reported by the
    overtime validator with the offending field.
    """

    employee_id: UUID
    ot_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    end_date: date | None = None
    reason: str | None = None


class OvertimeDecision(BaseModel):
    """Schema for rejecting an overtime request."""

    reason: str | None = None


class OvertimeResponse(BaseModel):
    """Schema for overtime request response."""

    model_config = ConfigDict(from_attributes=True)

    overtime_request_id: UUID
    employee_id: UUID
    ot_date: date
    end_date: date
    start_time: time
    end_time: time
    total_hours: Decimal
    reason: str | None = None
    status: str
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None


# ============================================================================
# Deduction schemas
# ============================================================================


class DeductionValues(BaseModel):
    """Manual deduction amounts; null government amounts are auto-computed."""

    model_config = ConfigDict(from_attributes=True)

    vale_amount: Decimal = Field(default=Decimal("0"), ge=0)
    uniform_ppe_amount: Decimal = Field(default=Decimal("0"), ge=0)
    sss_salary_loan: Decimal = Field(default=Decimal("0"), ge=0)
    sss_calamity_loan: Decimal = Field(default=Decimal("0"), ge=0)
    pagibig_salary_loan: Decimal = Field(default=Decimal("0"), ge=0)
    pagibig_calamity_loan: Decimal = Field(default=Decimal("0"), ge=0)
    other_deduction: Decimal = Field(default=Decimal("0"), ge=0)
    sss_contribution: Decimal | None = Field(default=None, ge=0)
    sss_wisp: Decimal | None = Field(default=None, ge=0)
    philhealth_contribution: Decimal | None = Field(default=None, ge=0)
    pagibig_contribution: Decimal | None = Field(default=None, ge=0)
    withholding_tax: Decimal | None = Field(default=None, ge=0)


class DeductionUpdate(DeductionValues):
    """Schema for saving deductions; ``expected_version`` is 0 for a new record."""

    expected_version: int = Field(ge=0)


class DeductionResponse(DeductionValues):
    """Schema for deduction record response."""

    employee_id: UUID
    period_start: date
    period_end: date
    version: int
    computed_sss_wisp: Decimal
    updated_at: datetime | None = None


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipGenerateRequest(BaseModel):
    """Schema for generating a payslip."""

    employee_id: UUID
    period_start: date
    allowance_amount: Decimal = Field(default=Decimal("0"), ge=0)
    thirteenth_month_pay: Decimal = Field(default=Decimal("0"), ge=0)
    apply_sss: bool = True
    apply_philhealth: bool = True
    apply_pagibig: bool = True


class AdjustmentCreate(BaseModel):
    """Schema for an adjustment on a paid payslip."""

    amount: Decimal
    reason: str = Field(min_length=1)


class AdjustmentResponse(BaseModel):
    """Schema for payslip adjustment response."""

    model_config = ConfigDict(from_attributes=True)

    payslip_adjustment_id: UUID
    payslip_id: UUID
    amount: Decimal
    reason: str
    created_by: UUID | None = None
    created_at: datetime


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    employee_id: UUID
    payslip_number: str
    period_start: date
    period_end: date
    status: str
    calculation_id: UUID
    earnings_breakdown: list[dict[str, Any]]
    deductions_breakdown: list[dict[str, Any]]
    gross_pay: Decimal
    taxable_compensation: Decimal
    sss_amount: Decimal
    sss_wisp_amount: Decimal
    philhealth_amount: Decimal
    pagibig_amount: Decimal
    withholding_tax: Decimal
    allowance_amount: Decimal
    thirteenth_month_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    apply_sss: bool
    apply_philhealth: bool
    apply_pagibig: bool
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    adjustments: list[AdjustmentResponse] = []


class PayslipGenerateResponse(BaseModel):
    """Schema for payslip generation response."""

    payslip: PayslipResponse
    warnings: list[str] = []


# ============================================================================
# Report schemas
# ============================================================================


class YTDResponse(BaseModel):
    """Schema for an employee's year-to-date rollup."""

    employee_id: UUID
    employee_code: str
    first_name: str
    last_name: str
    tin: str | None = None
    sss_number: str | None = None
    philhealth_number: str | None = None
    pagibig_number: str | None = None
    missing_identifiers: list[str] = []
    year: int
    total_gross: Decimal
    total_taxable: Decimal
    total_tax_withheld: Decimal
    total_sss: Decimal
    total_philhealth: Decimal
    total_pagibig: Decimal
    total_thirteenth_month: Decimal
    total_adjustments: Decimal
    payslip_count: int


class CompanySummaryResponse(BaseModel):
    """Schema for the company-wide annual summary."""

    model_config = ConfigDict(from_attributes=True)

    year: int
    total_employees: int
    total_gross: Decimal
    total_taxable: Decimal
    total_tax_withheld: Decimal
    total_sss: Decimal
    total_philhealth: Decimal
    total_pagibig: Decimal
    total_thirteenth_month: Decimal
    total_adjustments: Decimal
    payslip_count: int
    employees_missing_tin: int


class BIRReportResponse(BaseModel):
    """Schema for the annual BIR report."""

    summary: CompanySummaryResponse
    alphalist: list[YTDResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
