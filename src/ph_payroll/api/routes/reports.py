"""YTD and BIR annual report endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from ph_payroll.api.dependencies import ReportServiceDep
from ph_payroll.api.schemas import (
    BIRReportResponse,
    CompanySummaryResponse,
    ErrorResponse,
    YTDResponse,
)
from ph_payroll.calculators.reporting import SUMMED_FIELDS, YTDSummary

router = APIRouter(prefix="/reports", tags=["reports"])


def _ytd_response(rollup: YTDSummary) -> YTDResponse:
    identity = rollup.identity
    return YTDResponse(
        employee_id=identity.employee_id,
        employee_code=identity.employee_code,
        first_name=identity.first_name,
        last_name=identity.last_name,
        tin=identity.tin,
        sss_number=identity.sss_number,
        philhealth_number=identity.philhealth_number,
        pagibig_number=identity.pagibig_number,
        missing_identifiers=list(rollup.missing_identifiers),
        year=rollup.year,
        payslip_count=rollup.payslip_count,
        **{name: getattr(rollup, name) for name, _ in SUMMED_FIELDS},
    )


@router.get(
    "/ytd/{employee_id}/{year}",
    response_model=YTDResponse,
    responses={404: {"model": ErrorResponse}},
)
async def employee_ytd(
    service: ReportServiceDep,
    employee_id: Annotated[UUID, Path()],
    year: Annotated[int, Path(ge=1900, le=9999)],
) -> YTDResponse:
    """Year-to-date totals of an employee's paid payslips."""
    return _ytd_response(await service.employee_ytd(employee_id, year))


@router.get("/bir/{year}", response_model=BIRReportResponse)
async def bir_annual_report(
    service: ReportServiceDep,
    year: Annotated[int, Path(ge=1900, le=9999)],
) -> BIRReportResponse:
    """Company-wide annual summary with alphalist rows."""
    summary, rollups = await service.annual_report(year)
    return BIRReportResponse(
        summary=CompanySummaryResponse.model_validate(summary),
        alphalist=[_ytd_response(r) for r in rollups],
    )
