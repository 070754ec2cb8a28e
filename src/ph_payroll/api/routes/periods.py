"""Pay period endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query

from ph_payroll.api.dependencies import Periods
from ph_payroll.api.schemas import ErrorResponse, PeriodResponse
from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.types import PayPeriod

router = APIRouter(prefix="/periods", tags=["periods"])


def _to_response(periods: PeriodCalculator, period: PayPeriod) -> PeriodResponse:
    return PeriodResponse(
        start=period.start,
        end=period.end,
        label=PeriodCalculator.format_period(period),
        year=period.year,
        index_in_year=periods.period_index_in_year(period),
    )


@router.get("/containing", response_model=PeriodResponse)
async def period_containing(
    periods: Periods,
    on: Annotated[date, Query(description="Any date inside the period")],
) -> PeriodResponse:
    """Get the canonical period containing a date."""
    return _to_response(periods, periods.period_containing(on))


@router.get(
    "/{start}/next",
    response_model=PeriodResponse,
    responses={422: {"model": ErrorResponse}},
)
async def next_period(
    periods: Periods,
    start: Annotated[date, Path()],
) -> PeriodResponse:
    """Get the period after the one starting on ``start``."""
    return _to_response(periods, periods.next_period(periods.period_starting(start)))


@router.get(
    "/{start}/previous",
    response_model=PeriodResponse,
    responses={422: {"model": ErrorResponse}},
)
async def previous_period(
    periods: Periods,
    start: Annotated[date, Path()],
) -> PeriodResponse:
    """Get the period before the one starting on ``start``."""
    return _to_response(periods, periods.previous_period(periods.period_starting(start)))
