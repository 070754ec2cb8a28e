"""Government contribution lookup endpoint."""

from datetime import date
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Query

from ph_payroll.api.dependencies import StatutoryServiceDep
from ph_payroll.api.schemas import (
    ContributionResponse,
    ErrorResponse,
    GovernmentContributionsResponse,
    SSSResponse,
)
from ph_payroll.calculators.contributions import ContributionCalculator

router = APIRouter(prefix="/contributions", tags=["contributions"])


@router.get(
    "",
    response_model=GovernmentContributionsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_contributions(
    tables: StatutoryServiceDep,
    monthly_salary: Annotated[Decimal, Query()],
    as_of: Annotated[date | None, Query()] = None,
) -> GovernmentContributionsResponse:
    """Monthly SSS, PhilHealth and Pag-IBIG shares for a salary."""
    as_of = as_of or date.today()
    calculator = ContributionCalculator(await tables.tables_for(as_of))
    result = calculator.all_contributions(monthly_salary)
    return GovernmentContributionsResponse(
        monthly_salary=monthly_salary,
        as_of=as_of,
        sss=SSSResponse.model_validate(result.sss),
        philhealth=ContributionResponse.model_validate(result.philhealth),
        pagibig=ContributionResponse.model_validate(result.pagibig),
        employee_total=result.employee_total,
        warnings=list(result.warnings),
    )
