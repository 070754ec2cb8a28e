"""Deduction record endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from ph_payroll.api.dependencies import DbSession, DeductionServiceDep, OptionalActorId
from ph_payroll.api.schemas import DeductionResponse, DeductionUpdate, ErrorResponse
from ph_payroll.calculators.types import DeductionInputs
from ph_payroll.services.deduction_service import DeductionView

router = APIRouter(prefix="/deductions", tags=["deductions"])


def _to_response(view: DeductionView) -> DeductionResponse:
    return DeductionResponse(
        employee_id=view.employee_id,
        period_start=view.period.start,
        period_end=view.period.end,
        version=view.version,
        computed_sss_wisp=view.computed_sss_wisp,
        updated_at=view.updated_at,
        **asdict(view.inputs),
    )


@router.get(
    "/{employee_id}/{period_start}",
    response_model=DeductionResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def get_deductions(
    service: DeductionServiceDep,
    employee_id: Annotated[UUID, Path()],
    period_start: Annotated[date, Path()],
) -> DeductionResponse:
    """Get deduction entries for a period; version 0 means none saved yet."""
    return _to_response(await service.load(employee_id, period_start))


@router.put(
    "/{employee_id}/{period_start}",
    response_model=DeductionResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def save_deductions(
    db: DbSession,
    service: DeductionServiceDep,
    actor_id: OptionalActorId,
    employee_id: Annotated[UUID, Path()],
    period_start: Annotated[date, Path()],
    payload: DeductionUpdate,
) -> DeductionResponse:
    """Save deduction entries if ``expected_version`` is still current."""
    inputs = DeductionInputs(**payload.model_dump(exclude={"expected_version"}))
    view = await service.save(
        employee_id,
        period_start,
        inputs,
        expected_version=payload.expected_version,
        actor_id=actor_id,
    )
    await db.commit()
    return _to_response(view)
