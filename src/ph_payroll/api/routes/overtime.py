"""Overtime request endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from ph_payroll.api.dependencies import ActorId, DbSession, OptionalActorId, OvertimeServiceDep
from ph_payroll.api.schemas import (
    ErrorResponse,
    OvertimeDecision,
    OvertimeResponse,
    OvertimeSubmit,
)

router = APIRouter(prefix="/overtime", tags=["overtime"])


@router.post(
    "",
    response_model=OvertimeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def submit_overtime(
    db: DbSession,
    service: OvertimeServiceDep,
    payload: OvertimeSubmit,
) -> OvertimeResponse:
    """Submit an overtime request in pending status."""
    request = await service.submit(
        employee_id=payload.employee_id,
        ot_date=payload.ot_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    response = OvertimeResponse.model_validate(request)
    await db.commit()
    return response


@router.post(
    "/{request_id}/approve",
    response_model=OvertimeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_overtime(
    db: DbSession,
    service: OvertimeServiceDep,
    actor_id: OptionalActorId,
    request_id: Annotated[UUID, Path()],
) -> OvertimeResponse:
    """Approve a pending request and credit its hours."""
    request = await service.approve(request_id, approver_id=actor_id)
    response = OvertimeResponse.model_validate(request)
    await db.commit()
    return response


@router.post(
    "/{request_id}/reject",
    response_model=OvertimeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reject_overtime(
    db: DbSession,
    service: OvertimeServiceDep,
    actor_id: OptionalActorId,
    request_id: Annotated[UUID, Path()],
    payload: OvertimeDecision | None = None,
) -> OvertimeResponse:
    """Reject a pending request."""
    request = await service.reject(
        request_id,
        approver_id=actor_id,
        reason=payload.reason if payload else None,
    )
    response = OvertimeResponse.model_validate(request)
    await db.commit()
    return response


@router.post(
    "/{request_id}/cancel",
    response_model=OvertimeResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def cancel_overtime(
    db: DbSession,
    service: OvertimeServiceDep,
    actor_id: ActorId,
    request_id: Annotated[UUID, Path()],
) -> OvertimeResponse:
    """Cancel a pending request; only the employee who filed it may cancel."""
    request = await service.cancel(request_id, actor_id)
    response = OvertimeResponse.model_validate(request)
    await db.commit()
    return response
