"""Payslip endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from ph_payroll.api.dependencies import DbSession, OptionalActorId, PayslipServiceDep
from ph_payroll.api.schemas import (
    AdjustmentCreate,
    AdjustmentResponse,
    ErrorResponse,
    PayslipGenerateRequest,
    PayslipGenerateResponse,
    PayslipResponse,
)

router = APIRouter(prefix="/payslips", tags=["payslips"])


@router.post(
    "/generate",
    response_model=PayslipGenerateResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def generate_payslip(
    db: DbSession,
    service: PayslipServiceDep,
    payload: PayslipGenerateRequest,
) -> PayslipGenerateResponse:
    """Compute and store the draft payslip for an employee and period.

    Repeating the call with unchanged inputs returns the stored payslip.
    """
    payslip, computation = await service.generate_payslip(
        payload.employee_id,
        payload.period_start,
        allowance_amount=payload.allowance_amount,
        thirteenth_month_pay=payload.thirteenth_month_pay,
        apply_sss=payload.apply_sss,
        apply_philhealth=payload.apply_philhealth,
        apply_pagibig=payload.apply_pagibig,
    )
    response = PayslipGenerateResponse(
        payslip=PayslipResponse.model_validate(payslip),
        warnings=computation.warnings,
    )
    await db.commit()
    return response


@router.get(
    "/{payslip_id}",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(
    service: PayslipServiceDep,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Get a payslip with its adjustments."""
    return PayslipResponse.model_validate(await service.get_payslip(payslip_id))


@router.post(
    "/{payslip_id}/approve",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_payslip(
    db: DbSession,
    service: PayslipServiceDep,
    actor_id: OptionalActorId,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Approve a draft payslip."""
    response = PayslipResponse.model_validate(await service.approve(payslip_id, actor_id))
    await db.commit()
    return response


@router.post(
    "/{payslip_id}/reopen",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reopen_payslip(
    db: DbSession,
    service: PayslipServiceDep,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Return an approved payslip to draft."""
    response = PayslipResponse.model_validate(await service.reopen(payslip_id))
    await db.commit()
    return response


@router.post(
    "/{payslip_id}/pay",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def pay_payslip(
    db: DbSession,
    service: PayslipServiceDep,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Mark an approved payslip as paid; its amounts are frozen from here on."""
    response = PayslipResponse.model_validate(await service.mark_paid(payslip_id))
    await db.commit()
    return response


@router.post(
    "/{payslip_id}/adjustments",
    response_model=AdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def add_adjustment(
    db: DbSession,
    service: PayslipServiceDep,
    actor_id: OptionalActorId,
    payslip_id: Annotated[UUID, Path()],
    payload: AdjustmentCreate,
) -> AdjustmentResponse:
    """Record a correction on a paid payslip."""
    adjustment = await service.add_adjustment(
        payslip_id, payload.amount, payload.reason, actor_id=actor_id
    )
    response = AdjustmentResponse.model_validate(adjustment)
    await db.commit()
    return response
