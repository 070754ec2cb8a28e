"""Overtime request submission and approval lifecycle."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.overtime import OvertimeResolver
from ph_payroll.calculators.types import ZERO, OvertimeStatus
from ph_payroll.errors import (
    InvalidTransitionError,
    NotFoundError,
    OvertimeOwnershipError,
)
from ph_payroll.models import Employee, OvertimeRequest, TimeCreditEntry
from ph_payroll.services.state_machine import OvertimeStateMachine

logger = logging.getLogger(__name__)


class TimeCreditLedger(Protocol):
    """Receives offsetting time credits when overtime is approved."""

    async def credit(
        self,
        employee_id: UUID,
        hours: Decimal,
        overtime_request_id: UUID,
    ) -> None: ...

    async def balance(self, employee_id: UUID) -> Decimal: ...


class SqlTimeCreditLedger:
    """Time credit ledger backed by the time_credit_entry table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def credit(
        self,
        employee_id: UUID,
        hours: Decimal,
        overtime_request_id: UUID,
    ) -> None:
        self.session.add(
            TimeCreditEntry(
                employee_id=employee_id,
                hours=hours,
                overtime_request_id=overtime_request_id,
                note="Approved overtime",
            )
        )
        await self.session.flush()

    async def balance(self, employee_id: UUID) -> Decimal:
        total = await self.session.scalar(
            select(func.coalesce(func.sum(TimeCreditEntry.hours), 0)).where(
                TimeCreditEntry.employee_id == employee_id
            )
        )
        return Decimal(str(total or ZERO))


class OvertimeService:
    """Submits overtime requests and moves them through their lifecycle.

    Every transition is a single conditional UPDATE on ``status = 'pending'``
    so that two racing transitions cannot both succeed.
    """

    def __init__(self, session: AsyncSession, ledger: TimeCreditLedger | None = None):
        self.session = session
        self.ledger = ledger or SqlTimeCreditLedger(session)

    async def get_request(self, request_id: UUID) -> OvertimeRequest:
        request = await self.session.get(OvertimeRequest, request_id)
        if request is None:
            raise NotFoundError("Overtime request", request_id)
        return request

    async def submit(
        self,
        employee_id: UUID,
        ot_date: date | None,
        start_time: time | None,
        end_time: time | None,
        end_date: date | None = None,
        reason: str | None = None,
    ) -> OvertimeRequest:
        """Validate and store a pending request.

        Raises:
            OvertimeValidationError: Missing times or a non-positive duration
            NotFoundError: Unknown employee
        """
        window = OvertimeResolver.resolve(ot_date, start_time, end_time, end_date)
        if await self.session.get(Employee, employee_id) is None:
            raise NotFoundError("Employee", employee_id)

        request = OvertimeRequest(
            employee_id=employee_id,
            ot_date=window.ot_date,
            end_date=window.end_date,
            start_time=window.start_time,
            end_time=window.end_time,
            total_hours=window.total_hours,
            reason=reason,
            status=OvertimeStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()
        await self.session.refresh(request)
        logger.info(
            "Overtime request %s submitted: %s hours on %s",
            request.overtime_request_id,
            window.total_hours,
            window.ot_date,
        )
        return request

    async def approve(self, request_id: UUID, approver_id: UUID | None = None) -> OvertimeRequest:
        """Approve a pending request and credit its hours to the ledger."""
        request = await self._transition(
            request_id,
            OvertimeStatus.APPROVED,
            approved_by=approver_id,
            approved_at=datetime.now(timezone.utc),
        )
        await self.ledger.credit(request.employee_id, request.total_hours, request_id)
        return request

    async def reject(
        self,
        request_id: UUID,
        approver_id: UUID | None = None,
        reason: str | None = None,
    ) -> OvertimeRequest:
        return await self._transition(
            request_id,
            OvertimeStatus.REJECTED,
            approved_by=approver_id,
            rejection_reason=reason,
        )

    async def cancel(self, request_id: UUID, actor_id: UUID) -> OvertimeRequest:
        """Cancel a pending request; only the filing employee may do so."""
        request = await self.get_request(request_id)
        if request.employee_id != actor_id:
            raise OvertimeOwnershipError(request_id, actor_id)
        return await self._transition(
            request_id,
            OvertimeStatus.CANCELLED,
            extra_filter=OvertimeRequest.employee_id == actor_id,
        )

    async def _transition(
        self,
        request_id: UUID,
        to_status: OvertimeStatus,
        extra_filter=None,
        **values,
    ) -> OvertimeRequest:
        conditions = [
            OvertimeRequest.overtime_request_id == request_id,
            OvertimeRequest.status == OvertimeStatus.PENDING.value,
        ]
        if extra_filter is not None:
            conditions.append(extra_filter)

        result = await self.session.execute(
            update(OvertimeRequest)
            .where(*conditions)
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )

        request = await self.get_request(request_id)
        await self.session.refresh(request)
        if result.rowcount == 0:
            OvertimeStateMachine.validate_transition(request.status, to_status.value)
            raise InvalidTransitionError(
                request.status, to_status.value, "request changed concurrently"
            )

        logger.info("Overtime request %s -> %s", request_id, to_status.value)
        return request
