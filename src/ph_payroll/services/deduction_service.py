"""Deduction record unit of work with optimistic versioning."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.contributions import ContributionCalculator, split_for_period
from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.tables import StatutoryTableCache
from ph_payroll.calculators.types import DeductionInputs, PayPeriod, PayPolicy
from ph_payroll.errors import DeductionVersionConflictError, NotFoundError
from ph_payroll.models import DeductionRecord, Employee
from ph_payroll.services.statutory_service import StatutoryTableService

logger = logging.getLogger(__name__)

INPUT_FIELDS = tuple(f.name for f in fields(DeductionInputs))


@dataclass(frozen=True)
class DeductionView:
    """Deduction entries as loaded, with the version to send back on save.

    ``version`` is 0 when no record exists yet.
    """

    employee_id: UUID
    period: PayPeriod
    inputs: DeductionInputs
    version: int
    computed_sss_wisp: Decimal
    updated_at: datetime | None = None


class DeductionService:
    """Loads and saves per-period deduction entries.

    A save is one unit of work: it fills in the auto-computed WISP share,
    then writes with ``UPDATE ... WHERE version = :expected``. A stale
    ``expected_version`` raises DeductionVersionConflictError instead of
    overwriting someone else's edit.
    """

    def __init__(
        self,
        session: AsyncSession,
        periods: PeriodCalculator,
        policy: PayPolicy | None = None,
        cache: StatutoryTableCache | None = None,
    ):
        self.session = session
        self.periods = periods
        self.policy = policy or PayPolicy()
        self.tables = StatutoryTableService(session, cache)

    async def _get_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _get_record(self, employee_id: UUID, period_start: date) -> DeductionRecord | None:
        result = await self.session.execute(
            select(DeductionRecord).where(
                DeductionRecord.employee_id == employee_id,
                DeductionRecord.period_start == period_start,
            )
        )
        return result.scalar_one_or_none()

    async def computed_wisp(self, employee: Employee, period: PayPeriod) -> Decimal:
        """Employee WISP share for ``period`` from the effective SSS table."""
        tables = await self.tables.tables_for(period.end)
        calculator = ContributionCalculator(tables)
        monthly_salary = employee.to_profile().monthly_salary_credit(
            self.policy.working_days_per_month
        )
        monthly_wisp = calculator.sss(monthly_salary).wisp_employee_share
        return split_for_period(monthly_wisp, period, self.periods)

    async def load(self, employee_id: UUID, period_start: date) -> DeductionView:
        period = self.periods.period_starting(period_start)
        employee = await self._get_employee(employee_id)
        wisp = await self.computed_wisp(employee, period)
        record = await self._get_record(employee_id, period.start)
        if record is None:
            return DeductionView(
                employee_id=employee_id,
                period=period,
                inputs=DeductionInputs(),
                version=0,
                computed_sss_wisp=wisp,
            )
        return DeductionView(
            employee_id=employee_id,
            period=period,
            inputs=record.to_inputs(),
            version=record.version,
            computed_sss_wisp=wisp,
            updated_at=record.updated_at,
        )

    async def save(
        self,
        employee_id: UUID,
        period_start: date,
        inputs: DeductionInputs,
        expected_version: int,
        actor_id: UUID | None = None,
    ) -> DeductionView:
        """Write deduction entries if nobody else saved since ``expected_version``.

        Pass ``expected_version=0`` to create the record.
        """
        period = self.periods.period_starting(period_start)
        employee = await self._get_employee(employee_id)
        wisp = await self.computed_wisp(employee, period)
        if inputs.sss_wisp is None:
            inputs = replace(inputs, sss_wisp=wisp)
        values = {name: getattr(inputs, name) for name in INPUT_FIELDS}

        existing = await self._get_record(employee_id, period.start)
        if existing is None:
            if expected_version != 0:
                raise DeductionVersionConflictError(
                    employee_id, period.start, expected_version, None
                )
            record = DeductionRecord(
                employee_id=employee_id,
                period_start=period.start,
                version=1,
                updated_by=actor_id,
                **values,
            )
            self.session.add(record)
            try:
                await self.session.flush()
            except IntegrityError as exc:
                # Another writer created the record first
                raise DeductionVersionConflictError(
                    employee_id, period.start, expected_version, None
                ) from exc
            await self.session.refresh(record)
        else:
            result = await self.session.execute(
                update(DeductionRecord)
                .where(
                    DeductionRecord.deduction_record_id == existing.deduction_record_id,
                    DeductionRecord.version == expected_version,
                )
                .values(
                    version=expected_version + 1,
                    updated_by=actor_id,
                    updated_at=datetime.now(timezone.utc),
                    **values,
                )
                .execution_options(synchronize_session=False)
            )
            await self.session.refresh(existing)
            if result.rowcount == 0:
                raise DeductionVersionConflictError(
                    employee_id, period.start, expected_version, existing.version
                )
            record = existing

        logger.info(
            "Saved deductions for employee %s period %s at version %s",
            employee_id,
            period.start,
            record.version,
        )
        return DeductionView(
            employee_id=employee_id,
            period=period,
            inputs=record.to_inputs(),
            version=record.version,
            computed_sss_wisp=wisp,
            updated_at=record.updated_at,
        )
