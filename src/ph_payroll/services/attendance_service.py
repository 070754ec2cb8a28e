"""Loads attendance inputs for one employee and period."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.attendance import AttendanceAggregator
from ph_payroll.calculators.types import (
    MANILA_TZ,
    ApprovedOvertime,
    AttendanceCorrection,
    AttendanceSummary,
    ClockEntry,
    CorrectionStatus,
    Holiday,
    HolidayType,
    OvertimeStatus,
    PayPeriod,
    PayPolicy,
    WorkSchedule,
)
from ph_payroll.models import (
    Employee,
    FailureToLog,
    OvertimeRequest,
    ScheduleDay,
    TimeClockEntry,
)
from ph_payroll.models import Holiday as HolidayRow


def local_day_start_utc(day: date) -> datetime:
    """UTC instant of local midnight starting ``day``."""
    return datetime.combine(day, time(0), tzinfo=MANILA_TZ).astimezone(timezone.utc)


@dataclass
class AttendanceInputs:
    """Everything the aggregator reads for one (employee, period)."""

    entries: list[ClockEntry] = field(default_factory=list)
    overtime: list[ApprovedOvertime] = field(default_factory=list)
    corrections: list[AttendanceCorrection] = field(default_factory=list)
    holidays: list[Holiday] = field(default_factory=list)
    schedule: WorkSchedule = field(default_factory=WorkSchedule)


class AttendanceService:
    """Reads clock, overtime, correction, holiday and schedule rows.

    The load window starts one day before the period so the aggregator can
    check regular-holiday eligibility on the first day.
    """

    def __init__(self, session: AsyncSession, policy: PayPolicy | None = None):
        self.session = session
        self.aggregator = AttendanceAggregator(policy)

    async def load_inputs(self, employee: Employee, period: PayPeriod) -> AttendanceInputs:
        window_start = period.start - timedelta(days=1)
        employee_id = employee.employee_id

        entry_rows = await self.session.execute(
            select(TimeClockEntry)
            .where(
                TimeClockEntry.employee_id == employee_id,
                TimeClockEntry.clock_in_time >= local_day_start_utc(window_start),
                TimeClockEntry.clock_in_time < local_day_start_utc(period.end + timedelta(days=1)),
            )
            .order_by(TimeClockEntry.clock_in_time)
        )
        overtime_rows = await self.session.execute(
            select(OvertimeRequest).where(
                OvertimeRequest.employee_id == employee_id,
                OvertimeRequest.status == OvertimeStatus.APPROVED.value,
                OvertimeRequest.ot_date >= period.start,
                OvertimeRequest.ot_date <= period.end,
            )
        )
        correction_rows = await self.session.execute(
            select(FailureToLog).where(
                FailureToLog.employee_id == employee_id,
                FailureToLog.status == CorrectionStatus.APPROVED.value,
                FailureToLog.missed_date >= window_start,
                FailureToLog.missed_date <= period.end,
            )
        )
        holiday_rows = await self.session.execute(
            select(HolidayRow).where(
                HolidayRow.holiday_date >= window_start,
                HolidayRow.holiday_date <= period.end,
            )
        )
        schedule_rows = await self.session.execute(
            select(ScheduleDay).where(
                ScheduleDay.employee_id == employee_id,
                ScheduleDay.schedule_date >= window_start,
                ScheduleDay.schedule_date <= period.end,
            )
        )

        return AttendanceInputs(
            entries=[row.to_domain() for row in entry_rows.scalars()],
            overtime=[row.to_approved() for row in overtime_rows.scalars()],
            corrections=[row.to_domain() for row in correction_rows.scalars()],
            holidays=[
                Holiday(
                    holiday_date=row.holiday_date,
                    name=row.name,
                    holiday_type=HolidayType(row.holiday_type),
                )
                for row in holiday_rows.scalars()
            ],
            schedule=WorkSchedule(
                rest_weekdays=frozenset(employee.rest_weekdays or ()),
                overrides={row.schedule_date: row.is_rest_day for row in schedule_rows.scalars()},
            ),
        )

    async def summarize(self, employee: Employee, period: PayPeriod) -> AttendanceSummary:
        inputs = await self.load_inputs(employee, period)
        return self.aggregator.aggregate(
            employee.to_profile(),
            period,
            inputs.entries,
            overtime=inputs.overtime,
            schedule=inputs.schedule,
            holidays=inputs.holidays,
            corrections=inputs.corrections,
        )
