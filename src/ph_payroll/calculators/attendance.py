"""Attendance aggregation: clock entries to categorized hour buckets."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, Decimal

from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.types import (
    MANILA_TZ,
    ZERO,
    ApprovedOvertime,
    AttendanceCorrection,
    AttendanceSummary,
    ClockEntry,
    ClockEntryStatus,
    CorrectionType,
    DailyAttendance,
    DayType,
    EmployeeProfile,
    Holiday,
    HolidayType,
    PayPeriod,
    PayPolicy,
    WorkSchedule,
)
from ph_payroll.errors import AttendanceValidationError

logger = logging.getLogger(__name__)

HOUR_PRECISION = Decimal("0.01")

Interval = tuple[datetime, datetime]


def _hours(delta: timedelta) -> Decimal:
    return Decimal(int(delta.total_seconds())) / Decimal(3600)


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Union overlapping or touching intervals."""
    merged: list[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


class AttendanceAggregator:
    """Builds per-day and period-total hour buckets for one employee.

    Shifts are grouped by the local date of clock-in. Overtime is paid only
    from approved overtime requests; worked time beyond the regular day that
    is not covered by a request is reported but not paid.
    """

    def __init__(self, policy: PayPolicy | None = None):
        self.policy = policy or PayPolicy()

    def aggregate(
        self,
        employee: EmployeeProfile,
        period: PayPeriod,
        entries: Iterable[ClockEntry],
        overtime: Iterable[ApprovedOvertime] = (),
        schedule: WorkSchedule | None = None,
        holidays: Iterable[Holiday] = (),
        corrections: Iterable[AttendanceCorrection] = (),
    ) -> AttendanceSummary:
        """Aggregate a period.

        ``entries`` may include the day before the period start; it is used
        only to decide regular-holiday pay eligibility.
        """
        schedule = schedule or WorkSchedule(rest_weekdays=employee.rest_weekdays)
        holiday_types = self._index_holidays(holidays)
        shifts, in_progress = self._build_shifts(employee, entries, corrections)

        overtime_by_date: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for ot in overtime:
            overtime_by_date[ot.ot_date] += ot.hours

        summary = AttendanceSummary(employee_id=employee.employee_id, period=period)
        for day in PeriodCalculator.dates(period):
            day_type = DayType.classify(schedule.is_rest_day(day), holiday_types.get(day))
            intervals = merge_intervals(shifts.get(day, []))
            worked = sum((_hours(end - start) for start, end in intervals), ZERO)
            regular, excess = self._split_worked(worked)

            daily = DailyAttendance(
                work_date=day,
                day_type=day_type,
                worked_hours=worked.quantize(HOUR_PRECISION),
                regular_hours=regular,
                unapproved_excess_hours=excess,
                shift_count=len(shifts.get(day, [])),
                in_progress=day in in_progress,
            )

            if employee.eligible_for_ot:
                daily.overtime_hours = overtime_by_date.get(day, ZERO).quantize(HOUR_PRECISION)
            if employee.eligible_for_night_diff:
                approved = min(daily.overtime_hours, excess)
                paid = self._drop_tail(intervals, excess - approved)
                night = sum((self._night_overlap(start, end) for start, end in paid), ZERO)
                # Capped at paid hours; the unpaid break lies inside the kept intervals
                daily.night_diff_hours = self._floor(min(night, regular + approved))

            if self._pays_unworked(day_type) and worked == 0:
                prev_worked = sum(
                    (_hours(end - start) for start, end in merge_intervals(
                        shifts.get(day - timedelta(days=1), [])
                    )),
                    ZERO,
                )
                prev_regular, _ = self._split_worked(prev_worked)
                if prev_regular >= self.policy.hours_per_day:
                    daily.holiday_pay_hours = self.policy.hours_per_day.quantize(HOUR_PRECISION)

            daily.is_absent = (
                day_type == DayType.REGULAR
                and daily.shift_count == 0
                and not daily.in_progress
            )
            summary.days.append(daily)

        if summary.in_progress_dates:
            logger.info(
                "Employee %s has in-progress shifts on %s",
                employee.employee_id,
                ", ".join(d.isoformat() for d in summary.in_progress_dates),
            )
        return summary

    def _pays_unworked(self, day_type: DayType) -> bool:
        if day_type.is_special_holiday:
            return self.policy.pay_unworked_special_holiday
        return day_type.is_regular_holiday

    @staticmethod
    def _index_holidays(holidays: Iterable[Holiday]) -> dict[date, HolidayType]:
        index: dict[date, HolidayType] = {}
        for holiday in holidays:
            # A regular holiday outranks a special one declared the same day.
            if index.get(holiday.holiday_date) != HolidayType.REGULAR:
                index[holiday.holiday_date] = holiday.holiday_type
        return index

    def _build_shifts(
        self,
        employee: EmployeeProfile,
        entries: Iterable[ClockEntry],
        corrections: Iterable[AttendanceCorrection],
    ) -> tuple[dict[date, list[Interval]], set[date]]:
        """Apply corrections to raw entries and group completed shifts by local date."""
        by_entry: dict[object, AttendanceCorrection] = {}
        standalone: list[AttendanceCorrection] = []
        for correction in corrections:
            if correction.employee_id != employee.employee_id:
                raise AttendanceValidationError(
                    f"correction {correction.correction_id} belongs to another employee"
                )
            if correction.time_entry_id is None:
                standalone.append(correction)
            else:
                by_entry[correction.time_entry_id] = correction

        shifts: dict[date, list[Interval]] = defaultdict(list)
        in_progress: set[date] = set()

        for entry in entries:
            if entry.employee_id != employee.employee_id:
                raise AttendanceValidationError(
                    f"clock entry {entry.entry_id} belongs to another employee"
                )
            correction = by_entry.pop(entry.entry_id, None)
            if entry.status == ClockEntryStatus.REJECTED and correction is None:
                continue

            clock_in, clock_out = entry.clock_in, entry.clock_out
            if correction is not None:
                if correction.entry_type in (CorrectionType.IN, CorrectionType.BOTH):
                    clock_in = correction.clock_in
                if correction.entry_type in (CorrectionType.OUT, CorrectionType.BOTH):
                    clock_out = correction.clock_out

            local_date = clock_in.astimezone(MANILA_TZ).date()
            if clock_out is None:
                in_progress.add(local_date)
                continue
            if clock_out <= clock_in:
                raise AttendanceValidationError(
                    f"corrected shift for entry {entry.entry_id} ends before it starts",
                    field="clock_out",
                )
            shifts[local_date].append((clock_in, clock_out))

        for correction in list(by_entry.values()) + standalone:
            if correction.clock_in is None or correction.clock_out is None:
                logger.warning(
                    "Correction %s references entry %s outside the loaded range; skipped",
                    correction.correction_id,
                    correction.time_entry_id,
                )
                continue
            local_date = correction.clock_in.astimezone(MANILA_TZ).date()
            shifts[local_date].append((correction.clock_in, correction.clock_out))

        return shifts, in_progress

    def _split_worked(self, worked: Decimal) -> tuple[Decimal, Decimal]:
        """Return (regular, unapproved excess) hours after the unpaid break."""
        policy = self.policy
        net = worked
        if worked > policy.break_threshold_hours:
            net = worked - policy.unpaid_break_hours
        regular = min(net, policy.hours_per_day)
        excess = max(net - policy.hours_per_day, ZERO)
        return self._floor(regular), self._floor(excess)

    @staticmethod
    def _drop_tail(intervals: list[Interval], hours: Decimal) -> list[Interval]:
        """Cut ``hours`` off the end of the day's merged intervals.

        Unapproved time past the regular day is the last part clocked.
        """
        remaining = timedelta(seconds=int(hours * 3600))
        kept = list(intervals)
        while kept and remaining > timedelta(0):
            start, end = kept.pop()
            if end - start > remaining:
                kept.append((start, end - remaining))
                break
            remaining -= end - start
        return kept

    def _night_overlap(self, start: datetime, end: datetime) -> Decimal:
        """Hours of [start, end) inside the local night window."""
        policy = self.policy
        local_start = start.astimezone(MANILA_TZ)
        local_end = end.astimezone(MANILA_TZ)
        total = timedelta(0)
        day = local_start.date() - timedelta(days=1)
        while day <= local_end.date():
            window_start = datetime.combine(day, policy.night_start, tzinfo=MANILA_TZ)
            window_end = datetime.combine(day + timedelta(days=1), policy.night_end, tzinfo=MANILA_TZ)
            overlap = min(local_end, window_end) - max(local_start, window_start)
            if overlap > timedelta(0):
                total += overlap
            day += timedelta(days=1)
        return _hours(total)

    def _floor(self, hours: Decimal) -> Decimal:
        step = self.policy.hour_granularity
        floored = (hours / step).to_integral_value(rounding=ROUND_FLOOR) * step
        return floored.quantize(HOUR_PRECISION)
