"""Overtime window validation and normalization."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ph_payroll.calculators.types import OvertimeWindow
from ph_payroll.errors import OvertimeValidationError

HOURS_PRECISION = Decimal("0.01")


class OvertimeResolver:
    """Turns a submitted overtime request into a normalized window.

    A request whose end time is not after its start time, and which has no
    explicit end date, runs into the next calendar day.
    """

    @staticmethod
    def resolve(
        ot_date: date | None,
        start_time: time | None,
        end_time: time | None,
        end_date: date | None = None,
    ) -> OvertimeWindow:
        if ot_date is None:
            raise OvertimeValidationError("request date is required", field="ot_date")
        if start_time is None:
            raise OvertimeValidationError("start time is required", field="start_time")
        if end_time is None:
            raise OvertimeValidationError("end time is required", field="end_time")

        if end_date is None:
            end_date = ot_date + timedelta(days=1) if end_time <= start_time else ot_date
        elif end_date < ot_date:
            raise OvertimeValidationError("end date precedes request date", field="end_date")

        starts_at = datetime.combine(ot_date, start_time)
        ends_at = datetime.combine(end_date, end_time)
        seconds = Decimal(int((ends_at - starts_at).total_seconds()))
        total_hours = (seconds / Decimal(3600)).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)
        if total_hours <= 0:
            raise OvertimeValidationError(
                f"overtime duration must be positive, got {total_hours} hours",
                field="end_time",
            )

        return OvertimeWindow(
            ot_date=ot_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            total_hours=total_hours,
        )
