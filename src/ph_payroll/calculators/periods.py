"""Canonical bi-monthly pay period derivation."""

from __future__ import annotations

from datetime import date, timedelta

from ph_payroll.calculators.types import PayPeriod
from ph_payroll.errors import PeriodAlignmentError, PayrollValidationError

DEFAULT_ANCHOR = date(2025, 1, 6)
PERIOD_LENGTH_DAYS = 14


class PeriodCalculator:
    """Derives fixed 14-day pay periods anchored to a reference Monday.

    Periods tile the calendar in both directions from the anchor, so they are
    contiguous and non-overlapping and may cross month or year boundaries.
    """

    def __init__(self, anchor: date = DEFAULT_ANCHOR, length_days: int = PERIOD_LENGTH_DAYS):
        if anchor.weekday() != 0:
            raise PayrollValidationError("period anchor must be a Monday", field="anchor")
        if length_days <= 0:
            raise PayrollValidationError("period length must be positive", field="length_days")
        self.anchor = anchor
        self.length = timedelta(days=length_days)

    def period_containing(self, day: date) -> PayPeriod:
        """Return the period that contains ``day``."""
        index = (day - self.anchor).days // self.length.days
        start = self.anchor + index * self.length
        return PayPeriod(start=start, end=start + self.length - timedelta(days=1))

    def next_period(self, period: PayPeriod) -> PayPeriod:
        self.validate(period)
        return self.period_containing(period.end + timedelta(days=1))

    def previous_period(self, period: PayPeriod) -> PayPeriod:
        self.validate(period)
        return self.period_containing(period.start - timedelta(days=1))

    def validate(self, period: PayPeriod) -> None:
        """Raise PeriodAlignmentError unless ``period`` is canonical."""
        if self.period_containing(period.start) != period:
            raise PeriodAlignmentError(period.start, period.end)

    def period_starting(self, start: date) -> PayPeriod:
        """Return the canonical period that begins on ``start``."""
        period = self.period_containing(start)
        if period.start != start:
            raise PeriodAlignmentError(start)
        return period

    @staticmethod
    def contains(period: PayPeriod, day: date) -> bool:
        return period.start <= day <= period.end

    @staticmethod
    def dates(period: PayPeriod) -> list[date]:
        return [period.start + timedelta(days=i) for i in range(period.length_days)]

    def periods_ending_in_month(self, year: int, month: int) -> list[PayPeriod]:
        """Periods whose end date falls in the given month, in order."""
        first = date(year, month, 1)
        periods: list[PayPeriod] = []
        period = self.period_containing(first)
        while period.end.month == month and period.end.year == year:
            periods.append(period)
            period = self.next_period(period)
        return periods

    def period_index_in_year(self, period: PayPeriod) -> int:
        """1-based sequence of ``period`` among periods ending in its year."""
        self.validate(period)
        first = self.period_containing(date(period.year, 1, 1))
        return (period.start - first.start).days // self.length.days + 1

    @staticmethod
    def format_period(period: PayPeriod) -> str:
        """Display label, e.g. ``Jan 6 - Jan 19, 2025``."""
        start = f"{period.start:%b} {period.start.day}"
        end = f"{period.end:%b} {period.end.day}, {period.end.year}"
        if period.start.year != period.end.year:
            start = f"{start}, {period.start.year}"
        return f"{start} - {end}"
