"""Tests for overtime window resolution."""

from datetime import date, time
from decimal import Decimal

import pytest

from ph_payroll.calculators.overtime import OvertimeResolver
from ph_payroll.errors import OvertimeValidationError, PayrollValidationError


class TestOvertimeResolver:
    """Test normalization of overtime requests."""

    def test_same_day_window(self):
        """08:00 to 17:00 on one date is nine hours and stays on that date."""
        window = OvertimeResolver.resolve(date(2025, 1, 10), time(8, 0), time(17, 0))
        assert window.total_hours == Decimal("9.00")
        assert window.end_date == date(2025, 1, 10)
        assert window.spans_midnight is False

    def test_window_across_midnight(self):
        window = OvertimeResolver.resolve(date(2025, 1, 10), time(22, 0), time(2, 0))
        assert window.total_hours == Decimal("4.00")
        assert window.end_date == date(2025, 1, 11)
        assert window.spans_midnight is True
        assert window.ends_at > window.starts_at

    def test_partial_hours(self):
        window = OvertimeResolver.resolve(date(2025, 1, 10), time(17, 30), time(20, 15))
        assert window.total_hours == Decimal("2.75")

    def test_explicit_end_date(self):
        window = OvertimeResolver.resolve(
            date(2025, 1, 10), time(20, 0), time(1, 0), end_date=date(2025, 1, 11)
        )
        assert window.total_hours == Decimal("5.00")

    @pytest.mark.parametrize("field", ["ot_date", "start_time", "end_time"])
    def test_missing_values_rejected(self, field: str):
        values = {
            "ot_date": date(2025, 1, 10),
            "start_time": time(18, 0),
            "end_time": time(20, 0),
        }
        values[field] = None
        with pytest.raises(OvertimeValidationError) as exc_info:
            OvertimeResolver.resolve(**values)
        assert exc_info.value.field == field

    def test_end_date_before_request_date(self):
        with pytest.raises(OvertimeValidationError) as exc_info:
            OvertimeResolver.resolve(
                date(2025, 1, 10), time(18, 0), time(20, 0), end_date=date(2025, 1, 9)
            )
        assert exc_info.value.field == "end_date"

    def test_non_positive_duration(self):
        with pytest.raises(OvertimeValidationError) as exc_info:
            OvertimeResolver.resolve(
                date(2025, 1, 10), time(18, 0), time(17, 0), end_date=date(2025, 1, 10)
            )
        assert exc_info.value.field == "end_time"

    def test_validation_error_is_payroll_validation_error(self):
        with pytest.raises(PayrollValidationError):
            OvertimeResolver.resolve(None, time(18, 0), time(20, 0))
