"""Tests for earnings calculation."""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from ph_payroll.calculators.earnings import EarningsCalculator, overtime_multiplier
from ph_payroll.calculators.types import (
    AttendanceSummary,
    DailyAttendance,
    DayType,
    EmployeeProfile,
    PayPeriod,
)


def summary_with(employee: EmployeeProfile, period: PayPeriod, *days: DailyAttendance) -> AttendanceSummary:
    return AttendanceSummary(employee_id=employee.employee_id, period=period, days=list(days))


def attendance(offset: int, day_type: DayType = DayType.REGULAR, **hours) -> DailyAttendance:
    values = {name: Decimal(str(value)) for name, value in hours.items()}
    return DailyAttendance(work_date=date(2025, 1, 6) + timedelta(days=offset), day_type=day_type, **values)


def line(breakdown, code: str):
    return next(item for item in breakdown.lines if item.code == code)


@pytest.fixture
def calculator() -> EarningsCalculator:
    return EarningsCalculator()


class TestRates:
    def test_hourly_rate_from_monthly(self, calculator, employee):
        assert calculator.hourly_rate(employee) == Decimal("125")

    def test_hourly_rate_from_daily(self, calculator, employee):
        daily_paid = replace(employee, monthly_rate=None, daily_rate=Decimal("600"))
        assert calculator.hourly_rate(daily_paid) == Decimal("75")


class TestEarningLines:
    """Test earning lines per day type."""

    def test_regular_hours(self, calculator, employee, period):
        summary = summary_with(employee, period, attendance(0, regular_hours=8))
        breakdown = calculator.calculate(employee, summary)

        reg = line(breakdown, "REG")
        assert reg.amount == Decimal("1000.00")
        assert reg.quantity == Decimal("8")
        assert reg.rate == Decimal("125.0000")
        assert breakdown.gross == Decimal("1000.00")
        assert breakdown.daily_rate == Decimal("1000.00")

    def test_regular_overtime(self, calculator, employee, period):
        summary = summary_with(employee, period, attendance(0, regular_hours=8, overtime_hours=2))
        breakdown = calculator.calculate(employee, summary)
        # 2 x 125 x 1.25
        assert line(breakdown, "REG_OT").amount == Decimal("312.50")
        assert breakdown.gross == Decimal("1312.50")

    def test_rest_day_premium_and_overtime(self, calculator, employee, period):
        summary = summary_with(
            employee,
            period,
            attendance(6, DayType.REST_DAY, regular_hours=8, overtime_hours=1),
        )
        breakdown = calculator.calculate(employee, summary)
        assert line(breakdown, "RD").amount == Decimal("1300.00")
        # 125 x 1.3 x 1.3
        assert line(breakdown, "RD_OT").amount == Decimal("211.25")

    @pytest.mark.parametrize(
        ("day_type", "code", "amount"),
        [
            (DayType.SPECIAL_HOLIDAY, "SH", "1300.00"),
            (DayType.REGULAR_HOLIDAY, "RH", "2000.00"),
            (DayType.REST_DAY_SPECIAL_HOLIDAY, "RD_SH", "1500.00"),
            (DayType.REST_DAY_REGULAR_HOLIDAY, "RD_RH", "2600.00"),
        ],
    )
    def test_holiday_premiums(self, calculator, employee, period, day_type, code, amount):
        summary = summary_with(employee, period, attendance(2, day_type, regular_hours=8))
        breakdown = calculator.calculate(employee, summary)
        assert line(breakdown, code).amount == Decimal(amount)

    def test_hours_summed_before_rounding(self, calculator, employee, period):
        summary = summary_with(
            employee,
            period,
            attendance(0, regular_hours=8),
            attendance(1, regular_hours=8),
            attendance(2, regular_hours=4),
        )
        breakdown = calculator.calculate(employee, summary)
        reg_lines = [item for item in breakdown.lines if item.code == "REG"]
        assert len(reg_lines) == 1
        assert reg_lines[0].quantity == Decimal("20")
        assert reg_lines[0].amount == Decimal("2500.00")

    def test_unworked_holiday_pay(self, calculator, employee, period):
        summary = summary_with(
            employee, period, attendance(2, DayType.REGULAR_HOLIDAY, holiday_pay_hours=8)
        )
        breakdown = calculator.calculate(employee, summary)
        assert line(breakdown, "RH_UNWORKED").amount == Decimal("1000.00")
        assert not any(item.code == "RH" for item in breakdown.lines)

    def test_unworked_special_holiday_pay(self, calculator, employee, period):
        summary = summary_with(
            employee, period, attendance(2, DayType.SPECIAL_HOLIDAY, holiday_pay_hours=8)
        )
        breakdown = calculator.calculate(employee, summary)
        assert line(breakdown, "SH_UNWORKED").amount == Decimal("1000.00")
        assert not any(item.code == "RH_UNWORKED" for item in breakdown.lines)

    def test_night_differential(self, calculator, employee, period):
        summary = summary_with(
            employee, period, attendance(1, regular_hours=7, night_diff_hours=7)
        )
        breakdown = calculator.calculate(employee, summary)
        # 7 x 125 x 0.1
        assert line(breakdown, "ND").amount == Decimal("87.50")

    def test_no_hours_no_lines(self, calculator, employee, period):
        breakdown = calculator.calculate(employee, summary_with(employee, period))
        assert breakdown.lines == []
        assert breakdown.gross == Decimal("0.00")


class TestOvertimeMultiplier:
    def test_regular_day(self):
        assert overtime_multiplier(DayType.REGULAR) == Decimal("1.25")

    def test_premium_days_stack(self):
        assert overtime_multiplier(DayType.REGULAR_HOLIDAY) == Decimal("2.6")
        assert overtime_multiplier(DayType.REST_DAY_REGULAR_HOLIDAY) == Decimal("3.38")
