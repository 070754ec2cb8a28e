"""Earnings from categorized attendance hours."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ph_payroll.calculators.line_builder import LineItemBuilder
from ph_payroll.calculators.types import (
    AttendanceSummary,
    DayType,
    EmployeeProfile,
    PayLine,
    PayPolicy,
)

# Premium multipliers on the hourly rate, by day type.
DAY_MULTIPLIERS: dict[DayType, Decimal] = {
    DayType.REGULAR: Decimal("1.0"),
    DayType.REST_DAY: Decimal("1.3"),
    DayType.SPECIAL_HOLIDAY: Decimal("1.3"),
    DayType.REGULAR_HOLIDAY: Decimal("2.0"),
    DayType.REST_DAY_SPECIAL_HOLIDAY: Decimal("1.5"),
    DayType.REST_DAY_REGULAR_HOLIDAY: Decimal("2.6"),
}

REGULAR_OT_MULTIPLIER = Decimal("1.25")
PREMIUM_OT_FACTOR = Decimal("1.3")
NIGHT_DIFF_RATE = Decimal("0.1")

LINE_CODES: dict[DayType, tuple[str, str]] = {
    DayType.REGULAR: ("REG", "Regular pay"),
    DayType.REST_DAY: ("RD", "Rest day"),
    DayType.SPECIAL_HOLIDAY: ("SH", "Special holiday"),
    DayType.REGULAR_HOLIDAY: ("RH", "Regular holiday"),
    DayType.REST_DAY_SPECIAL_HOLIDAY: ("RD_SH", "Rest day + special holiday"),
    DayType.REST_DAY_REGULAR_HOLIDAY: ("RD_RH", "Rest day + regular holiday"),
}


def overtime_multiplier(day_type: DayType) -> Decimal:
    """OT multiplier: 1.25 on regular days, day premium x 1.3 otherwise."""
    if day_type == DayType.REGULAR:
        return REGULAR_OT_MULTIPLIER
    return DAY_MULTIPLIERS[day_type] * PREMIUM_OT_FACTOR


@dataclass
class EarningsBreakdown:
    """Earning lines for a period with their hourly basis."""

    hourly_rate: Decimal
    daily_rate: Decimal
    lines: list[PayLine] = field(default_factory=list)

    @property
    def gross(self) -> Decimal:
        return LineItemBuilder.calculate_gross_from_lines(self.lines)


class EarningsCalculator:
    """Turns hour buckets into earning lines.

    Hours are summed per day type over the period before multiplying, then
    each line is rounded to cents once.
    """

    def __init__(self, policy: PayPolicy | None = None):
        self.policy = policy or PayPolicy()

    def hourly_rate(self, employee: EmployeeProfile) -> Decimal:
        daily = employee.daily_rate_basis(self.policy.working_days_per_month)
        return daily / self.policy.hours_per_day

    def calculate(self, employee: EmployeeProfile, summary: AttendanceSummary) -> EarningsBreakdown:
        daily_rate = employee.daily_rate_basis(self.policy.working_days_per_month)
        rate = self.hourly_rate(employee)
        breakdown = EarningsBreakdown(
            hourly_rate=LineItemBuilder.round_to_cents(rate),
            daily_rate=LineItemBuilder.round_to_cents(daily_rate),
        )

        regular_by_type = summary.regular_hours_by_day_type()
        overtime_by_type = summary.overtime_hours_by_day_type()

        for day_type in DayType:
            code, label = LINE_CODES[day_type]
            hours = regular_by_type[day_type]
            if hours > 0:
                multiplier = DAY_MULTIPLIERS[day_type]
                breakdown.lines.append(
                    LineItemBuilder.create_earning_line(
                        code=code,
                        description=label,
                        amount=hours * rate * multiplier,
                        quantity=hours,
                        rate=rate,
                        multiplier=multiplier,
                    )
                )
            ot_hours = overtime_by_type[day_type]
            if ot_hours > 0:
                multiplier = overtime_multiplier(day_type)
                breakdown.lines.append(
                    LineItemBuilder.create_earning_line(
                        code=f"{code}_OT",
                        description=f"{label} overtime",
                        amount=ot_hours * rate * multiplier,
                        quantity=ot_hours,
                        rate=rate,
                        multiplier=multiplier,
                    )
                )

        special_hours = summary.total_special_holiday_pay_hours
        for code, description, hours in (
            (
                "RH_UNWORKED",
                "Regular holiday pay (unworked)",
                summary.total_holiday_pay_hours - special_hours,
            ),
            ("SH_UNWORKED", "Special holiday pay (unworked)", special_hours),
        ):
            if hours > 0:
                breakdown.lines.append(
                    LineItemBuilder.create_earning_line(
                        code=code,
                        description=description,
                        amount=hours * rate,
                        quantity=hours,
                        rate=rate,
                        multiplier=Decimal("1.0"),
                    )
                )

        night_hours = summary.total_night_diff_hours
        if night_hours > 0:
            breakdown.lines.append(
                LineItemBuilder.create_earning_line(
                    code="ND",
                    description="Night differential",
                    amount=night_hours * rate * NIGHT_DIFF_RATE,
                    quantity=night_hours,
                    rate=rate,
                    multiplier=NIGHT_DIFF_RATE,
                )
            )

        return breakdown
