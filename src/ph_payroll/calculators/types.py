"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from ph_payroll.errors import AttendanceValidationError, PayrollValidationError

if TYPE_CHECKING:
    from ph_payroll.config import Settings

# Philippine Standard Time; no DST.
MANILA_TZ = timezone(timedelta(hours=8), "Asia/Manila")

ZERO = Decimal("0")


class HolidayType(str, Enum):
    """Holiday classification."""

    REGULAR = "regular"
    SPECIAL = "special"


class DayType(str, Enum):
    """Pay classification of a calendar day; compound types stack premiums."""

    REGULAR = "regular"
    REST_DAY = "rest_day"
    SPECIAL_HOLIDAY = "special_holiday"
    REGULAR_HOLIDAY = "regular_holiday"
    REST_DAY_SPECIAL_HOLIDAY = "rest_day_special_holiday"
    REST_DAY_REGULAR_HOLIDAY = "rest_day_regular_holiday"

    @classmethod
    def classify(cls, is_rest_day: bool, holiday_type: HolidayType | None) -> DayType:
        if holiday_type == HolidayType.REGULAR:
            return cls.REST_DAY_REGULAR_HOLIDAY if is_rest_day else cls.REGULAR_HOLIDAY
        if holiday_type == HolidayType.SPECIAL:
            return cls.REST_DAY_SPECIAL_HOLIDAY if is_rest_day else cls.SPECIAL_HOLIDAY
        return cls.REST_DAY if is_rest_day else cls.REGULAR

    @property
    def is_regular_holiday(self) -> bool:
        return self in (DayType.REGULAR_HOLIDAY, DayType.REST_DAY_REGULAR_HOLIDAY)

    @property
    def is_special_holiday(self) -> bool:
        return self in (DayType.SPECIAL_HOLIDAY, DayType.REST_DAY_SPECIAL_HOLIDAY)


class ClockEntryStatus(str, Enum):
    """Time clock entry lifecycle."""

    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_APPROVED = "auto_approved"


class OvertimeStatus(str, Enum):
    """Overtime request lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class CorrectionStatus(str, Enum):
    """Failure-to-log correction lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class CorrectionType(str, Enum):
    """Which clock time a failure-to-log correction supplies."""

    IN = "in"
    OUT = "out"
    BOTH = "both"


class PayslipStatus(str, Enum):
    """Payslip lifecycle."""

    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class TaxFrequency(str, Enum):
    """Withholding tax table frequency."""

    MONTHLY = "monthly"
    SEMI_MONTHLY = "semi_monthly"


class LineType(str, Enum):
    """Payslip line item types."""

    EARNING = "EARNING"
    ALLOWANCE = "ALLOWANCE"
    THIRTEENTH_MONTH = "THIRTEENTH_MONTH"
    CONTRIBUTION = "CONTRIBUTION"
    TAX = "TAX"
    DEDUCTION = "DEDUCTION"
    EMPLOYER_CONTRIBUTION = "EMPLOYER_CONTRIBUTION"


@dataclass(frozen=True)
class PayPeriod:
    """A pay period, inclusive on both ends."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise PayrollValidationError("period end precedes start", field="end")

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def year(self) -> int:
        """Calendar year a payslip for this period is reported in."""
        return self.end.year


@dataclass(frozen=True)
class PayPolicy:
    """Company attendance and rate-basis rules."""

    hours_per_day: Decimal = Decimal("8")
    unpaid_break_hours: Decimal = Decimal("1")
    break_threshold_hours: Decimal = Decimal("5")
    hour_granularity: Decimal = Decimal("1")
    working_days_per_month: int = 22
    night_start: time = time(22, 0)
    night_end: time = time(6, 0)
    # Special non-working days are "no work, no pay" unless the company pays them
    pay_unworked_special_holiday: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PayPolicy:
        return cls(
            working_days_per_month=settings.working_days_per_month,
            pay_unworked_special_holiday=settings.pay_unworked_special_holiday,
        )


@dataclass(frozen=True)
class EmployeeProfile:
    """Employee data frozen for the duration of a payroll computation."""

    employee_id: UUID
    employee_code: str
    first_name: str
    last_name: str
    monthly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    tin: str | None = None
    sss_number: str | None = None
    philhealth_number: str | None = None
    pagibig_number: str | None = None
    eligible_for_ot: bool = True
    eligible_for_night_diff: bool = True
    rest_weekdays: frozenset[int] = frozenset({6})

    def __post_init__(self) -> None:
        for name in ("monthly_rate", "daily_rate"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise PayrollValidationError("must not be negative", field=name)
        if not self.monthly_rate and not self.daily_rate:
            raise PayrollValidationError(
                "employee needs a monthly or daily rate", field="monthly_rate"
            )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def daily_rate_basis(self, working_days_per_month: int = 22) -> Decimal:
        """Daily rate, derived from the monthly rate when not set directly."""
        if self.daily_rate:
            return self.daily_rate
        return self.monthly_rate / Decimal(working_days_per_month)

    def monthly_salary_credit(self, working_days_per_month: int = 22) -> Decimal:
        """Monthly salary used for statutory bracket lookups."""
        if self.monthly_rate:
            return self.monthly_rate
        return self.daily_rate * Decimal(working_days_per_month)


def _require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise AttendanceValidationError("timestamp must be timezone-aware", field=name)


@dataclass(frozen=True)
class ClockEntry:
    """A raw time clock entry."""

    entry_id: UUID
    employee_id: UUID
    clock_in: datetime
    clock_out: datetime | None
    status: ClockEntryStatus
    location: str | None = None
    is_manual_entry: bool = False

    def __post_init__(self) -> None:
        _require_aware(self.clock_in, "clock_in")
        if self.clock_out is not None:
            _require_aware(self.clock_out, "clock_out")
            if self.clock_out <= self.clock_in:
                raise AttendanceValidationError(
                    "clock-out must be after clock-in", field="clock_out"
                )

    @property
    def local_date(self) -> date:
        return self.clock_in.astimezone(MANILA_TZ).date()


@dataclass(frozen=True)
class AttendanceCorrection:
    """An approved failure-to-log correction."""

    correction_id: UUID
    employee_id: UUID
    missed_date: date
    entry_type: CorrectionType
    clock_in: datetime | None = None
    clock_out: datetime | None = None
    time_entry_id: UUID | None = None

    def __post_init__(self) -> None:
        needs_in = self.entry_type in (CorrectionType.IN, CorrectionType.BOTH)
        needs_out = self.entry_type in (CorrectionType.OUT, CorrectionType.BOTH)
        if self.time_entry_id is None:
            # Stands alone as a synthetic shift.
            needs_in = needs_out = True
        if needs_in and self.clock_in is None:
            raise AttendanceValidationError("clock-in time is required", field="clock_in")
        if needs_out and self.clock_out is None:
            raise AttendanceValidationError("clock-out time is required", field="clock_out")
        for name in ("clock_in", "clock_out"):
            value = getattr(self, name)
            if value is not None:
                _require_aware(value, name)
        if self.clock_in and self.clock_out and self.clock_out <= self.clock_in:
            raise AttendanceValidationError(
                "clock-out must be after clock-in", field="clock_out"
            )


@dataclass(frozen=True)
class Holiday:
    """A declared holiday."""

    holiday_date: date
    name: str
    holiday_type: HolidayType


@dataclass(frozen=True)
class WorkSchedule:
    """Rest days by weekday (Monday=0) with per-date overrides."""

    rest_weekdays: frozenset[int] = frozenset({6})
    overrides: dict[date, bool] = field(default_factory=dict)

    def is_rest_day(self, day: date) -> bool:
        if day in self.overrides:
            return self.overrides[day]
        return day.weekday() in self.rest_weekdays


@dataclass(frozen=True)
class OvertimeWindow:
    """A validated, normalized overtime window."""

    ot_date: date
    end_date: date
    start_time: time
    end_time: time
    total_hours: Decimal

    @property
    def spans_midnight(self) -> bool:
        return self.end_date > self.ot_date

    @property
    def starts_at(self) -> datetime:
        """Local (UTC+8) start of the window."""
        return datetime.combine(self.ot_date, self.start_time, tzinfo=MANILA_TZ)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.end_date, self.end_time, tzinfo=MANILA_TZ)


@dataclass(frozen=True)
class ApprovedOvertime:
    """Approved overtime hours credited to a work date."""

    ot_date: date
    hours: Decimal
    request_id: UUID | None = None


@dataclass
class DailyAttendance:
    """Hour buckets for one calendar day."""

    work_date: date
    day_type: DayType
    worked_hours: Decimal = ZERO
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    night_diff_hours: Decimal = ZERO
    unapproved_excess_hours: Decimal = ZERO
    holiday_pay_hours: Decimal = ZERO
    shift_count: int = 0
    in_progress: bool = False
    is_absent: bool = False


@dataclass
class AttendanceSummary:
    """Per-day and period-total hour buckets for one employee."""

    employee_id: UUID
    period: PayPeriod
    days: list[DailyAttendance] = field(default_factory=list)

    @property
    def total_regular_hours(self) -> Decimal:
        return sum((d.regular_hours for d in self.days), ZERO)

    @property
    def total_overtime_hours(self) -> Decimal:
        return sum((d.overtime_hours for d in self.days), ZERO)

    @property
    def total_night_diff_hours(self) -> Decimal:
        return sum((d.night_diff_hours for d in self.days), ZERO)

    @property
    def total_holiday_pay_hours(self) -> Decimal:
        return sum((d.holiday_pay_hours for d in self.days), ZERO)

    @property
    def total_special_holiday_pay_hours(self) -> Decimal:
        return sum(
            (d.holiday_pay_hours for d in self.days if d.day_type.is_special_holiday), ZERO
        )

    @property
    def days_worked(self) -> int:
        return sum(1 for d in self.days if d.regular_hours > 0)

    @property
    def in_progress_dates(self) -> list[date]:
        return [d.work_date for d in self.days if d.in_progress]

    @property
    def absent_dates(self) -> list[date]:
        return [d.work_date for d in self.days if d.is_absent]

    def regular_hours_by_day_type(self) -> dict[DayType, Decimal]:
        totals: dict[DayType, Decimal] = {dt: ZERO for dt in DayType}
        for day in self.days:
            totals[day.day_type] += day.regular_hours
        return totals

    def overtime_hours_by_day_type(self) -> dict[DayType, Decimal]:
        totals: dict[DayType, Decimal] = {dt: ZERO for dt in DayType}
        for day in self.days:
            totals[day.day_type] += day.overtime_hours
        return totals


@dataclass
class PayLine:
    """A payslip line before persistence."""

    line_type: LineType
    code: str
    description: str
    amount: Decimal  # Signed per LineItemBuilder conventions
    quantity: Decimal | None = None
    rate: Decimal | None = None
    multiplier: Decimal | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing and JSON storage."""
        return {
            "line_type": self.line_type.value,
            "code": self.code,
            "description": self.description,
            "amount": str(self.amount),
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "rate": str(self.rate) if self.rate is not None else None,
            "multiplier": str(self.multiplier) if self.multiplier is not None else None,
        }


@dataclass(frozen=True)
class DeductionInputs:
    """Manual deduction entries for one (employee, period).

    Government amounts left as ``None`` are auto-computed.
    """

    vale_amount: Decimal = ZERO
    uniform_ppe_amount: Decimal = ZERO
    sss_salary_loan: Decimal = ZERO
    sss_calamity_loan: Decimal = ZERO
    pagibig_salary_loan: Decimal = ZERO
    pagibig_calamity_loan: Decimal = ZERO
    other_deduction: Decimal = ZERO
    sss_contribution: Decimal | None = None
    sss_wisp: Decimal | None = None
    philhealth_contribution: Decimal | None = None
    pagibig_contribution: Decimal | None = None
    withholding_tax: Decimal | None = None

    MANUAL_FIELDS = (
        ("vale_amount", "VALE", "Vale / cash advance"),
        ("uniform_ppe_amount", "UNIFORM_PPE", "Uniform / PPE"),
        ("sss_salary_loan", "SSS_LOAN", "SSS salary loan"),
        ("sss_calamity_loan", "SSS_CALAMITY", "SSS calamity loan"),
        ("pagibig_salary_loan", "PAGIBIG_LOAN", "Pag-IBIG salary loan"),
        ("pagibig_calamity_loan", "PAGIBIG_CALAMITY", "Pag-IBIG calamity loan"),
        ("other_deduction", "OTHER", "Other deduction"),
    )

    def __post_init__(self) -> None:
        for name in (
            "vale_amount",
            "uniform_ppe_amount",
            "sss_salary_loan",
            "sss_calamity_loan",
            "pagibig_salary_loan",
            "pagibig_calamity_loan",
            "other_deduction",
            "sss_contribution",
            "sss_wisp",
            "philhealth_contribution",
            "pagibig_contribution",
            "withholding_tax",
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise PayrollValidationError("must not be negative", field=name)
