"""Time clock, failure-to-log, overtime, and time credit models."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column

from ph_payroll.calculators.types import (
    ApprovedOvertime,
    AttendanceCorrection,
    ClockEntry,
    ClockEntryStatus,
    CorrectionType,
)
from ph_payroll.models.base import Base, Hours, TimestampMixin, as_utc


class TimeClockEntry(Base, TimestampMixin):
    """Raw clock-in/out entry; timestamps stored in UTC."""

    __tablename__ = "time_clock_entry"

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clock_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    clock_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="clocked_in")

    __table_args__ = (
        CheckConstraint(
            "status IN ('clocked_in', 'clocked_out', 'approved', 'rejected', 'auto_approved')",
            name="time_clock_entry_status_check",
        ),
        CheckConstraint(
            "clock_out_time IS NULL OR clock_out_time > clock_in_time",
            name="time_clock_entry_order_check",
        ),
    )

    def to_domain(self) -> ClockEntry:
        return ClockEntry(
            entry_id=self.time_entry_id,
            employee_id=self.employee_id,
            clock_in=as_utc(self.clock_in_time),
            clock_out=as_utc(self.clock_out_time),
            status=ClockEntryStatus(self.status),
            location=self.location,
            is_manual_entry=self.is_manual_entry,
        )


class FailureToLog(Base, TimestampMixin):
    """Employee-filed correction for a missed clock-in or clock-out."""

    __tablename__ = "failure_to_log"

    failure_to_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    time_entry_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("time_clock_entry.time_entry_id", ondelete="SET NULL"),
        nullable=True,
    )
    missed_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_type: Mapped[str] = mapped_column(String, nullable=False)
    actual_clock_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_clock_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("entry_type IN ('in', 'out', 'both')", name="failure_to_log_type_check"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')",
            name="failure_to_log_status_check",
        ),
    )

    def to_domain(self) -> AttendanceCorrection:
        return AttendanceCorrection(
            correction_id=self.failure_to_log_id,
            employee_id=self.employee_id,
            missed_date=self.missed_date,
            entry_type=CorrectionType(self.entry_type),
            clock_in=as_utc(self.actual_clock_in_time),
            clock_out=as_utc(self.actual_clock_out_time),
            time_entry_id=self.time_entry_id,
        )


class OvertimeRequest(Base, TimestampMixin):
    """Overtime request with its normalized window."""

    __tablename__ = "overtime_request"

    overtime_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ot_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    total_hours: Mapped[Decimal] = mapped_column(Hours, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("total_hours > 0", name="overtime_request_hours_check"),
        CheckConstraint("end_date >= ot_date", name="overtime_request_dates_check"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')",
            name="overtime_request_status_check",
        ),
    )

    def to_approved(self) -> ApprovedOvertime:
        return ApprovedOvertime(
            ot_date=self.ot_date,
            hours=self.total_hours,
            request_id=self.overtime_request_id,
        )


class TimeCreditEntry(Base, TimestampMixin):
    """Ledger row for offsetting time credits earned from approved overtime."""

    __tablename__ = "time_credit_entry"

    time_credit_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    hours: Mapped[Decimal] = mapped_column(Hours, nullable=False)
    overtime_request_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("overtime_request.overtime_request_id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    note: Mapped[str | None] = mapped_column(String, nullable=True)
