"""Employee, holiday, and schedule models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ph_payroll.calculators.reporting import EmployeeIdentity
from ph_payroll.calculators.types import EmployeeProfile
from ph_payroll.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee record with rate basis and government IDs."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    monthly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Reporting only; never used in computation
    tin: Mapped[str | None] = mapped_column(String, nullable=True)
    sss_number: Mapped[str | None] = mapped_column(String, nullable=True)
    philhealth_number: Mapped[str | None] = mapped_column(String, nullable=True)
    pagibig_number: Mapped[str | None] = mapped_column(String, nullable=True)

    eligible_for_ot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    eligible_for_night_diff: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Weekday numbers, Monday=0
    rest_weekdays: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=lambda: [6]
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "monthly_rate IS NOT NULL OR daily_rate IS NOT NULL",
            name="employee_rate_basis_check",
        ),
    )

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    def to_profile(self) -> EmployeeProfile:
        """Freeze this row into the calculation-time profile."""
        return EmployeeProfile(
            employee_id=self.employee_id,
            employee_code=self.employee_code,
            first_name=self.first_name,
            last_name=self.last_name,
            monthly_rate=self.monthly_rate,
            daily_rate=self.daily_rate,
            tin=self.tin,
            sss_number=self.sss_number,
            philhealth_number=self.philhealth_number,
            pagibig_number=self.pagibig_number,
            eligible_for_ot=self.eligible_for_ot,
            eligible_for_night_diff=self.eligible_for_night_diff,
            rest_weekdays=frozenset(self.rest_weekdays or ()),
        )

    def to_identity(self) -> EmployeeIdentity:
        return EmployeeIdentity(
            employee_id=self.employee_id,
            employee_code=self.employee_code,
            first_name=self.first_name,
            last_name=self.last_name,
            tin=self.tin,
            sss_number=self.sss_number,
            philhealth_number=self.philhealth_number,
            pagibig_number=self.pagibig_number,
        )


class Holiday(Base, TimestampMixin):
    """Declared regular or special holiday."""

    __tablename__ = "holiday"

    holiday_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    holiday_type: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("holiday_date", "name", name="holiday_date_name_unique"),
        CheckConstraint(
            "holiday_type IN ('regular', 'special')",
            name="holiday_type_check",
        ),
    )


class ScheduleDay(Base, TimestampMixin):
    """Per-date schedule override marking a rest day or a work day."""

    __tablename__ = "schedule_day"

    schedule_day_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    schedule_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_rest_day: Mapped[bool] = mapped_column(Boolean, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "schedule_date", name="schedule_day_employee_date_unique"),
    )
