"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.types import (
    MANILA_TZ,
    ClockEntry,
    ClockEntryStatus,
    EmployeeProfile,
    PayPeriod,
    PayPolicy,
)

# Canonical period: Monday 2025-01-06 through Sunday 2025-01-19
PERIOD_START = date(2025, 1, 6)
PERIOD_END = date(2025, 1, 19)


def local(day: date, hour: int, minute: int = 0) -> datetime:
    """Manila wall-clock time as an aware datetime."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=MANILA_TZ)


def clock_entry(
    employee_id: UUID,
    start: datetime,
    end: datetime | None,
    status: ClockEntryStatus = ClockEntryStatus.CLOCKED_OUT,
) -> ClockEntry:
    return ClockEntry(
        entry_id=uuid4(),
        employee_id=employee_id,
        clock_in=start,
        clock_out=end,
        status=status,
    )


@pytest.fixture
def periods() -> PeriodCalculator:
    return PeriodCalculator()


@pytest.fixture
def period() -> PayPeriod:
    return PayPeriod(start=PERIOD_START, end=PERIOD_END)


@pytest.fixture
def policy() -> PayPolicy:
    return PayPolicy()


@pytest.fixture
def employee() -> EmployeeProfile:
    """Monthly-rated employee: 22,000 / 22 days = 1,000 a day, 125 an hour."""
    return EmployeeProfile(
        employee_id=uuid4(),
        employee_code="EMP001",
        first_name="Maria",
        last_name="Santos",
        monthly_rate=Decimal("22000"),
        tin="123-456-789-000",
        sss_number="34-1234567-8",
        philhealth_number="12-345678901-2",
        pagibig_number="1234-5678-9012",
    )
