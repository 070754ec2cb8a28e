"""Integration test fixtures backed by an in-memory SQLite database."""

from collections.abc import AsyncGenerator
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ph_payroll.api.app import create_app
from ph_payroll.api.dependencies import get_db_session
from ph_payroll.calculators.types import MANILA_TZ
from ph_payroll.config import Settings, get_settings
from ph_payroll.models import Base, Employee, TimeClockEntry

# One connection shared by every session so all of them see the same database
TEST_DATABASE_URL = "sqlite+aiosqlite://"

PERIOD_START = date(2025, 1, 6)
NEXT_PERIOD_START = date(2025, 1, 20)


def utc_at(day: date, hour: int, minute: int = 0) -> datetime:
    """Manila wall-clock time converted to UTC, as the clock service stores it."""
    return datetime.combine(day, time(hour, minute), tzinfo=MANILA_TZ).astimezone(timezone.utc)


async def add_employee(
    session: AsyncSession,
    code: str = "EMP001",
    first_name: str = "Maria",
    last_name: str = "Santos",
    monthly_rate: Decimal | None = Decimal("22000"),
    tin: str | None = "123-456-789-000",
) -> Employee:
    employee = Employee(
        employee_code=code,
        first_name=first_name,
        last_name=last_name,
        monthly_rate=monthly_rate,
        tin=tin,
        sss_number="34-1234567-8",
        philhealth_number="12-345678901-2",
        pagibig_number="1234-5678-9012",
        rest_weekdays=[6],
    )
    session.add(employee)
    await session.flush()
    return employee


async def add_workdays(
    session: AsyncSession,
    employee: Employee,
    period_start: date = PERIOD_START,
    start_hour: int = 8,
    end_hour: int = 17,
) -> list[TimeClockEntry]:
    """Clock Monday to Friday of both weeks; Saturdays are left absent."""
    entries = []
    for offset in range(14):
        day = period_start + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        entry = TimeClockEntry(
            employee_id=employee.employee_id,
            clock_in_time=utc_at(day, start_hour),
            clock_out_time=utc_at(day, end_hour),
            status="clocked_out",
        )
        session.add(entry)
        entries.append(entry)
    await session.flush()
    return entries


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for integration tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_settings() -> Settings:
    return replace(
        get_settings(),
        database_url=TEST_DATABASE_URL,
        period_anchor=date(2025, 1, 6),
        working_days_per_month=22,
        tax_frequency="monthly",
    )


@pytest_asyncio.fixture
async def client(session_factory, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client wired to the test database."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
