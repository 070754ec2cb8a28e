"""Effective-dated statutory table storage."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from ph_payroll.calculators.tables import (
    DEFAULT_TABLES,
    PhilHealthTable,
    StatutoryTableCache,
)
from ph_payroll.errors import StatutoryTableNotFoundError
from ph_payroll.services import StatutoryTableService

TABLES_2026 = replace(
    DEFAULT_TABLES,
    effective_start=date(2026, 1, 1),
    philhealth=PhilHealthTable(rate=Decimal("0.06")),
)
SOURCE_URL = "https://www.philhealth.gov.ph/advisories/"


class TestLoadTables:
    async def test_fallback_when_nothing_stored(self, db_session):
        service = StatutoryTableService(db_session)
        assert await service.load(date(2025, 1, 19)) is DEFAULT_TABLES

    async def test_before_fallback_start(self, db_session):
        service = StatutoryTableService(db_session)
        with pytest.raises(StatutoryTableNotFoundError) as exc_info:
            await service.load(date(2024, 12, 22))
        assert exc_info.value.as_of_date == date(2024, 12, 22)

    async def test_no_fallback(self, db_session):
        service = StatutoryTableService(db_session, fallback=None)
        with pytest.raises(StatutoryTableNotFoundError):
            await service.load(date(2025, 6, 1))


class TestPublishTables:
    """Test storing versions and picking them by date."""

    async def test_version_selected_by_date(self, db_session):
        service = StatutoryTableService(db_session)
        version, created = await service.publish(TABLES_2026, SOURCE_URL)

        assert created is True
        assert version.effective_start == date(2026, 1, 1)
        assert version.logic_hash == TABLES_2026.logic_hash()

        loaded = await service.load(date(2026, 3, 1))
        assert loaded.philhealth.rate == Decimal("0.06")
        assert await service.load(date(2025, 12, 31)) is DEFAULT_TABLES

    async def test_effective_end(self, db_session):
        service = StatutoryTableService(db_session)
        await service.publish(TABLES_2026, SOURCE_URL, effective_end=date(2026, 6, 30))

        assert (await service.load(date(2026, 6, 30))).philhealth.rate == Decimal("0.06")
        # Past the stored version's end the built-in tables apply again
        assert await service.load(date(2026, 7, 1)) is DEFAULT_TABLES

    async def test_publish_twice(self, db_session):
        service = StatutoryTableService(db_session)
        first, _ = await service.publish(TABLES_2026, SOURCE_URL)
        second, created = await service.publish(TABLES_2026, SOURCE_URL)

        assert created is False
        assert second.statutory_table_version_id == first.statutory_table_version_id

    async def test_publish_invalidates_cache(self, db_session):
        cache = StatutoryTableCache()
        service = StatutoryTableService(db_session, cache)
        assert await service.tables_for(date(2026, 3, 1)) is DEFAULT_TABLES

        await service.publish(TABLES_2026, SOURCE_URL)

        assert (await service.tables_for(date(2026, 3, 1))).philhealth.rate == Decimal("0.06")
