"""Effective-dated statutory table lookup and publishing."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.tables import DEFAULT_TABLES, StatutoryTableCache, StatutoryTables
from ph_payroll.errors import StatutoryTableNotFoundError
from ph_payroll.models import StatutoryTableVersion

logger = logging.getLogger(__name__)


class StatutoryTableService:
    """Resolves the statutory tables in force on a date.

    Stored versions win over the built-in defaults. The defaults only cover
    dates on or after their own effective start.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: StatutoryTableCache | None = None,
        fallback: StatutoryTables | None = DEFAULT_TABLES,
    ):
        self.session = session
        self.cache = cache
        self.fallback = fallback

    async def tables_for(self, as_of: date) -> StatutoryTables:
        if self.cache is None:
            return await self.load(as_of)
        return await self.cache.get_or_load(as_of, self.load)

    async def load(self, as_of: date) -> StatutoryTables:
        """Read the version active on ``as_of``, bypassing the cache."""
        result = await self.session.execute(
            select(StatutoryTableVersion)
            .where(
                StatutoryTableVersion.effective_start <= as_of,
                (StatutoryTableVersion.effective_end.is_(None))
                | (StatutoryTableVersion.effective_end >= as_of),
            )
            .order_by(StatutoryTableVersion.effective_start.desc())
            .limit(1)
        )
        version = result.scalar_one_or_none()
        if version is not None:
            return StatutoryTables.from_payload(version.payload_json)

        if self.fallback is not None and self.fallback.effective_start <= as_of:
            return self.fallback
        raise StatutoryTableNotFoundError(as_of)

    async def publish(
        self,
        tables: StatutoryTables,
        source_url: str,
        effective_end: date | None = None,
    ) -> tuple[StatutoryTableVersion, bool]:
        """Store a table version; returns (version, created).

        Publishing the same contents twice returns the existing row.
        """
        logic_hash = tables.logic_hash()
        existing = await self.session.execute(
            select(StatutoryTableVersion).where(StatutoryTableVersion.logic_hash == logic_hash)
        )
        version = existing.scalar_one_or_none()
        if version is not None:
            return version, False

        version = StatutoryTableVersion(
            effective_start=tables.effective_start,
            effective_end=effective_end,
            source_url=source_url,
            logic_hash=logic_hash,
            payload_json=tables.to_payload(),
        )
        self.session.add(version)
        await self.session.flush()
        if self.cache is not None:
            self.cache.invalidate()
        logger.info(
            "Published statutory tables effective %s (hash %s)",
            tables.effective_start,
            logic_hash,
        )
        return version, True
