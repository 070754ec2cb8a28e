"""Seed script for the built-in statutory tables.

Run with:
    python scripts/seed_statutory_tables.py

Creates the tables and stores the default SSS, PhilHealth, Pag-IBIG and BIR
withholding schedules as a statutory_table_version row. Safe to re-run; an
identical version is detected by its logic hash.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from ph_payroll.calculators.tables import DEFAULT_TABLES
from ph_payroll.database import create_schema, dispose_db, get_session
from ph_payroll.services.statutory_service import StatutoryTableService

SOURCE_URL = "https://www.bir.gov.ph/index.php/tax-information/withholding-tax.html"


async def seed_default_tables(session: AsyncSession) -> None:
    """Store DEFAULT_TABLES unless an identical version exists."""
    service = StatutoryTableService(session)
    version, created = await service.publish(DEFAULT_TABLES, source_url=SOURCE_URL)
    if created:
        print(f"Created statutory tables effective {version.effective_start}")
    else:
        print(f"Statutory tables {version.logic_hash} already exist, skipping...")


async def main():
    """Run seed script."""
    print("Seeding statutory tables...")

    await create_schema()
    async with get_session() as session:
        await seed_default_tables(session)

    await dispose_db()
    print("\nDone! Statutory tables seeded successfully.")


if __name__ == "__main__":
    asyncio.run(main())
