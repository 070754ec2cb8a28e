"""Tests for statutory tables and the table cache."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from ph_payroll.calculators.contributions import ContributionCalculator
from ph_payroll.calculators.tables import (
    DEFAULT_TABLES,
    SSSTable,
    StatutoryTableCache,
    StatutoryTables,
)
from ph_payroll.calculators.types import TaxFrequency


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestSSSBrackets:
    def test_bracket_layout(self):
        brackets = SSSTable().brackets()
        assert brackets[0].lower == Decimal("0")
        assert brackets[0].upper == Decimal("5250")
        assert brackets[-1].msc == Decimal("35000")
        assert brackets[-1].upper is None
        assert len(brackets) == 61

    def test_brackets_are_contiguous(self):
        brackets = SSSTable().brackets()
        for lower, upper in zip(brackets, brackets[1:]):
            assert lower.upper == upper.lower


class TestPayload:
    """Test the stored JSON form of a table version."""

    def test_payload_restores_tables(self):
        restored = StatutoryTables.from_payload(DEFAULT_TABLES.to_payload())
        assert restored == DEFAULT_TABLES
        assert restored.logic_hash() == DEFAULT_TABLES.logic_hash()

    def test_missing_sections_use_defaults(self):
        tables = StatutoryTables.from_payload(
            {"effective_start": "2026-01-01", "philhealth": {"rate": "0.06"}}
        )
        assert tables.effective_start == date(2026, 1, 1)
        assert tables.philhealth.rate == Decimal("0.06")
        assert tables.philhealth.ceiling == Decimal("100000")
        assert tables.sss == SSSTable()
        assert tables.thirteenth_month_exclusion == Decimal("90000")

    def test_custom_tax_brackets(self):
        tables = StatutoryTables.from_payload(
            {
                "effective_start": "2026-01-01",
                "withholding_tax": {
                    "monthly": [
                        {"min": "0", "max": "30000", "rate": "0"},
                        {"min": "30000", "max": None, "rate": "0.10"},
                    ]
                },
            }
        )
        calculator = ContributionCalculator(tables)
        assert calculator.withholding_tax(Decimal("40000"), TaxFrequency.MONTHLY).tax == Decimal("1000.00")
        # The table not present in the payload keeps its defaults
        assert calculator.withholding_tax(Decimal("15000")).tax == Decimal("687.45")

    def test_logic_hash_tracks_contents(self):
        changed = replace(DEFAULT_TABLES, sss=SSSTable(employee_rate=Decimal("0.045")))
        assert changed.logic_hash() != DEFAULT_TABLES.logic_hash()

    def test_calculator_uses_given_tables(self):
        tables = replace(DEFAULT_TABLES, sss=SSSTable(wisp_threshold=Decimal("25000")))
        sss = ContributionCalculator(tables).sss(Decimal("25000"))
        assert sss.wisp_employee_share == Decimal("0")


class TestStatutoryTableCache:
    """Test TTL expiry and explicit invalidation."""

    def test_entry_expires(self):
        clock = FakeClock()
        cache = StatutoryTableCache(ttl_seconds=60, clock=clock)
        cache.put(date(2025, 1, 19), DEFAULT_TABLES)

        clock.now = 59
        assert cache.get(date(2025, 1, 19)) is DEFAULT_TABLES
        clock.now = 60
        assert cache.get(date(2025, 1, 19)) is None

    def test_invalidate_one_date(self):
        cache = StatutoryTableCache(clock=FakeClock())
        cache.put(date(2025, 1, 19), DEFAULT_TABLES)
        cache.put(date(2025, 2, 2), DEFAULT_TABLES)

        cache.invalidate(date(2025, 1, 19))
        assert cache.get(date(2025, 1, 19)) is None
        assert cache.get(date(2025, 2, 2)) is DEFAULT_TABLES

    def test_invalidate_all(self):
        cache = StatutoryTableCache(clock=FakeClock())
        cache.put(date(2025, 1, 19), DEFAULT_TABLES)
        cache.invalidate()
        assert cache.get(date(2025, 1, 19)) is None

    async def test_get_or_load_loads_once(self):
        calls: list[date] = []

        async def loader(as_of: date) -> StatutoryTables:
            calls.append(as_of)
            return DEFAULT_TABLES

        cache = StatutoryTableCache(clock=FakeClock())
        for _ in range(3):
            assert await cache.get_or_load(date(2025, 1, 19), loader) is DEFAULT_TABLES
        assert calls == [date(2025, 1, 19)]

    async def test_loader_errors_not_cached(self):
        async def loader(as_of: date) -> StatutoryTables:
            raise LookupError(as_of)

        cache = StatutoryTableCache(clock=FakeClock())
        with pytest.raises(LookupError):
            await cache.get_or_load(date(2020, 1, 1), loader)
        assert cache.get(date(2020, 1, 1)) is None
