"""Versioned statutory bracket tables and their cache context."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from ph_payroll.calculators.types import TaxFrequency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxBracket:
    """Withholding bracket: tax = flat_amount + rate x (income - min_amount)."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal
    flat_amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class SSSBracket:
    """One row of the SSS schedule: salaries in [lower, upper) map to ``msc``."""

    lower: Decimal
    upper: Decimal | None
    msc: Decimal


@dataclass(frozen=True)
class SSSTable:
    min_msc: Decimal = Decimal("5000")
    max_msc: Decimal = Decimal("35000")
    msc_step: Decimal = Decimal("500")
    employee_rate: Decimal = Decimal("0.05")
    employer_rate: Decimal = Decimal("0.10")
    wisp_threshold: Decimal = Decimal("20000")

    def brackets(self) -> list[SSSBracket]:
        """Expand the schedule into graduated brackets.

        The first bracket is open below and the last is open above; every
        other bracket spans half a step either side of its MSC.
        """
        half = self.msc_step / 2
        rows: list[SSSBracket] = []
        msc = self.min_msc
        while msc <= self.max_msc:
            lower = Decimal("0") if msc == self.min_msc else msc - half
            upper = None if msc == self.max_msc else msc + half
            rows.append(SSSBracket(lower=lower, upper=upper, msc=msc))
            msc += self.msc_step
        return rows


@dataclass(frozen=True)
class PhilHealthTable:
    rate: Decimal = Decimal("0.05")
    floor: Decimal = Decimal("10000")
    ceiling: Decimal = Decimal("100000")


@dataclass(frozen=True)
class PagIbigTable:
    low_income_threshold: Decimal = Decimal("1500")
    low_income_employee_rate: Decimal = Decimal("0.01")
    employee_rate: Decimal = Decimal("0.02")
    employer_rate: Decimal = Decimal("0.02")
    max_fund_salary: Decimal = Decimal("10000")


def _brackets(rows: list[tuple[str, str | None, str, str]]) -> tuple[TaxBracket, ...]:
    return tuple(
        TaxBracket(
            min_amount=Decimal(lo),
            max_amount=Decimal(hi) if hi is not None else None,
            rate=Decimal(rate),
            flat_amount=Decimal(flat),
        )
        for lo, hi, rate, flat in rows
    )


# BIR RR 11-2018 revised withholding tables, effective 2023-01-01.
MONTHLY_TAX_BRACKETS = _brackets([
    ("0", "20833", "0", "0"),
    ("20833", "33332", "0.15", "0"),
    ("33333", "66666", "0.20", "1875.00"),
    ("66667", "166666", "0.25", "8541.80"),
    ("166667", "666666", "0.30", "33541.80"),
    ("666667", None, "0.35", "183541.80"),
])

SEMI_MONTHLY_TAX_BRACKETS = _brackets([
    ("0", "10417", "0", "0"),
    ("10417", "16666", "0.15", "0"),
    ("16667", "33332", "0.20", "937.50"),
    ("33333", "83332", "0.25", "4270.70"),
    ("83333", "333332", "0.30", "16770.70"),
    ("333333", None, "0.35", "91770.70"),
])


@dataclass(frozen=True)
class StatutoryTables:
    """All statutory schedules effective from ``effective_start``."""

    effective_start: date
    sss: SSSTable = field(default_factory=SSSTable)
    philhealth: PhilHealthTable = field(default_factory=PhilHealthTable)
    pagibig: PagIbigTable = field(default_factory=PagIbigTable)
    withholding_tax: dict[TaxFrequency, tuple[TaxBracket, ...]] = field(
        default_factory=lambda: {
            TaxFrequency.MONTHLY: MONTHLY_TAX_BRACKETS,
            TaxFrequency.SEMI_MONTHLY: SEMI_MONTHLY_TAX_BRACKETS,
        }
    )
    thirteenth_month_exclusion: Decimal = Decimal("90000")

    def tax_brackets(self, frequency: TaxFrequency) -> tuple[TaxBracket, ...]:
        return self.withholding_tax[frequency]

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON shape stored in statutory_table_version."""

        def dec(value: Decimal | None) -> str | None:
            return None if value is None else str(value)

        return {
            "effective_start": self.effective_start.isoformat(),
            "sss": {k: dec(v) for k, v in vars(self.sss).items()},
            "philhealth": {k: dec(v) for k, v in vars(self.philhealth).items()},
            "pagibig": {k: dec(v) for k, v in vars(self.pagibig).items()},
            "withholding_tax": {
                freq.value: [
                    {
                        "min": dec(b.min_amount),
                        "max": dec(b.max_amount),
                        "rate": dec(b.rate),
                        "flat": dec(b.flat_amount),
                    }
                    for b in brackets
                ]
                for freq, brackets in self.withholding_tax.items()
            },
            "thirteenth_month_exclusion": dec(self.thirteenth_month_exclusion),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> StatutoryTables:
        """Parse a stored payload; sections left out fall back to defaults."""

        def decimals(section: dict[str, Any] | None) -> dict[str, Decimal]:
            return {k: Decimal(str(v)) for k, v in (section or {}).items()}

        withholding: dict[TaxFrequency, tuple[TaxBracket, ...]] = {
            TaxFrequency.MONTHLY: MONTHLY_TAX_BRACKETS,
            TaxFrequency.SEMI_MONTHLY: SEMI_MONTHLY_TAX_BRACKETS,
        }
        for freq, rows in (payload.get("withholding_tax") or {}).items():
            withholding[TaxFrequency(freq)] = tuple(
                TaxBracket(
                    min_amount=Decimal(str(b["min"])),
                    max_amount=Decimal(str(b["max"])) if b.get("max") is not None else None,
                    rate=Decimal(str(b["rate"])),
                    flat_amount=Decimal(str(b.get("flat", 0))),
                )
                for b in rows
            )

        return cls(
            effective_start=date.fromisoformat(payload["effective_start"]),
            sss=SSSTable(**decimals(payload.get("sss"))),
            philhealth=PhilHealthTable(**decimals(payload.get("philhealth"))),
            pagibig=PagIbigTable(**decimals(payload.get("pagibig"))),
            withholding_tax=withholding,
            thirteenth_month_exclusion=Decimal(
                str(payload.get("thirteenth_month_exclusion", "90000"))
            ),
        )

    def logic_hash(self) -> str:
        """Deterministic hash of the table contents."""
        canonical = json.dumps(self.to_payload(), sort_keys=True)
        return hashlib.sha256(canonical.encode()).hexdigest()[:32]


DEFAULT_TABLES = StatutoryTables(effective_start=date(2025, 1, 1))


class StatutoryTableCache:
    """TTL cache of effective tables, passed explicitly to whoever needs it.

    Entries are keyed by the as-of date. ``invalidate()`` drops everything,
    e.g. after a new table version is seeded.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[date, tuple[float, StatutoryTables]] = {}

    def get(self, as_of: date) -> StatutoryTables | None:
        entry = self._entries.get(as_of)
        if entry is None:
            return None
        stored_at, tables = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[as_of]
            return None
        return tables

    def put(self, as_of: date, tables: StatutoryTables) -> None:
        self._entries[as_of] = (self._clock(), tables)

    def invalidate(self, as_of: date | None = None) -> None:
        if as_of is None:
            self._entries.clear()
        else:
            self._entries.pop(as_of, None)

    async def get_or_load(
        self,
        as_of: date,
        loader: Callable[[date], Awaitable[StatutoryTables]],
    ) -> StatutoryTables:
        tables = self.get(as_of)
        if tables is None:
            tables = await loader(as_of)
            logger.debug("Loaded statutory tables effective %s for %s", tables.effective_start, as_of)
            self.put(as_of, tables)
        return tables
