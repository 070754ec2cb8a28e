"""Tests for YTD rollups and BIR annual summaries."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ph_payroll.calculators.reporting import (
    BIRReportBuilder,
    EmployeeIdentity,
    PayslipSnapshot,
    YTDAggregator,
)


def identity(last_name: str = "Santos", first_name: str = "Maria", tin: str | None = "123-456-789") -> EmployeeIdentity:
    return EmployeeIdentity(
        employee_id=uuid4(),
        employee_code=f"EMP-{last_name.upper()}",
        first_name=first_name,
        last_name=last_name,
        tin=tin,
        sss_number="34-1234567-8",
        philhealth_number="12-345678901-2",
        pagibig_number="1234-5678-9012",
    )


def snapshot(
    who: EmployeeIdentity,
    gross: str,
    period_end: date = date(2025, 3, 16),
    status: str = "paid",
    sss: str = "0",
    **amounts: str,
) -> PayslipSnapshot:
    return PayslipSnapshot(
        payslip_id=uuid4(),
        employee_id=who.employee_id,
        period_start=period_end.replace(day=1),
        period_end=period_end,
        status=status,
        gross_pay=Decimal(gross),
        taxable_compensation=Decimal(amounts.get("taxable", gross)),
        withholding_tax=Decimal(amounts.get("tax", "0")),
        sss_amount=Decimal(sss),
        philhealth_amount=Decimal(amounts.get("philhealth", "0")),
        pagibig_amount=Decimal(amounts.get("pagibig", "0")),
        thirteenth_month_pay=Decimal(amounts.get("thirteenth", "0")),
        adjustments_total=Decimal(amounts.get("adjustments", "0")),
    )


@pytest.fixture
def aggregator() -> YTDAggregator:
    return YTDAggregator()


class TestYTDAggregator:
    """Test per-employee annual rollups."""

    def test_two_paid_payslips(self, aggregator):
        """Two paid payslips of 15,000 gross in one year total 30,000."""
        who = identity()
        payslips = [
            snapshot(who, "15000", period_end=date(2025, 1, 19)),
            snapshot(who, "15000", period_end=date(2025, 2, 2)),
        ]
        ytd = aggregator.aggregate(who, 2025, payslips)
        assert ytd.total_gross == Decimal("30000")
        assert ytd.payslip_count == 2

    def test_unpaid_payslips_skipped(self, aggregator):
        who = identity()
        payslips = [
            snapshot(who, "15000"),
            snapshot(who, "15000", status="draft"),
            snapshot(who, "15000", status="approved"),
        ]
        ytd = aggregator.aggregate(who, 2025, payslips)
        assert ytd.total_gross == Decimal("15000")
        assert ytd.payslip_count == 1

    def test_year_follows_period_end(self, aggregator):
        """A period running from December into January belongs to the new year."""
        who = identity()
        payslips = [
            snapshot(who, "10000", period_end=date(2025, 1, 5)),
            snapshot(who, "12000", period_end=date(2024, 12, 22)),
        ]
        assert aggregator.aggregate(who, 2025, payslips).total_gross == Decimal("10000")
        assert aggregator.aggregate(who, 2024, payslips).total_gross == Decimal("12000")

    def test_other_employees_skipped(self, aggregator):
        who = identity()
        other = identity("Reyes")
        ytd = aggregator.aggregate(who, 2025, [snapshot(who, "100"), snapshot(other, "900")])
        assert ytd.total_gross == Decimal("100")

    def test_all_fields_summed(self, aggregator):
        who = identity()
        payslips = [
            snapshot(who, "15000", sss="500", tax="687.45", philhealth="375", pagibig="100",
                     taxable="14025", thirteenth="5000", adjustments="-250"),
            snapshot(who, "15000", sss="500", tax="687.45", philhealth="375", pagibig="100",
                     taxable="14025", adjustments="100"),
        ]
        ytd = aggregator.aggregate(who, 2025, payslips)
        assert ytd.total_taxable == Decimal("28050")
        assert ytd.total_tax_withheld == Decimal("1374.90")
        assert ytd.total_sss == Decimal("1000")
        assert ytd.total_philhealth == Decimal("750")
        assert ytd.total_pagibig == Decimal("200")
        assert ytd.total_thirteenth_month == Decimal("5000")
        assert ytd.total_adjustments == Decimal("-150")

    def test_empty_year(self, aggregator):
        who = identity()
        ytd = aggregator.aggregate(who, 2025, [])
        assert ytd.total_gross == 0
        assert ytd.payslip_count == 0

    def test_rerun_gives_same_result(self, aggregator):
        who = identity()
        payslips = [snapshot(who, "15000"), snapshot(who, "15000", period_end=date(2025, 4, 13))]
        assert aggregator.aggregate(who, 2025, payslips) == aggregator.aggregate(who, 2025, payslips)

    def test_missing_identifiers_reported(self, aggregator):
        who = EmployeeIdentity(
            employee_id=uuid4(),
            employee_code="EMP9",
            first_name="Jose",
            last_name="Cruz",
            sss_number="34-1",
        )
        ytd = aggregator.aggregate(who, 2025, [])
        assert ytd.missing_identifiers == ("tin", "philhealth_number", "pagibig_number")

    def test_aggregate_all_requires_identity(self, aggregator):
        who = identity()
        with pytest.raises(KeyError):
            aggregator.aggregate_all({}, 2025, [snapshot(who, "100")])


class TestBIRReportBuilder:
    """Test company-wide annual summaries."""

    def test_company_totals(self, aggregator):
        """Company totals are the plain sum of the two employees' rollups."""
        first = identity("Santos")
        second = identity("Reyes")
        payslips = [
            snapshot(first, "20000", sss="500"),
            snapshot(second, "22000", sss="550"),
        ]
        rollups = aggregator.aggregate_all(
            {first.employee_id: first, second.employee_id: second}, 2025, payslips
        )
        summary = BIRReportBuilder().company_summary(2025, rollups)

        assert summary.total_gross == Decimal("42000")
        assert summary.total_sss == Decimal("1050")
        assert summary.total_employees == 2
        assert summary.payslip_count == 2
        assert summary.employees_missing_tin == 0

    def test_missing_tin_counted(self, aggregator):
        who = identity(tin=None)
        rollups = aggregator.aggregate_all({who.employee_id: who}, 2025, [snapshot(who, "100")])
        assert BIRReportBuilder().company_summary(2025, rollups).employees_missing_tin == 1

    def test_alphalist_order(self, aggregator):
        people = [identity("Reyes", "Ana"), identity("cruz", "Ben"), identity("Reyes", "Aba")]
        rollups = aggregator.aggregate_all(
            {p.employee_id: p for p in people}, 2025, [snapshot(p, "100") for p in people]
        )
        assert [(r.identity.last_name, r.identity.first_name) for r in rollups] == [
            ("cruz", "Ben"),
            ("Reyes", "Aba"),
            ("Reyes", "Ana"),
        ]

    def test_rollup_year_mismatch(self, aggregator):
        who = identity()
        rollup = aggregator.aggregate(who, 2024, [])
        with pytest.raises(ValueError):
            BIRReportBuilder().company_summary(2025, [rollup])

    def test_empty_year(self):
        summary = BIRReportBuilder().company_summary(2025, [])
        assert summary.total_employees == 0
        assert summary.total_gross == 0
