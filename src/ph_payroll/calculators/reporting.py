"""Year-to-date rollups and BIR annual summaries.

Both stages are pure and additive: they sum stored payslip figures and never
re-derive rates or brackets, so re-running them on the same payslips always
gives the same totals.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ph_payroll.calculators.types import ZERO, PayslipStatus

GOVERNMENT_ID_FIELDS = ("tin", "sss_number", "philhealth_number", "pagibig_number")

# (rollup field, payslip field)
SUMMED_FIELDS = (
    ("total_gross", "gross_pay"),
    ("total_taxable", "taxable_compensation"),
    ("total_tax_withheld", "withholding_tax"),
    ("total_sss", "sss_amount"),
    ("total_philhealth", "philhealth_amount"),
    ("total_pagibig", "pagibig_amount"),
    ("total_thirteenth_month", "thirteenth_month_pay"),
    ("total_adjustments", "adjustments_total"),
)


@dataclass(frozen=True)
class EmployeeIdentity:
    """Reporting identity; government IDs may be missing."""

    employee_id: UUID
    employee_code: str
    first_name: str
    last_name: str
    tin: str | None = None
    sss_number: str | None = None
    philhealth_number: str | None = None
    pagibig_number: str | None = None

    @property
    def missing_identifiers(self) -> tuple[str, ...]:
        return tuple(name for name in GOVERNMENT_ID_FIELDS if not getattr(self, name))


@dataclass(frozen=True)
class PayslipSnapshot:
    """Stored payslip figures as read for reporting."""

    payslip_id: UUID
    employee_id: UUID
    period_start: date
    period_end: date
    status: str
    gross_pay: Decimal
    taxable_compensation: Decimal
    withholding_tax: Decimal
    sss_amount: Decimal
    philhealth_amount: Decimal
    pagibig_amount: Decimal
    thirteenth_month_pay: Decimal = ZERO
    adjustments_total: Decimal = ZERO


@dataclass(frozen=True)
class YTDSummary:
    """One employee's paid-payslip totals for a calendar year."""

    identity: EmployeeIdentity
    year: int
    total_gross: Decimal = ZERO
    total_taxable: Decimal = ZERO
    total_tax_withheld: Decimal = ZERO
    total_sss: Decimal = ZERO
    total_philhealth: Decimal = ZERO
    total_pagibig: Decimal = ZERO
    total_thirteenth_month: Decimal = ZERO
    total_adjustments: Decimal = ZERO
    payslip_count: int = 0

    @property
    def employee_id(self) -> UUID:
        return self.identity.employee_id

    @property
    def missing_identifiers(self) -> tuple[str, ...]:
        return self.identity.missing_identifiers


@dataclass(frozen=True)
class CompanyAnnualSummary:
    """Company-wide totals: the plain sum of employee rollups."""

    year: int
    total_employees: int = 0
    total_gross: Decimal = ZERO
    total_taxable: Decimal = ZERO
    total_tax_withheld: Decimal = ZERO
    total_sss: Decimal = ZERO
    total_philhealth: Decimal = ZERO
    total_pagibig: Decimal = ZERO
    total_thirteenth_month: Decimal = ZERO
    total_adjustments: Decimal = ZERO
    payslip_count: int = 0
    employees_missing_tin: int = 0


def _counts_for_year(payslip: PayslipSnapshot, year: int) -> bool:
    return payslip.status == PayslipStatus.PAID and payslip.period_end.year == year


class YTDAggregator:
    """Sums paid payslips per employee and calendar year.

    Draft and approved payslips are skipped entirely. A payslip belongs to
    the year its period ends in.
    """

    def aggregate(
        self,
        identity: EmployeeIdentity,
        year: int,
        payslips: Iterable[PayslipSnapshot],
    ) -> YTDSummary:
        totals = {name: ZERO for name, _ in SUMMED_FIELDS}
        count = 0
        for payslip in payslips:
            if payslip.employee_id != identity.employee_id or not _counts_for_year(payslip, year):
                continue
            for total_name, field_name in SUMMED_FIELDS:
                totals[total_name] += getattr(payslip, field_name)
            count += 1
        return YTDSummary(identity=identity, year=year, payslip_count=count, **totals)

    def aggregate_all(
        self,
        identities: Mapping[UUID, EmployeeIdentity],
        year: int,
        payslips: Iterable[PayslipSnapshot],
    ) -> list[YTDSummary]:
        """Rollups for every employee with at least one paid payslip in ``year``."""
        by_employee: dict[UUID, list[PayslipSnapshot]] = defaultdict(list)
        for payslip in payslips:
            if _counts_for_year(payslip, year):
                by_employee[payslip.employee_id].append(payslip)

        rollups: list[YTDSummary] = []
        for employee_id, employee_payslips in by_employee.items():
            identity = identities.get(employee_id)
            if identity is None:
                raise KeyError(f"No identity loaded for employee {employee_id}")
            rollups.append(self.aggregate(identity, year, employee_payslips))
        return BIRReportBuilder.alphalist(rollups)


class BIRReportBuilder:
    """Combines employee rollups into company-wide annual figures."""

    def company_summary(self, year: int, rollups: Iterable[YTDSummary]) -> CompanyAnnualSummary:
        totals = {name: ZERO for name, _ in SUMMED_FIELDS}
        employees = 0
        payslip_count = 0
        missing_tin = 0
        for rollup in rollups:
            if rollup.year != year:
                raise ValueError(f"Rollup for {rollup.year} passed to {year} summary")
            for total_name, _ in SUMMED_FIELDS:
                totals[total_name] += getattr(rollup, total_name)
            employees += 1
            payslip_count += rollup.payslip_count
            if "tin" in rollup.missing_identifiers:
                missing_tin += 1
        return CompanyAnnualSummary(
            year=year,
            total_employees=employees,
            payslip_count=payslip_count,
            employees_missing_tin=missing_tin,
            **totals,
        )

    @staticmethod
    def alphalist(rollups: Iterable[YTDSummary]) -> list[YTDSummary]:
        """Per-employee rows ordered by last name, first name."""
        return sorted(
            rollups,
            key=lambda r: (
                r.identity.last_name.lower(),
                r.identity.first_name.lower(),
                r.identity.employee_code,
            ),
        )
