"""Statutory contribution and withholding tax calculation.

All functions here are pure lookups against a ``StatutoryTables`` value.
Out-of-range inputs are clamped to the nearest table bound and reported in
the result's ``warnings`` instead of raising, so payroll can still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.tables import DEFAULT_TABLES, StatutoryTables, TaxBracket
from ph_payroll.calculators.types import PayPeriod, TaxFrequency

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round_half_up(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Contribution:
    """Employee and employer shares of a percentage-based contribution."""

    employee_share: Decimal
    employer_share: Decimal
    salary_base: Decimal
    warnings: tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.employee_share + self.employer_share


@dataclass(frozen=True)
class SSSContribution:
    """SSS regular and WISP shares for one month."""

    msc: Decimal
    regular_msc: Decimal
    wisp_msc: Decimal
    regular_employee_share: Decimal
    regular_employer_share: Decimal
    wisp_employee_share: Decimal
    wisp_employer_share: Decimal
    warnings: tuple[str, ...] = ()

    @property
    def employee_share(self) -> Decimal:
        return self.regular_employee_share + self.wisp_employee_share

    @property
    def employer_share(self) -> Decimal:
        return self.regular_employer_share + self.wisp_employer_share


@dataclass(frozen=True)
class WithholdingTax:
    """Withholding tax with the bracket it was computed from."""

    taxable_compensation: Decimal
    tax: Decimal
    frequency: TaxFrequency
    bracket: TaxBracket
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class GovernmentContributions:
    """Monthly contributions for one salary credit."""

    monthly_salary: Decimal
    sss: SSSContribution
    philhealth: Contribution
    pagibig: Contribution

    @property
    def employee_total(self) -> Decimal:
        return self.sss.employee_share + self.philhealth.employee_share + self.pagibig.employee_share

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.sss.warnings + self.philhealth.warnings + self.pagibig.warnings


class ContributionCalculator:
    """Computes SSS (with WISP), PhilHealth, Pag-IBIG and withholding tax."""

    def __init__(self, tables: StatutoryTables = DEFAULT_TABLES):
        self.tables = tables
        self._sss_brackets = tables.sss.brackets()

    def _warn(self, warnings: list[str], message: str) -> None:
        logger.warning(message)
        warnings.append(message)

    def sss(self, monthly_salary: Decimal) -> SSSContribution:
        """Look up the MSC bracket and split it into regular and WISP parts.

        WISP covers only the MSC above the threshold; at or below it the WISP
        shares are zero.
        """
        table = self.tables.sss
        warnings: list[str] = []

        if monthly_salary < table.min_msc:
            self._warn(
                warnings,
                f"SSS: salary {monthly_salary} below minimum MSC {table.min_msc}; "
                "clamped to lowest bracket",
            )
        elif monthly_salary >= table.max_msc + table.msc_step / 2:
            self._warn(
                warnings,
                f"SSS: salary {monthly_salary} above maximum MSC {table.max_msc}; "
                "clamped to highest bracket",
            )

        msc = self._sss_brackets[-1].msc
        for bracket in self._sss_brackets:
            if bracket.upper is None or monthly_salary < bracket.upper:
                msc = bracket.msc
                break

        regular_msc = min(msc, table.wisp_threshold)
        wisp_msc = max(msc - table.wisp_threshold, ZERO)

        return SSSContribution(
            msc=msc,
            regular_msc=regular_msc,
            wisp_msc=wisp_msc,
            regular_employee_share=round_half_up(regular_msc * table.employee_rate),
            regular_employer_share=round_half_up(regular_msc * table.employer_rate),
            wisp_employee_share=round_half_up(wisp_msc * table.employee_rate),
            wisp_employer_share=round_half_up(wisp_msc * table.employer_rate),
            warnings=tuple(warnings),
        )

    def philhealth(self, monthly_salary: Decimal) -> Contribution:
        """Premium on salary clamped to the floor/ceiling, split evenly."""
        table = self.tables.philhealth
        warnings: list[str] = []

        base = monthly_salary
        if base < table.floor:
            self._warn(warnings, f"PhilHealth: salary {monthly_salary} below floor {table.floor}")
            base = table.floor
        elif base > table.ceiling:
            self._warn(
                warnings, f"PhilHealth: salary {monthly_salary} above ceiling {table.ceiling}"
            )
            base = table.ceiling

        share = round_half_up(base * table.rate / 2)
        return Contribution(
            employee_share=share,
            employer_share=share,
            salary_base=base,
            warnings=tuple(warnings),
        )

    def pagibig(self, monthly_salary: Decimal) -> Contribution:
        """Percentage of salary up to the maximum fund salary."""
        table = self.tables.pagibig
        warnings: list[str] = []

        base = monthly_salary
        if base < 0:
            self._warn(warnings, f"Pag-IBIG: negative salary {monthly_salary} clamped to 0")
            base = ZERO
        base = min(base, table.max_fund_salary)

        if monthly_salary <= table.low_income_threshold:
            employee_rate = table.low_income_employee_rate
        else:
            employee_rate = table.employee_rate

        return Contribution(
            employee_share=round_half_up(base * employee_rate),
            employer_share=round_half_up(base * table.employer_rate),
            salary_base=base,
            warnings=tuple(warnings),
        )

    def all_contributions(self, monthly_salary: Decimal) -> GovernmentContributions:
        return GovernmentContributions(
            monthly_salary=monthly_salary,
            sss=self.sss(monthly_salary),
            philhealth=self.philhealth(monthly_salary),
            pagibig=self.pagibig(monthly_salary),
        )

    def withholding_tax(
        self,
        taxable_compensation: Decimal,
        frequency: TaxFrequency = TaxFrequency.SEMI_MONTHLY,
    ) -> WithholdingTax:
        """Graduated lookup: flat amount plus rate on the excess over the floor."""
        warnings: list[str] = []
        income = taxable_compensation
        if income < 0:
            self._warn(
                warnings, f"Withholding: negative taxable compensation {income} clamped to 0"
            )
            income = ZERO

        brackets = sorted(self.tables.tax_brackets(frequency), key=lambda b: b.min_amount)
        selected = brackets[0]
        for bracket in brackets:
            if income >= bracket.min_amount:
                selected = bracket

        if selected.rate == 0:
            tax = selected.flat_amount
        else:
            tax = selected.flat_amount + (income - selected.min_amount) * selected.rate

        return WithholdingTax(
            taxable_compensation=round_half_up(income),
            tax=round_half_up(max(tax, ZERO)),
            frequency=frequency,
            bracket=selected,
            warnings=tuple(warnings),
        )

    def taxable_compensation(
        self,
        gross_pay: Decimal,
        sss: Decimal,
        philhealth: Decimal,
        pagibig: Decimal,
        thirteenth_month_pay: Decimal = ZERO,
        thirteenth_month_excluded_ytd: Decimal = ZERO,
    ) -> Decimal:
        """Gross less employee contributions, plus 13th-month pay above the exclusion.

        ``thirteenth_month_excluded_ytd`` is the portion of the annual
        exclusion already used by earlier payslips in the same year.
        """
        taxable = gross_pay - sss - philhealth - pagibig
        taxable += self.taxable_thirteenth_month(thirteenth_month_pay, thirteenth_month_excluded_ytd)
        return round_half_up(taxable)

    def taxable_thirteenth_month(
        self,
        thirteenth_month_pay: Decimal,
        thirteenth_month_excluded_ytd: Decimal = ZERO,
    ) -> Decimal:
        remaining = max(self.tables.thirteenth_month_exclusion - thirteenth_month_excluded_ytd, ZERO)
        return max(thirteenth_month_pay - remaining, ZERO)


def split_for_period(
    monthly_amount: Decimal,
    period: PayPeriod,
    periods: PeriodCalculator,
) -> Decimal:
    """Share of a monthly amount deducted in ``period``.

    The month is the month of ``period.end``. Each period ending in that
    month takes an equal rounded share and the last absorbs the remainder,
    so the shares always add back to the monthly amount.
    """
    in_month = periods.periods_ending_in_month(period.end.year, period.end.month)
    count = len(in_month)
    share = round_half_up(monthly_amount / count)
    if period == in_month[-1]:
        return monthly_amount - share * (count - 1)
    return share


@dataclass(frozen=True)
class MonthToDate:
    """Taxable pay and tax of the earlier periods ending in the same month."""

    taxable_compensation: Decimal = ZERO
    withholding_tax: Decimal = ZERO


@dataclass(frozen=True)
class PeriodWithholding:
    """Withholding for one period, settled against the month so far."""

    month_taxable: Decimal
    month_tax: Decimal
    withheld_before: Decimal
    tax: Decimal
    warnings: tuple[str, ...] = ()


def withholding_for_period(
    calculator: ContributionCalculator,
    taxable_compensation: Decimal,
    month_to_date: MonthToDate | None = None,
    frequency: TaxFrequency = TaxFrequency.MONTHLY,
) -> PeriodWithholding:
    """Cumulative withholding for one period of a month.

    The tax is looked up on the taxable pay of the month so far, the month
    being that of ``period.end`` as for ``split_for_period``. This period
    withholds that tax less what earlier periods of the month withheld, so
    after the month's last period the total equals the table tax on the
    month's taxable pay. The semi-monthly table taxes the month as two
    equal halves. Over-withholding is not refunded.
    """
    month_to_date = month_to_date or MonthToDate()
    month_taxable = round_half_up(month_to_date.taxable_compensation + taxable_compensation)

    if frequency == TaxFrequency.SEMI_MONTHLY:
        half = calculator.withholding_tax(round_half_up(month_taxable / 2), frequency)
        month_tax, warnings = half.tax * 2, list(half.warnings)
    else:
        result = calculator.withholding_tax(month_taxable, frequency)
        month_tax, warnings = result.tax, list(result.warnings)

    withheld_before = month_to_date.withholding_tax
    tax = month_tax - withheld_before
    if tax < 0:
        message = f"Withholding: {withheld_before} already withheld exceeds month tax {month_tax}"
        logger.warning(message)
        warnings.append(message)
        tax = ZERO

    return PeriodWithholding(
        month_taxable=month_taxable,
        month_tax=month_tax,
        withheld_before=withheld_before,
        tax=round_half_up(tax),
        warnings=tuple(warnings),
    )
