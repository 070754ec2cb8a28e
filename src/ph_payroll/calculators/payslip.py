"""Payslip assembly - combines earnings, deductions and statutory amounts."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from ph_payroll.calculators.contributions import (
    ContributionCalculator,
    GovernmentContributions,
    MonthToDate,
    split_for_period,
    withholding_for_period,
)
from ph_payroll.calculators.earnings import EarningsBreakdown
from ph_payroll.calculators.line_builder import LineItemBuilder
from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.types import (
    ZERO,
    DeductionInputs,
    EmployeeProfile,
    LineType,
    PayLine,
    PayPeriod,
    PayPolicy,
    TaxFrequency,
)
from ph_payroll.errors import PayrollValidationError

logger = logging.getLogger(__name__)


@dataclass
class PayslipComputation:
    """Result of assembling one payslip; not yet persisted."""

    employee_id: UUID
    period: PayPeriod
    payslip_number: str
    calculation_id: UUID
    lines: list[PayLine]
    gross_pay: Decimal
    taxable_compensation: Decimal
    sss_amount: Decimal
    sss_wisp_amount: Decimal
    philhealth_amount: Decimal
    pagibig_amount: Decimal
    withholding_tax: Decimal
    allowance_amount: Decimal
    thirteenth_month_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    apply_sss: bool = True
    apply_philhealth: bool = True
    apply_pagibig: bool = True
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def earnings_breakdown(self) -> list[dict[str, Any]]:
        return [
            line.to_canonical_dict()
            for line in self.lines
            if line.line_type in LineItemBuilder.PAY_ADDITIONS
        ]

    def deductions_breakdown(self) -> list[dict[str, Any]]:
        return [
            line.to_canonical_dict()
            for line in self.lines
            if line.line_type not in LineItemBuilder.PAY_ADDITIONS
        ]


class PayslipAssembler:
    """Assembles a draft payslip from its computed parts.

    Assembly is a pure function of its inputs: the same earnings, deduction
    entries and tables always give the same lines, totals and
    ``calculation_id``.
    """

    def __init__(
        self,
        calculator: ContributionCalculator,
        periods: PeriodCalculator,
        policy: PayPolicy | None = None,
        tax_frequency: TaxFrequency = TaxFrequency.MONTHLY,
        engine_version: str = "1.0.0",
    ):
        self.calculator = calculator
        self.periods = periods
        self.policy = policy or PayPolicy()
        self.tax_frequency = tax_frequency
        self.engine_version = engine_version

    def payslip_number(self, employee: EmployeeProfile, period: PayPeriod) -> str:
        index = self.periods.period_index_in_year(period)
        return f"{employee.employee_code}-{period.year}-P{index:02d}"

    def assemble(
        self,
        employee: EmployeeProfile,
        period: PayPeriod,
        earnings: EarningsBreakdown,
        deductions: DeductionInputs | None = None,
        allowance_amount: Decimal = ZERO,
        thirteenth_month_pay: Decimal = ZERO,
        thirteenth_month_excluded_ytd: Decimal = ZERO,
        month_to_date: MonthToDate | None = None,
        apply_sss: bool = True,
        apply_philhealth: bool = True,
        apply_pagibig: bool = True,
    ) -> PayslipComputation:
        """Build lines and totals for one employee and period.

        ``month_to_date`` carries the taxable pay and tax of earlier periods
        ending in the same month; withholding is settled against them.
        """
        deductions = deductions or DeductionInputs()
        self.periods.validate(period)
        if allowance_amount < 0:
            raise PayrollValidationError("must not be negative", field="allowance_amount")
        if thirteenth_month_pay < 0:
            raise PayrollValidationError("must not be negative", field="thirteenth_month_pay")
        warnings: list[str] = []
        errors: list[str] = []

        lines: list[PayLine] = list(earnings.lines)
        gross = LineItemBuilder.calculate_gross_from_lines(lines)

        # 1) Government contributions: manual entry wins, else the period's share
        monthly_salary = employee.monthly_salary_credit(self.policy.working_days_per_month)
        gov = self.calculator.all_contributions(monthly_salary)
        warnings.extend(gov.warnings)
        shares = self.period_shares(gov, period)

        sss_regular = self._pick(deductions.sss_contribution, shares["sss"], apply_sss)
        sss_wisp = self._pick(deductions.sss_wisp, shares["sss_wisp"], apply_sss)
        philhealth = self._pick(
            deductions.philhealth_contribution, shares["philhealth"], apply_philhealth
        )
        pagibig = self._pick(deductions.pagibig_contribution, shares["pagibig"], apply_pagibig)
        sss_amount = sss_regular + sss_wisp

        # 2) Taxable compensation and withholding
        taxable = self.calculator.taxable_compensation(
            gross,
            sss_amount,
            philhealth,
            pagibig,
            thirteenth_month_pay=thirteenth_month_pay,
            thirteenth_month_excluded_ytd=thirteenth_month_excluded_ytd,
        )
        if deductions.withholding_tax is not None:
            withholding = LineItemBuilder.round_to_cents(deductions.withholding_tax)
        else:
            result = withholding_for_period(
                self.calculator, taxable, month_to_date, self.tax_frequency
            )
            warnings.extend(result.warnings)
            withholding = result.tax

        # 3) Additions outside gross
        if allowance_amount > 0:
            lines.append(
                LineItemBuilder.create_addition_line(
                    LineType.ALLOWANCE, "ALLOWANCE", "Allowance (non-taxable)", allowance_amount
                )
            )
        if thirteenth_month_pay > 0:
            lines.append(
                LineItemBuilder.create_addition_line(
                    LineType.THIRTEENTH_MONTH, "13TH_MONTH", "13th month pay", thirteenth_month_pay
                )
            )

        # 4) Employee deductions
        for code, description, amount in (
            ("SSS", "SSS contribution", sss_regular),
            ("SSS_WISP", "SSS WISP contribution", sss_wisp),
            ("PHILHEALTH", "PhilHealth contribution", philhealth),
            ("PAGIBIG", "Pag-IBIG contribution", pagibig),
        ):
            if amount > 0:
                lines.append(LineItemBuilder.create_contribution_line(code, description, amount))
        if withholding > 0:
            lines.append(LineItemBuilder.create_tax_line(withholding))
        for field_name, code, description in DeductionInputs.MANUAL_FIELDS:
            amount = getattr(deductions, field_name)
            if amount > 0:
                lines.append(LineItemBuilder.create_deduction_line(code, description, amount))

        # 5) Employer liabilities (not part of net)
        for code, description, amount, applies in (
            ("SSS_ER", "SSS employer share", shares["sss_er"], apply_sss),
            ("PHILHEALTH_ER", "PhilHealth employer share", shares["philhealth_er"], apply_philhealth),
            ("PAGIBIG_ER", "Pag-IBIG employer share", shares["pagibig_er"], apply_pagibig),
        ):
            if applies and amount > 0:
                lines.append(
                    LineItemBuilder.create_employer_contribution_line(code, description, amount)
                )

        # 6) Totals
        errors.extend(LineItemBuilder.validate_line_signs(lines))
        total_deductions = LineItemBuilder.calculate_deductions_from_lines(lines)
        net = LineItemBuilder.calculate_net_from_lines(lines)
        if net < 0:
            message = f"Negative net pay {net} for employee {employee.employee_code}"
            logger.warning(message)
            warnings.append(message)

        return PayslipComputation(
            employee_id=employee.employee_id,
            period=period,
            payslip_number=self.payslip_number(employee, period),
            calculation_id=self._generate_calculation_id(employee, period, lines, taxable),
            lines=lines,
            gross_pay=gross,
            taxable_compensation=taxable,
            sss_amount=LineItemBuilder.round_to_cents(sss_amount),
            sss_wisp_amount=LineItemBuilder.round_to_cents(sss_wisp),
            philhealth_amount=LineItemBuilder.round_to_cents(philhealth),
            pagibig_amount=LineItemBuilder.round_to_cents(pagibig),
            withholding_tax=withholding,
            allowance_amount=LineItemBuilder.round_to_cents(allowance_amount),
            thirteenth_month_pay=LineItemBuilder.round_to_cents(thirteenth_month_pay),
            total_deductions=total_deductions,
            net_pay=net,
            apply_sss=apply_sss,
            apply_philhealth=apply_philhealth,
            apply_pagibig=apply_pagibig,
            warnings=warnings,
            errors=errors,
        )

    def period_shares(self, gov: GovernmentContributions, period: PayPeriod) -> dict[str, Decimal]:
        """Split monthly contributions into this period's share."""
        return {
            "sss": split_for_period(gov.sss.regular_employee_share, period, self.periods),
            "sss_wisp": split_for_period(gov.sss.wisp_employee_share, period, self.periods),
            "philhealth": split_for_period(gov.philhealth.employee_share, period, self.periods),
            "pagibig": split_for_period(gov.pagibig.employee_share, period, self.periods),
            "sss_er": split_for_period(gov.sss.employer_share, period, self.periods),
            "philhealth_er": split_for_period(gov.philhealth.employer_share, period, self.periods),
            "pagibig_er": split_for_period(gov.pagibig.employer_share, period, self.periods),
        }

    @staticmethod
    def _pick(manual: Decimal | None, computed: Decimal, applies: bool) -> Decimal:
        if not applies:
            return ZERO
        return computed if manual is None else manual

    def _generate_calculation_id(
        self,
        employee: EmployeeProfile,
        period: PayPeriod,
        lines: list[PayLine],
        taxable_compensation: Decimal,
    ) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "employee_id": str(employee.employee_id),
            "period_start": str(period.start),
            "period_end": str(period.end),
            "engine_version": self.engine_version,
            "taxable_compensation": str(taxable_compensation),
            "lines": [LineItemBuilder.compute_line_hash(line) for line in lines],
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])
