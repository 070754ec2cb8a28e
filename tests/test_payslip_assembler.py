"""Tests for payslip assembly."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from ph_payroll.calculators.contributions import ContributionCalculator, MonthToDate
from ph_payroll.calculators.earnings import EarningsBreakdown
from ph_payroll.calculators.line_builder import LineItemBuilder
from ph_payroll.calculators.payslip import PayslipAssembler
from ph_payroll.calculators.types import DeductionInputs, LineType, PayPeriod, TaxFrequency
from ph_payroll.errors import PayrollValidationError, PeriodAlignmentError


def earnings(gross: str) -> EarningsBreakdown:
    return EarningsBreakdown(
        hourly_rate=Decimal("125.00"),
        daily_rate=Decimal("1000.00"),
        lines=[
            LineItemBuilder.create_earning_line(
                code="REG",
                description="Regular pay",
                amount=Decimal(gross),
                quantity=Decimal("80"),
                rate=Decimal("125"),
                multiplier=Decimal("1.0"),
            )
        ],
    )


def codes(computation) -> set[str]:
    return {line.code for line in computation.lines}


@pytest.fixture
def assembler(periods) -> PayslipAssembler:
    return PayslipAssembler(ContributionCalculator(), periods)


class TestPayslipAssembler:
    """Test assembly of a payslip for a 22,000 monthly employee.

    Monthly contributions at 22,000: SSS 1,000 + 100 WISP, PhilHealth 550,
    Pag-IBIG 200. The 2025-01-06 period is the second of two periods ending
    in January, so each is halved.
    """

    def test_basic_payslip(self, assembler, employee, period):
        computation = assembler.assemble(employee, period, earnings("10000"))

        assert computation.success
        assert computation.gross_pay == Decimal("10000.00")
        assert computation.sss_amount == Decimal("550.00")
        assert computation.sss_wisp_amount == Decimal("50.00")
        assert computation.philhealth_amount == Decimal("275.00")
        assert computation.pagibig_amount == Decimal("100.00")
        assert computation.taxable_compensation == Decimal("9075.00")
        assert computation.withholding_tax == Decimal("0.00")
        assert computation.total_deductions == Decimal("925.00")
        assert computation.net_pay == Decimal("9075.00")
        assert computation.payslip_number == "EMP001-2025-P02"

    def test_employer_shares_not_in_net(self, assembler, employee, period):
        computation = assembler.assemble(employee, period, earnings("10000"))
        employer = {
            line.code: line.amount
            for line in computation.lines
            if line.line_type == LineType.EMPLOYER_CONTRIBUTION
        }
        assert employer == {
            "SSS_ER": Decimal("1100.00"),
            "PHILHEALTH_ER": Decimal("275.00"),
            "PAGIBIG_ER": Decimal("100.00"),
        }
        assert computation.net_pay == Decimal("9075.00")

    def test_allowance_added_to_net_only(self, assembler, employee, period):
        computation = assembler.assemble(
            employee, period, earnings("10000"), allowance_amount=Decimal("1000")
        )
        assert computation.gross_pay == Decimal("10000.00")
        assert computation.taxable_compensation == Decimal("9075.00")
        assert computation.net_pay == Decimal("10075.00")
        assert "ALLOWANCE" in codes(computation)

    def test_manual_deductions(self, assembler, employee, period):
        deductions = DeductionInputs(vale_amount=Decimal("500"), sss_salary_loan=Decimal("250"))
        computation = assembler.assemble(employee, period, earnings("10000"), deductions=deductions)
        assert computation.total_deductions == Decimal("1675.00")
        assert computation.net_pay == Decimal("8325.00")
        assert {"VALE", "SSS_LOAN"} <= codes(computation)

    def test_manual_government_amount_wins(self, assembler, employee, period):
        deductions = DeductionInputs(philhealth_contribution=Decimal("300"), sss_wisp=Decimal("0"))
        computation = assembler.assemble(employee, period, earnings("10000"), deductions=deductions)
        assert computation.philhealth_amount == Decimal("300.00")
        assert computation.sss_wisp_amount == Decimal("0.00")
        assert computation.sss_amount == Decimal("500.00")
        assert "SSS_WISP" not in codes(computation)

    def test_withholding_override(self, assembler, employee, period):
        deductions = DeductionInputs(withholding_tax=Decimal("123.456"))
        computation = assembler.assemble(employee, period, earnings("10000"), deductions=deductions)
        assert computation.withholding_tax == Decimal("123.46")

    def test_contribution_flags(self, assembler, employee, period):
        computation = assembler.assemble(
            employee, period, earnings("10000"), apply_sss=False, apply_pagibig=False
        )
        assert computation.sss_amount == Decimal("0.00")
        assert computation.pagibig_amount == Decimal("0.00")
        assert computation.philhealth_amount == Decimal("275.00")
        assert not {"SSS", "SSS_WISP", "SSS_ER", "PAGIBIG", "PAGIBIG_ER"} & codes(computation)

    def test_thirteenth_month_above_exclusion_is_taxed(self, assembler, employee, period):
        computation = assembler.assemble(
            employee, period, earnings("10000"), thirteenth_month_pay=Decimal("120000")
        )
        # 9,075 + 30,000 over the exclusion; 1,875 + (39,075 - 33,333) x 20%
        assert computation.taxable_compensation == Decimal("39075.00")
        assert computation.withholding_tax == Decimal("3023.40")
        assert computation.net_pay == Decimal("126051.60")
        assert computation.gross_pay == Decimal("10000.00")

    def test_negative_net_is_a_warning(self, assembler, employee, period):
        deductions = DeductionInputs(vale_amount=Decimal("20000"))
        computation = assembler.assemble(employee, period, earnings("10000"), deductions=deductions)
        assert computation.net_pay < 0
        assert computation.success
        assert any("Negative net pay" in w for w in computation.warnings)

    def test_breakdowns_partition_lines(self, assembler, employee, period):
        computation = assembler.assemble(
            employee, period, earnings("10000"), allowance_amount=Decimal("100")
        )
        earning_codes = {item["code"] for item in computation.earnings_breakdown()}
        deduction_codes = {item["code"] for item in computation.deductions_breakdown()}
        assert earning_codes == {"REG", "ALLOWANCE"}
        assert "SSS" in deduction_codes
        assert len(computation.earnings_breakdown()) + len(computation.deductions_breakdown()) == len(
            computation.lines
        )

    def test_rejects_misaligned_period(self, assembler, employee):
        with pytest.raises(PeriodAlignmentError):
            assembler.assemble(
                employee,
                PayPeriod(start=date(2025, 1, 1), end=date(2025, 1, 15)),
                earnings("10000"),
            )

    def test_rejects_negative_allowance(self, assembler, employee, period):
        with pytest.raises(PayrollValidationError) as exc_info:
            assembler.assemble(employee, period, earnings("10000"), allowance_amount=Decimal("-1"))
        assert exc_info.value.field == "allowance_amount"


class TestMonthlyWithholding:
    """Test that withholding settles on the month's taxable pay.

    March 2025 has three periods ending in it. At 30,000 gross each and
    1,850 of monthly contributions, the month's taxable pay is 88,150 and
    the monthly table gives 8,541.80 + (88,150 - 66,667) x 25% = 13,912.55.
    """

    def run_month(self, assembler, employee, periods, gross: str = "30000"):
        month_to_date = MonthToDate()
        computations = []
        for march_period in periods.periods_ending_in_month(2025, 3):
            computation = assembler.assemble(
                employee, march_period, earnings(gross), month_to_date=month_to_date
            )
            computations.append(computation)
            month_to_date = MonthToDate(
                taxable_compensation=month_to_date.taxable_compensation
                + computation.taxable_compensation,
                withholding_tax=month_to_date.withholding_tax + computation.withholding_tax,
            )
        return computations

    def test_month_total_matches_monthly_table(self, assembler, employee, periods):
        computations = self.run_month(assembler, employee, periods)
        month_taxable = sum(c.taxable_compensation for c in computations)
        month_withheld = sum(c.withholding_tax for c in computations)

        assert len(computations) == 3
        assert month_taxable == Decimal("88150.00")
        assert month_withheld == Decimal("13912.55")
        assert (
            month_withheld
            == ContributionCalculator().withholding_tax(month_taxable, TaxFrequency.MONTHLY).tax
        )

    def test_each_period_withholds_against_month_so_far(self, assembler, employee, periods):
        first, second, third = self.run_month(assembler, employee, periods)
        # 29,383.34 taxable so far: (29,383.34 - 20,833) x 15%
        assert first.withholding_tax == Decimal("1282.55")
        assert third.withholding_tax > 0
        assert first.withholding_tax + second.withholding_tax < Decimal("13912.55")

    def test_semi_monthly_table_taxes_two_halves(self, periods, employee):
        assembler = PayslipAssembler(
            ContributionCalculator(), periods, tax_frequency=TaxFrequency.SEMI_MONTHLY
        )
        computations = self.run_month(assembler, employee, periods)
        half = ContributionCalculator().withholding_tax(
            Decimal("44075.00"), TaxFrequency.SEMI_MONTHLY
        )
        assert sum(c.withholding_tax for c in computations) == half.tax * 2

    def test_override_ignores_month_to_date(self, assembler, employee, period):
        computation = assembler.assemble(
            employee,
            period,
            earnings("10000"),
            deductions=DeductionInputs(withholding_tax=Decimal("50")),
            month_to_date=MonthToDate(Decimal("50000"), Decimal("0")),
        )
        assert computation.withholding_tax == Decimal("50.00")


class TestCalculationId:
    """Test deterministic calculation fingerprints."""

    def test_same_inputs_same_id(self, assembler, employee, period):
        first = assembler.assemble(employee, period, earnings("10000"))
        second = assembler.assemble(employee, period, earnings("10000"))
        assert isinstance(first.calculation_id, UUID)
        assert first.calculation_id == second.calculation_id

    def test_changed_inputs_change_id(self, assembler, employee, period):
        first = assembler.assemble(employee, period, earnings("10000"))
        second = assembler.assemble(
            employee, period, earnings("10000"), allowance_amount=Decimal("1")
        )
        assert first.calculation_id != second.calculation_id

    def test_engine_version_changes_id(self, periods, employee, period):
        old = PayslipAssembler(ContributionCalculator(), periods, engine_version="1.0.0")
        new = PayslipAssembler(ContributionCalculator(), periods, engine_version="1.1.0")
        assert (
            old.assemble(employee, period, earnings("10000")).calculation_id
            != new.assemble(employee, period, earnings("10000")).calculation_id
        )

    def test_daily_rated_employee(self, assembler, employee, period):
        """Daily rates are converted to a monthly salary credit for brackets."""
        daily_paid = replace(employee, monthly_rate=None, daily_rate=Decimal("1000"))
        computation = assembler.assemble(daily_paid, period, earnings("10000"))
        assert computation.sss_amount == Decimal("550.00")
