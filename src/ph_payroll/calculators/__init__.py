"""Payroll calculation pipeline."""

from ph_payroll.calculators.attendance import AttendanceAggregator
from ph_payroll.calculators.contributions import ContributionCalculator
from ph_payroll.calculators.earnings import EarningsCalculator
from ph_payroll.calculators.line_builder import LineItemBuilder
from ph_payroll.calculators.overtime import OvertimeResolver
from ph_payroll.calculators.payslip import PayslipAssembler, PayslipComputation
from ph_payroll.calculators.periods import PeriodCalculator
from ph_payroll.calculators.reporting import BIRReportBuilder, YTDAggregator
from ph_payroll.calculators.tables import StatutoryTableCache, StatutoryTables

__all__ = [
    "AttendanceAggregator",
    "BIRReportBuilder",
    "ContributionCalculator",
    "EarningsCalculator",
    "LineItemBuilder",
    "OvertimeResolver",
    "PayslipAssembler",
    "PayslipComputation",
    "PeriodCalculator",
    "StatutoryTableCache",
    "StatutoryTables",
    "YTDAggregator",
]
