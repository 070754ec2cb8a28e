"""Payroll engine services."""

from ph_payroll.services.attendance_service import AttendanceService
from ph_payroll.services.deduction_service import DeductionService
from ph_payroll.services.overtime_service import OvertimeService, SqlTimeCreditLedger, TimeCreditLedger
from ph_payroll.services.payslip_service import PayslipService
from ph_payroll.services.report_service import ReportService
from ph_payroll.services.state_machine import OvertimeStateMachine, PayslipStateMachine
from ph_payroll.services.statutory_service import StatutoryTableService

__all__ = [
    "AttendanceService",
    "DeductionService",
    "OvertimeService",
    "OvertimeStateMachine",
    "PayslipService",
    "PayslipStateMachine",
    "ReportService",
    "SqlTimeCreditLedger",
    "StatutoryTableService",
    "TimeCreditLedger",
]
