"""SQLAlchemy ORM models."""

from ph_payroll.models.attendance import (
    FailureToLog,
    OvertimeRequest,
    TimeClockEntry,
    TimeCreditEntry,
)
from ph_payroll.models.base import Base
from ph_payroll.models.employee import Employee, Holiday, ScheduleDay
from ph_payroll.models.payroll import (
    DeductionRecord,
    Payslip,
    PayslipAdjustment,
    StatutoryTableVersion,
)

__all__ = [
    "Base",
    "DeductionRecord",
    "Employee",
    "FailureToLog",
    "Holiday",
    "OvertimeRequest",
    "Payslip",
    "PayslipAdjustment",
    "ScheduleDay",
    "StatutoryTableVersion",
    "TimeClockEntry",
    "TimeCreditEntry",
]
