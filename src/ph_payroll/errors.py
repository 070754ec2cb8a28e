"""Typed exception hierarchy for the payroll engine.

Every error carries a machine-readable ``code`` and structured attributes so
callers (and the API layer) can branch on type instead of message text.

    PayrollError
    +-- PayrollValidationError
    |   +-- OvertimeValidationError
    |   +-- AttendanceValidationError
    |   +-- PeriodAlignmentError
    +-- NotFoundError
    +-- InvalidTransitionError
    +-- OvertimeOwnershipError
    +-- PayslipImmutableError
    +-- DuplicatePayslipError
    +-- DeductionVersionConflictError
    +-- StatutoryTableNotFoundError
"""

from __future__ import annotations

from datetime import date
from uuid import UUID


class PayrollError(Exception):
    """Base exception for all payroll engine errors."""

    code: str = "PAYROLL_ERROR"


class PayrollValidationError(PayrollError):
    """Input rejected at intake; never coerced into a default."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message if field is None else f"{field}: {message}")


class OvertimeValidationError(PayrollValidationError):
    """Overtime submission failed validation."""

    code: str = "OVERTIME_INVALID"


class AttendanceValidationError(PayrollValidationError):
    """Clock entry or correction failed validation."""

    code: str = "ATTENDANCE_INVALID"


class PeriodAlignmentError(PayrollValidationError):
    """Date range does not match a canonical pay period."""

    code: str = "PERIOD_MISALIGNED"

    def __init__(self, start: date, end: date | None = None):
        self.start = start
        self.end = end
        span = f"{start}" if end is None else f"{start}..{end}"
        super().__init__(f"{span} is not a canonical pay period", field="period_start")


class NotFoundError(PayrollError):
    """Requested record does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class InvalidTransitionError(PayrollError):
    """Raised when an invalid state transition is attempted."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class OvertimeOwnershipError(PayrollError):
    """Only the filing employee may cancel an overtime request."""

    code: str = "OVERTIME_NOT_OWNER"

    def __init__(self, request_id: UUID, actor_id: UUID):
        self.request_id = request_id
        self.actor_id = actor_id
        super().__init__(
            f"Employee {actor_id} cannot cancel overtime request {request_id} "
            "filed by another employee"
        )


class PayslipImmutableError(PayrollError):
    """Paid payslips are frozen; corrections go through an adjustment."""

    code: str = "PAYSLIP_IMMUTABLE"

    def __init__(self, payslip_id: UUID, status: str):
        self.payslip_id = payslip_id
        self.status = status
        super().__init__(
            f"Payslip {payslip_id} is {status} and cannot be recomputed or edited. "
            "Record an adjustment instead."
        )


class DuplicatePayslipError(PayrollError):
    """A payslip for the (employee, period) key was written concurrently."""

    code: str = "PAYSLIP_DUPLICATE"

    def __init__(self, employee_id: UUID, period_start: date):
        self.employee_id = employee_id
        self.period_start = period_start
        super().__init__(
            f"Payslip for employee {employee_id} period {period_start} already exists"
        )


class DeductionVersionConflictError(PayrollError):
    """Deduction record changed since it was loaded."""

    code: str = "DEDUCTION_VERSION_CONFLICT"

    def __init__(
        self,
        employee_id: UUID,
        period_start: date,
        expected_version: int | None,
        actual_version: int | None,
    ):
        self.employee_id = employee_id
        self.period_start = period_start
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Deduction record for employee {employee_id} period {period_start} "
            f"is at version {actual_version}, expected {expected_version}"
        )


class StatutoryTableNotFoundError(PayrollError):
    """No statutory table version is effective on the requested date."""

    code: str = "STATUTORY_TABLE_NOT_FOUND"

    def __init__(self, as_of_date: date):
        self.as_of_date = as_of_date
        super().__init__(f"No statutory tables effective {as_of_date}")
