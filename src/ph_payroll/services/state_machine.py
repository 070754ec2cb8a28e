"""Payslip and overtime state machines with transition validation."""

from __future__ import annotations

from ph_payroll.calculators.types import OvertimeStatus, PayslipStatus
from ph_payroll.errors import InvalidTransitionError


class PayslipStateMachine:
    """State machine for payslip status transitions.

    Allowed transitions:
    - draft → approved
    - approved → draft (reopen)
    - approved → paid
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayslipStatus.DRAFT: [PayslipStatus.APPROVED],
        PayslipStatus.APPROVED: [PayslipStatus.DRAFT, PayslipStatus.PAID],
        PayslipStatus.PAID: [],  # Terminal state
    }

    # Statuses where recomputation is allowed
    CALCULATION_ALLOWED = {
        PayslipStatus.DRAFT,
        PayslipStatus.APPROVED,
    }

    # Statuses where monetary fields are frozen
    RESULTS_IMMUTABLE = {
        PayslipStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Check if recomputation is allowed in this status."""
        return status in cls.CALCULATION_ALLOWED

    @classmethod
    def are_results_immutable(cls, status: str) -> bool:
        return status in cls.RESULTS_IMMUTABLE

    @classmethod
    def is_reopen(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition is a reopen (approved → draft)."""
        return from_status == PayslipStatus.APPROVED and to_status == PayslipStatus.DRAFT

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        return cls.VALID_TRANSITIONS.get(current_status, [])


class OvertimeStateMachine:
    """State machine for overtime requests.

    pending → approved | rejected | cancelled; every other status is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        OvertimeStatus.PENDING: [
            OvertimeStatus.APPROVED,
            OvertimeStatus.REJECTED,
            OvertimeStatus.CANCELLED,
        ],
        OvertimeStatus.APPROVED: [],
        OvertimeStatus.REJECTED: [],
        OvertimeStatus.CANCELLED: [],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(
                from_status, to_status, reason=f"overtime request is already {from_status}"
            )

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)
