"""Status state machines for payslips and shift registrations."""

from __future__ import annotations

from enum import Enum

from payslip_engine.scheduling.types import RegistrationStatus


class PayslipStatus(str, Enum):
    """Payslip lifecycle status values."""

    DRAFT = "draft"
    FINALIZED = "finalized"

    @classmethod
    def of(cls, is_finalized: bool) -> PayslipStatus:
        return cls.FINALIZED if is_finalized else cls.DRAFT


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayslipStateMachine:
    """State machine for payslip status transitions.

    Allowed transitions:
    - draft → finalized
    - finalized → draft (reopen, privileged)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayslipStatus.DRAFT: [PayslipStatus.FINALIZED],
        PayslipStatus.FINALIZED: [PayslipStatus.DRAFT],
    }

    # Statuses where manual edits and recalculation are allowed
    EDITABLE = {PayslipStatus.DRAFT}

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
    def can_edit(cls, status: str) -> bool:
        """Check if inputs can be edited in this status."""
        return status in cls.EDITABLE

    @classmethod
    def is_reopen(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition is a reopen (finalized → draft)."""
        return from_status == PayslipStatus.FINALIZED and to_status == PayslipStatus.DRAFT


class RegistrationStateMachine:
    """State machine for shift registrations.

    Allowed transitions:
    - pending → approved
    - pending → rejected
    Approved and rejected are terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RegistrationStatus.PENDING: [RegistrationStatus.APPROVED, RegistrationStatus.REJECTED],
        RegistrationStatus.APPROVED: [],
        RegistrationStatus.REJECTED: [],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status, [])
