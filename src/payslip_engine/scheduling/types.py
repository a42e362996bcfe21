"""Shift registration records and resolver decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from payslip_engine.scheduling.intervals import ShiftInterval

DEFAULT_CONFLICT_NAME = "another shift"


class RegistrationStatus(str, Enum):
    """Shift registration status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ShiftRegistration:
    """An employee's request to work one shift on one date."""

    id: str
    employee_id: str
    shift_date: date
    shift_id: str | None
    interval: ShiftInterval | None  # None when the shift has no clock times
    status: RegistrationStatus = RegistrationStatus.PENDING
    registered_at: datetime | None = None
    shift_name: str | None = None
    employee_name: str | None = None
    branch_id: str | None = None

    @property
    def display_name(self) -> str:
        return self.employee_name or self.employee_id

    def same_slot_owner(self, other: ShiftRegistration) -> bool:
        """Same employee on the same date, but a different registration."""
        return (
            self.id != other.id
            and self.employee_id == other.employee_id
            and self.shift_date == other.shift_date
        )


@dataclass(frozen=True)
class ConflictResult:
    """Whether a registration can join a selection."""

    conflicting: ShiftRegistration | None = None

    @property
    def has_conflict(self) -> bool:
        return self.conflicting is not None

    @property
    def conflict_shift_name(self) -> str | None:
        if self.conflicting is None:
            return None
        return self.conflicting.shift_name or DEFAULT_CONFLICT_NAME


NO_CONFLICT = ConflictResult()


@dataclass(frozen=True)
class SkippedRegistration:
    """A registration left out of a selection because of an overlap."""

    registration_id: str
    employee_id: str
    employee_name: str
    conflicting_shift_name: str

    @classmethod
    def of(cls, reg: ShiftRegistration, conflict: ConflictResult) -> SkippedRegistration:
        return cls(
            registration_id=reg.id,
            employee_id=reg.employee_id,
            employee_name=reg.display_name,
            conflicting_shift_name=conflict.conflict_shift_name or DEFAULT_CONFLICT_NAME,
        )


@dataclass(frozen=True)
class SelectionResult:
    """Updated selection plus the registrations that were skipped."""

    selected: frozenset[str]
    skipped: tuple[SkippedRegistration, ...] = ()

    @property
    def warnings(self) -> list[tuple[str, str]]:
        """(employee_id, conflicting shift name) pairs for user feedback."""
        return [(s.employee_id, s.conflicting_shift_name) for s in self.skipped]


@dataclass(frozen=True)
class OverlapConflict:
    """Two registrations of one employee that overlap on the same date."""

    first: ShiftRegistration
    second: ShiftRegistration
    overlap: ShiftInterval


@dataclass
class ApprovalBatch:
    """Status decisions produced when a manager submits a selection."""

    approve: list[str] = field(default_factory=list)
    reject: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[SkippedRegistration] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.approve and not self.reject
