"""Shift registration scheduling: intervals and overlap rules."""

from payslip_engine.scheduling.intervals import (
    InvalidIntervalError,
    ShiftInterval,
    overlap_range,
    overlaps,
    split_overnight,
)
from payslip_engine.scheduling.types import (
    RegistrationStatus,
    ShiftRegistration,
    SkippedRegistration,
)

__all__ = [
    "InvalidIntervalError",
    "ShiftInterval",
    "overlap_range",
    "overlaps",
    "split_overnight",
    "RegistrationStatus",
    "ShiftRegistration",
    "SkippedRegistration",
]
