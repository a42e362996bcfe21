"""Time-of-day intervals and overlap detection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time

MINUTES_PER_DAY = 24 * 60


class InvalidIntervalError(ValueError):
    """Raised when an interval does not start before it ends."""

    def __init__(self, start: time, end: time, reason: str | None = None):
        self.start = start
        self.end = end
        msg = f"Invalid interval {start:%H:%M}-{end:%H:%M}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


def parse_time(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS``. ``24:00`` means end of day."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Time must be HH:MM or HH:MM:SS, got {value!r}")
    try:
        numbers = [int(p) for p in parts]
    except ValueError as e:
        raise ValueError(f"Time must be HH:MM or HH:MM:SS, got {value!r}") from e

    if numbers[0] == 24 and all(n == 0 for n in numbers[1:]):
        return time.max
    return time(*numbers)


@dataclass(frozen=True)
class ShiftInterval:
    """Half-open clock interval ``[start_time, end_time)`` within one day.

    Overnight shifts are not representable; split them with
    ``split_overnight`` first.
    """

    start_time: time
    end_time: time

    def __post_init__(self) -> None:
        if not self.start_time < self.end_time:
            raise InvalidIntervalError(
                self.start_time, self.end_time, "start must be before end"
            )

    @classmethod
    def parse(cls, start: str, end: str) -> ShiftInterval:
        return cls(parse_time(start), parse_time(end))

    @property
    def duration_minutes(self) -> int:
        return _minutes(self.end_time) - _minutes(self.start_time)

    def __str__(self) -> str:
        return f"{self.start_time:%H:%M}-{_format_end(self.end_time)}"


def overlaps(a: ShiftInterval, b: ShiftInterval) -> bool:
    """True iff the intervals share any instant.

    An interval ending exactly when the other starts does not overlap it.
    """
    return a.start_time < b.end_time and b.start_time < a.end_time


def overlap_range(a: ShiftInterval, b: ShiftInterval) -> ShiftInterval | None:
    """The shared part of two intervals, or None."""
    if not overlaps(a, b):
        return None
    return ShiftInterval(max(a.start_time, b.start_time), min(a.end_time, b.end_time))


def split_overnight(start: time, end: time) -> list[ShiftInterval]:
    """Intervals for a shift that may cross midnight.

    ``22:00-06:00`` becomes ``[22:00-24:00, 00:00-06:00]``; a same-day shift
    is returned as a single interval.
    """
    if start < end:
        return [ShiftInterval(start, end)]
    if start == end:
        raise InvalidIntervalError(start, end, "zero-length shift")

    intervals = [ShiftInterval(start, time.max)]
    if end > time.min:
        intervals.append(ShiftInterval(time.min, end))
    return intervals


def _minutes(value: time) -> int:
    if value == time.max:
        return MINUTES_PER_DAY
    return value.hour * 60 + value.minute


def _format_end(value: time) -> str:
    return "24:00" if value == time.max else f"{value:%H:%M}"
