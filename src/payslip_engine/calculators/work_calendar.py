"""Standard working days of a month."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable


@dataclass(frozen=True)
class Holiday:
    """A public or company holiday.

    Recurring holidays match every year on the same month and day.
    """

    day: date
    name: str = ""
    is_recurring: bool = False

    def falls_on(self, other: date) -> bool:
        if self.is_recurring:
            return (self.day.month, self.day.day) == (other.month, other.day)
        return self.day == other


def parse_month(month: str) -> tuple[int, int]:
    """Split ``YYYY-MM`` into (year, month)."""
    try:
        year_str, month_str = month.split("-")
        year, month_num = int(year_str), int(month_str)
    except ValueError as e:
        raise ValueError(f"Month must be formatted YYYY-MM, got {month!r}") from e
    if not 1 <= month_num <= 12:
        raise ValueError(f"Month must be formatted YYYY-MM, got {month!r}")
    return year, month_num


def standard_work_days(
    year: int, month: int, holidays: Iterable[Holiday] = ()
) -> int:
    """Count Monday-Saturday days of the month that are not holidays."""
    holidays = list(holidays)
    _, days_in_month = calendar.monthrange(year, month)
    count = 0
    for day_num in range(1, days_in_month + 1):
        current = date(year, month, day_num)
        if current.weekday() == calendar.SUNDAY:
            continue
        if any(h.falls_on(current) for h in holidays):
            continue
        count += 1
    return count
