"""Time windows — map a day / ISO week / month selector to a date range.

Weeks use the ``YYYY-Www`` notation. The Monday of week *w* is found from
the reference date ``Jan 1 + (w - 1) * 7``: when the reference falls on
Sunday..Thursday the week starts on the Monday at or before it, otherwise on
the following Monday.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional, Union

from leaveflow.common.exceptions import InvalidSelector

_ISO_WEEK_RE = re.compile(r"^(\d{4})-W(\d{1,2})$")


# ── Selectors ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class DaySelector:
    day: date


@dataclass(frozen=True)
class WeekSelector:
    iso_week: str


@dataclass(frozen=True)
class MonthSelector:
    year: int
    month: int


Selector = Union[DaySelector, WeekSelector, MonthSelector]


@dataclass(frozen=True)
class DateWindow:
    """Inclusive ``[start_date, end_date]`` range."""

    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        return start <= self.end_date and end >= self.start_date

    def days(self) -> Iterator[date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)

    @property
    def length(self) -> int:
        return (self.end_date - self.start_date).days + 1


# ── Resolution ──────────────────────────────────────────────────────

def weeks_in_year(year: int) -> int:
    """Number of ISO weeks in *year* (52 or 53)."""
    return date(year, 12, 28).isocalendar()[1]


def week_start(year: int, week: int) -> date:
    """Monday that opens ISO week *week* of *year*."""
    reference = date(year, 1, 1) + timedelta(days=(week - 1) * 7)
    # Sunday = 0 .. Saturday = 6
    dow = (reference.weekday() + 1) % 7
    if dow <= 4:
        return reference - timedelta(days=dow - 1)
    return reference + timedelta(days=8 - dow)


def _parse_iso_week(value: str) -> tuple[int, int]:
    match = _ISO_WEEK_RE.match(value.strip())
    if match is None:
        raise InvalidSelector(f"Week '{value}' is not in YYYY-Www format.")
    year, week = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise InvalidSelector(f"Year {year} is out of range.")
    last_week = weeks_in_year(year)
    if not 1 <= week <= last_week:
        raise InvalidSelector(
            f"Week {week} is out of range for {year} (1..{last_week})."
        )
    return year, week


def resolve_window(selector: Selector) -> DateWindow:
    """Resolve *selector* to its inclusive date window.

    Raises:
        InvalidSelector: malformed week string, or week / month out of range.
    """
    if isinstance(selector, DaySelector):
        return DateWindow(selector.day, selector.day)

    if isinstance(selector, WeekSelector):
        year, week = _parse_iso_week(selector.iso_week)
        try:
            start = week_start(year, week)
            return DateWindow(start, start + timedelta(days=6))
        except OverflowError:
            raise InvalidSelector(f"Week {selector.iso_week} ends past the last supported date.")

    if isinstance(selector, MonthSelector):
        if not 1 <= selector.month <= 12:
            raise InvalidSelector(f"Month {selector.month} is out of range (1..12).")
        if not 1 <= selector.year <= 9999:
            raise InvalidSelector(f"Year {selector.year} is out of range.")
        last_day = calendar.monthrange(selector.year, selector.month)[1]
        return DateWindow(
            date(selector.year, selector.month, 1),
            date(selector.year, selector.month, last_day),
        )

    raise InvalidSelector(f"Unsupported selector: {selector!r}")


def parse_selector(
    *,
    day: Optional[date] = None,
    week: Optional[str] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Selector:
    """Build a selector from query parameters. Exactly one shape is allowed."""
    shapes = [
        day is not None,
        week is not None,
        year is not None or month is not None,
    ]
    if sum(shapes) != 1:
        raise InvalidSelector(
            "Provide exactly one of: day, week, or year + month."
        )
    if day is not None:
        return DaySelector(day)
    if week is not None:
        return WeekSelector(week)
    if year is None or month is None:
        raise InvalidSelector("Month selection needs both year and month.")
    return MonthSelector(year, month)
