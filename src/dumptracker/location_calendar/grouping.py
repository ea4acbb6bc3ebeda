"""Civil-day bucketing and month grids for the location calendar.

Entries are bucketed by their calendar date in one fixed civil timezone
(US Eastern by default), whatever the viewer's own timezone is.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from dumptracker.dumps.schemas import DumpEntry

EASTERN = ZoneInfo("America/New_York")


@dataclass(frozen=True)
class CalendarDay:
    day: date
    count: int


def civil_date(ts: datetime, tz: ZoneInfo = EASTERN) -> date:
    """Calendar date of ``ts`` in ``tz``. Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz).date()


def group_by_date(entries: Iterable[DumpEntry], tz: ZoneInfo = EASTERN) -> dict[date, list[DumpEntry]]:
    """Bucket entries by civil date, keeping their incoming order inside each bucket."""
    grouped: dict[date, list[DumpEntry]] = {}
    for entry in entries:
        grouped.setdefault(civil_date(entry.created_at, tz), []).append(entry)
    return grouped


def oldest_first(entries: Iterable[DumpEntry]) -> list[DumpEntry]:
    return sorted(entries, key=lambda e: e.created_at)


def month_grid(year: int, month: int, counts: dict[date, int]) -> list[list[CalendarDay | None]]:
    """Sunday-first weeks for one month; padding cells outside the month are None."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    weeks: list[list[CalendarDay | None]] = []
    for week in cal.monthdatescalendar(year, month):
        weeks.append([CalendarDay(d, counts.get(d, 0)) if d.month == month else None for d in week])
    return weeks


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def compose_entry_timestamp(day: date, time_of_day: time | None, utc_offset_hours: int = -5) -> datetime:
    """Timestamp for a backdated entry: date + time + a fixed UTC offset.

    The offset does not follow daylight saving, so summer entries land one
    hour off their wall-clock time.
    """
    if time_of_day is None:
        msg = "A time of day is required"
        raise ValueError(msg)
    offset = timezone(timedelta(hours=utc_offset_hours))
    return datetime.combine(day, time_of_day.replace(tzinfo=None), tzinfo=offset)


def format_time(ts: datetime, tz: ZoneInfo = EASTERN) -> str:
    """``03:07 PM`` in the civil timezone."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz).strftime("%I:%M %p")


def format_long_date(day: date) -> str:
    """``Thursday, February 12, 2026``."""
    return f"{day.strftime('%A, %B')} {day.day}, {day.year}"
