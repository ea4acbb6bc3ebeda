"""Leaderboard rows as returned by the aggregate procedures, and the page response."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, computed_field

UNKNOWN_USER = "Unknown User"


def format_name(first_name: str | None, last_name: str | None, fallback: str = UNKNOWN_USER) -> str:
    if first_name and last_name:
        return f"{first_name} {last_name}".strip()
    return f"{first_name or ''} {last_name or ''}".strip() or fallback


def format_date(day: date | None) -> str:
    """``Feb 12, 2026``; empty for a missing date."""
    if day is None:
        return ""
    return f"{day.strftime('%b')} {day.day}, {day.year}"


class _Row(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    user_id: str
    first_name: str | None = None
    last_name: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_name(self) -> str:
        return format_name(self.first_name, self.last_name)


class RankingRow(_Row):
    dump_count: int = 0


class GhostWipeRecord(_Row):
    ghost_wipe_count: int = 0


class MessyDumpRecord(_Row):
    messy_dump_count: int = 0


class SingleDayRecord(_Row):
    dump_count: int = 0
    record_date: date | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def record_label(self) -> str:
        return format_date(self.record_date)


class SingleLocationRecord(_Row):
    dump_count: int = 0
    location_name: str | None = None


class AveragePerDayRecord(_Row):
    avg_dumps_per_day: float = 0.0


class WeekRange(BaseModel):
    start: date
    end: date
    label: str


class LeaderboardResponse(BaseModel):
    """``opted_in`` False is the access-restricted page: every list is empty."""

    opted_in: bool
    week: WeekRange
    daily: list[RankingRow] = []
    weekly: list[RankingRow] = []
    yearly: list[RankingRow] = []
    ghost_wipes: list[GhostWipeRecord] = []
    messy_dumps: list[MessyDumpRecord] = []
    single_day: list[SingleDayRecord] = []
    single_location: list[SingleLocationRecord] = []
    avg_per_day: list[AveragePerDayRecord] = []
