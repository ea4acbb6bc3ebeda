"""Leaderboard aggregates: eight stored procedures fetched together."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import structlog

from dumptracker.backend.client import BackendClient
from dumptracker.leaderboard.schemas import (
    AveragePerDayRecord,
    GhostWipeRecord,
    MessyDumpRecord,
    RankingRow,
    SingleDayRecord,
    SingleLocationRecord,
    WeekRange,
    format_date,
)

logger = structlog.get_logger()

AGGREGATES = (
    "get_leaderboard_daily",
    "get_leaderboard_weekly",
    "get_leaderboard_2026",
    "get_leaderboard_ghost_wipes",
    "get_leaderboard_messy_dumps",
    "get_leaderboard_single_day_record",
    "get_leaderboard_single_location_record",
    "get_leaderboard_avg_per_day",
)


@dataclass
class LeaderboardData:
    daily: list[RankingRow] = field(default_factory=list)
    weekly: list[RankingRow] = field(default_factory=list)
    yearly: list[RankingRow] = field(default_factory=list)
    ghost_wipes: list[GhostWipeRecord] = field(default_factory=list)
    messy_dumps: list[MessyDumpRecord] = field(default_factory=list)
    single_day: list[SingleDayRecord] = field(default_factory=list)
    single_location: list[SingleLocationRecord] = field(default_factory=list)
    avg_per_day: list[AveragePerDayRecord] = field(default_factory=list)


async def fetch_leaderboard(client: BackendClient) -> LeaderboardData:
    """Run every aggregate concurrently. The first failure propagates and nothing is returned."""
    results = await asyncio.gather(*(client.rpc(name) for name in AGGREGATES))
    rows = [r or [] for r in results]
    daily, weekly, yearly, ghost, messy, single_day, single_location, avg = rows
    logger.debug("leaderboard_fetched", rows=sum(len(r) for r in rows))
    return LeaderboardData(
        daily=[RankingRow.model_validate(r) for r in daily],
        weekly=[RankingRow.model_validate(r) for r in weekly],
        yearly=[RankingRow.model_validate(r) for r in yearly],
        ghost_wipes=[GhostWipeRecord.model_validate(r) for r in ghost],
        messy_dumps=[MessyDumpRecord.model_validate(r) for r in messy],
        single_day=[SingleDayRecord.model_validate(r) for r in single_day],
        single_location=[SingleLocationRecord.model_validate(r) for r in single_location],
        avg_per_day=[AveragePerDayRecord.model_validate(r) for r in avg],
    )


def get_monday(d: date) -> date:
    return d - timedelta(days=d.weekday())


def current_week(tz: ZoneInfo, now: datetime | None = None) -> WeekRange:
    """Monday-to-Sunday week containing ``now`` as seen in ``tz``.

    The start date carries a year only when the week straddles New Year.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    monday = get_monday(now.astimezone(tz).date())
    sunday = monday + timedelta(days=6)
    start = f"{monday.strftime('%b')} {monday.day}"
    if monday.year != sunday.year:
        start = f"{start}, {monday.year}"
    return WeekRange(start=monday, end=sunday, label=f"{start} - {format_date(sunday)}")
