"""Human-readable text for notification rows."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from dumptracker.leaderboard.schemas import format_date, format_name
from dumptracker.notifications.schemas import Notification

SOMEONE = "Someone"


def _milestone(name: str, payload: dict, what: str) -> str:
    return f"{name} logged their {payload.get('milestone_number') or 10}th {what} of the year."


def render_message(notification: Notification) -> str:
    name = format_name(notification.first_name, notification.last_name, fallback=SOMEONE)
    payload = notification.payload
    kind = notification.type

    if kind == "first_dump_at_location":
        return f"{name} just logged their first dump at {payload.get('location_name') or 'a new location'}."
    if kind == "milestone_ghost_wipe":
        return _milestone(name, payload, "ghost wipe")
    if kind == "milestone_messy_dump":
        return _milestone(name, payload, "messy dump")
    if kind == "milestone_liquid_dump":
        return _milestone(name, payload, "liquid dump")
    if kind == "milestone_total":
        return f"{name} has logged their {payload.get('milestone_number') or 100}th dump of the year."
    if kind == "single_day_record_broken":
        return (
            f"{name} broke the single-day record with {payload.get('dump_count') or 0} dumps "
            f"on {payload.get('record_date') or 'today'}."
        )
    return f"{name} did something notable."


def relative_time(ts: datetime | None, now: datetime | None = None, tz: ZoneInfo | None = None) -> str:
    """``Just now``, ``5m ago``, ``3h ago``, ``2d ago``; a week or older shows the date."""
    if ts is None:
        return ""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = (now - ts).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return format_date(ts.astimezone(tz).date() if tz else ts.date())
