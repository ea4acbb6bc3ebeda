"""Notification feed: message text, relative times and the opt-in gate."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from httpx import AsyncClient

from dumptracker.notifications.messages import relative_time, render_message
from dumptracker.notifications.schemas import Notification
from dumptracker.notifications.view import NotificationsView
from dumptracker.session.provider import SessionProvider
from dumptracker.views import BACKEND
from fake_backend import FakeSupabase

NOW = datetime(2026, 2, 12, 18, 0, tzinfo=timezone.utc)


def _note(kind: str, payload: dict | None = None, first: str | None = "Gio", last: str | None = "C") -> Notification:
    return Notification.model_validate(
        {"id": 1, "type": kind, "payload": payload, "first_name": first, "last_name": last, "created_at": NOW}
    )


class TestMessages:
    @pytest.mark.parametrize(
        ("kind", "payload", "expected"),
        [
            (
                "first_dump_at_location",
                {"location_name": "Starbucks"},
                "Gio C just logged their first dump at Starbucks.",
            ),
            ("first_dump_at_location", None, "Gio C just logged their first dump at a new location."),
            ("milestone_ghost_wipe", {"milestone_number": 20}, "Gio C logged their 20th ghost wipe of the year."),
            ("milestone_messy_dump", {}, "Gio C logged their 10th messy dump of the year."),
            ("milestone_liquid_dump", {"milestone_number": 30}, "Gio C logged their 30th liquid dump of the year."),
            ("milestone_total", {}, "Gio C has logged their 100th dump of the year."),
            (
                "single_day_record_broken",
                {"dump_count": 8, "record_date": "Feb 12, 2026"},
                "Gio C broke the single-day record with 8 dumps on Feb 12, 2026.",
            ),
            ("single_day_record_broken", {}, "Gio C broke the single-day record with 0 dumps on today."),
            ("something_new", {}, "Gio C did something notable."),
        ],
    )
    def test_templates(self, kind: str, payload: dict | None, expected: str) -> None:
        assert render_message(_note(kind, payload)) == expected

    def test_nameless_actor(self) -> None:
        assert render_message(_note("milestone_total", first=None, last=None)).startswith("Someone has logged")

    def test_payload_null_becomes_empty(self) -> None:
        assert _note("milestone_total", None).payload == {}


class TestRelativeTime:
    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=5), "5m ago"),
            (timedelta(minutes=59, seconds=59), "59m ago"),
            (timedelta(hours=3), "3h ago"),
            (timedelta(days=2), "2d ago"),
            (timedelta(days=6, hours=23), "6d ago"),
        ],
    )
    def test_recent(self, delta: timedelta, expected: str) -> None:
        assert relative_time(NOW - delta, NOW) == expected

    def test_older_shows_date(self) -> None:
        assert relative_time(NOW - timedelta(days=8), NOW) == "Feb 4, 2026"

    def test_older_date_uses_given_timezone(self) -> None:
        ts = datetime(2026, 2, 1, 2, 0, tzinfo=timezone.utc)
        assert relative_time(ts, NOW, ZoneInfo("America/New_York")) == "Jan 31, 2026"

    def test_missing_timestamp(self) -> None:
        assert relative_time(None, NOW) == ""


class TestNotificationsView:
    async def test_restricted_does_not_fetch(self, fake: FakeSupabase, provider: SessionProvider) -> None:
        view = NotificationsView(provider, limit=50)
        assert await view.mount()
        assert view.snapshot(NOW).opted_in is False
        assert fake.calls("/rest/v1/rpc/get_notifications") == []

    async def test_opted_in_feed(self, fake: FakeSupabase, provider: SessionProvider, user: dict) -> None:
        fake.row("users", user["id"])["leaderboard_opt_in"] = True
        fake.rpc_results["get_notifications"] = [
            {
                "id": 7,
                "type": "first_dump_at_location",
                "payload": {"location_name": "Gym"},
                "first_name": "Ann",
                "last_name": "Lee",
                "created_at": (NOW - timedelta(minutes=3)).isoformat(),
            }
        ]
        view = NotificationsView(provider, limit=50)
        assert await view.mount()

        request = fake.calls("/rest/v1/rpc/get_notifications")[0]
        assert json.loads(request.content) == {"p_limit": 50}
        item = view.snapshot(NOW).notifications[0]
        assert item.id == "7"
        assert item.message == "Ann Lee just logged their first dump at Gym."
        assert item.time_label == "3m ago"

    async def test_feed_failure(self, fake: FakeSupabase, provider: SessionProvider, user: dict) -> None:
        fake.row("users", user["id"])["leaderboard_opt_in"] = True
        fake.failing_rpcs.add("get_notifications")
        view = NotificationsView(provider, limit=50)
        assert not await view.mount()
        assert view.error is not None
        assert view.error.kind == BACKEND


class TestNotificationsApi:
    async def test_restricted(self, authed_client: AsyncClient) -> None:
        response = await authed_client.get("/api/v1/notifications")
        assert response.status_code == 200
        assert response.json() == {"opted_in": False, "notifications": []}

    async def test_uses_configured_limit(self, authed_client: AsyncClient, fake: FakeSupabase, user: dict) -> None:
        fake.row("users", user["id"])["leaderboard_opt_in"] = True
        response = await authed_client.get("/api/v1/notifications")
        assert response.status_code == 200
        assert response.json()["opted_in"] is True
        request = fake.calls("/rest/v1/rpc/get_notifications")[0]
        assert json.loads(request.content) == {"p_limit": 50}

    async def test_requires_session(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/notifications")
        assert response.status_code == 401
