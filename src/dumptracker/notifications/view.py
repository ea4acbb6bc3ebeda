"""Notifications view: opt-in gate, then the recent activity feed."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import structlog

from dumptracker.backend.errors import BackendError
from dumptracker.notifications.messages import relative_time, render_message
from dumptracker.notifications.schemas import Notification, NotificationItem, NotificationsResponse
from dumptracker.session.provider import SessionProvider
from dumptracker.users.service import is_leaderboard_opted_in
from dumptracker.views import AUTH, BACKEND, BaseView

logger = structlog.get_logger()

ACCESS_CHECK_FAILED_MESSAGE = "Failed to check access"
LOAD_FAILED_MESSAGE = "Failed to load notifications"


class NotificationsView(BaseView):
    def __init__(self, provider: SessionProvider, limit: int, tz: ZoneInfo | None = None) -> None:
        super().__init__(provider)
        self.limit = limit
        self.tz = tz
        self.opted_in: bool | None = None
        self.notifications: list[Notification] = []

    async def mount(self) -> bool:
        self.clear_error()
        user_id = self.user_id
        if not user_id:
            return self.fail(AUTH, "Not authenticated")
        try:
            self.opted_in = await is_leaderboard_opted_in(self.provider.backend(), user_id)
        except BackendError as e:
            logger.warning("notifications_access_check_failed", user_id=user_id, error=e.message)
            return self.fail(BACKEND, e.message or ACCESS_CHECK_FAILED_MESSAGE)
        if not self.opted_in:
            return True
        return await self.refresh()

    async def refresh(self) -> bool:
        self.clear_error()
        self.loading = True
        try:
            rows = await self.provider.backend().rpc("get_notifications", {"p_limit": self.limit})
        except BackendError as e:
            logger.warning("notifications_load_failed", error=e.message, code=e.code)
            return self.fail(BACKEND, e.message or LOAD_FAILED_MESSAGE)
        finally:
            self.loading = False
        self.notifications = [Notification.model_validate(r) for r in rows or []]
        return True

    def snapshot(self, now: datetime | None = None) -> NotificationsResponse:
        return NotificationsResponse(
            opted_in=self.opted_in is True,
            notifications=[
                NotificationItem(
                    id=n.id,
                    type=n.type,
                    message=render_message(n),
                    time_label=relative_time(n.created_at, now, self.tz),
                    created_at=n.created_at,
                )
                for n in self.notifications
            ],
        )
