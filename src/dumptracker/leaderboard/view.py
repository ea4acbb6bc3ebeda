"""Leaderboard view: opt-in gate, then one batched load."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import structlog

from dumptracker.backend.errors import BackendError
from dumptracker.leaderboard import service
from dumptracker.leaderboard.schemas import LeaderboardResponse
from dumptracker.session.provider import SessionProvider
from dumptracker.users.service import is_leaderboard_opted_in
from dumptracker.views import AUTH, BACKEND, BaseView

logger = structlog.get_logger()

ACCESS_CHECK_FAILED_MESSAGE = "Failed to check access"
LOAD_FAILED_MESSAGE = "Failed to load leaderboard"


class LeaderboardView(BaseView):
    def __init__(self, provider: SessionProvider, tz: ZoneInfo) -> None:
        super().__init__(provider)
        self.tz = tz
        self.opted_in: bool | None = None
        self.data = service.LeaderboardData()

    async def mount(self) -> bool:
        """Check opt-in; only an opted-in user triggers the aggregate fetch."""
        self.clear_error()
        user_id = self.user_id
        if not user_id:
            return self.fail(AUTH, "Not authenticated")
        try:
            self.opted_in = await is_leaderboard_opted_in(self.provider.backend(), user_id)
        except BackendError as e:
            logger.warning("leaderboard_access_check_failed", user_id=user_id, error=e.message)
            return self.fail(BACKEND, e.message or ACCESS_CHECK_FAILED_MESSAGE)
        if not self.opted_in:
            logger.info("leaderboard_restricted", user_id=user_id)
            return True
        return await self.refresh()

    async def refresh(self) -> bool:
        self.clear_error()
        self.loading = True
        try:
            self.data = await service.fetch_leaderboard(self.provider.backend())
        except BackendError as e:
            logger.warning("leaderboard_load_failed", error=e.message, code=e.code)
            return self.fail(BACKEND, e.message or LOAD_FAILED_MESSAGE)
        finally:
            self.loading = False
        return True

    def snapshot(self, now: datetime | None = None) -> LeaderboardResponse:
        return LeaderboardResponse(
            opted_in=self.opted_in is True,
            week=service.current_week(self.tz, now),
            daily=self.data.daily,
            weekly=self.data.weekly,
            yearly=self.data.yearly,
            ghost_wipes=self.data.ghost_wipes,
            messy_dumps=self.data.messy_dumps,
            single_day=self.data.single_day,
            single_location=self.data.single_location,
            avg_per_day=self.data.avg_per_day,
        )
