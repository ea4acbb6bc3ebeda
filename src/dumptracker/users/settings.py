"""Settings view: profile names and the two opt-in flags."""

from __future__ import annotations

import structlog

from dumptracker.session.provider import SessionProvider
from dumptracker.users import service
from dumptracker.views import AUTH, BACKEND, FORBIDDEN, VALIDATION, BaseView

logger = structlog.get_logger()

SESSION_INVALID_MESSAGE = "User session invalid. Please log out and log back in."
MISMATCH_MESSAGE = "Authentication mismatch. Please log out and log back in."
NAMES_REQUIRED_MESSAGE = "Please set both first name and last name before opting in to the leaderboard."
VERIFY_LOAD_MESSAGE = "Failed to verify user data. Please try again."
VERIFY_SAVE_MESSAGE = "Update verification failed. Please try again."
SAVED_MESSAGE = "Settings saved successfully!"


class SettingsView(BaseView):
    """Every load and save first re-checks the held user against a fresh identity lookup."""

    def __init__(self, provider: SessionProvider) -> None:
        super().__init__(provider)
        self.first_name = ""
        self.last_name = ""
        self.leaderboard_opt_in = False
        self.location_tracking_opt_in = False
        self.success: str | None = None

    async def _verified_user_id(self) -> str | None:
        held = self.user_id
        if not held:
            self.fail(AUTH, SESSION_INVALID_MESSAGE)
            return None
        fresh = await self.provider.get_user()
        if fresh is None or fresh.id != held:
            logger.warning("identity_mismatch", held_user_id=held, fresh_user_id=fresh.id if fresh else None)
            self.fail(FORBIDDEN, MISMATCH_MESSAGE)
            return None
        return held

    def _fill(self, first_name: str | None, last_name: str | None, leaderboard: bool, tracking: bool) -> None:
        self.first_name = (first_name or "").strip()
        self.last_name = (last_name or "").strip()
        self.leaderboard_opt_in = leaderboard is True
        self.location_tracking_opt_in = tracking is True

    @property
    def names_complete(self) -> bool:
        return bool(self.first_name.strip()) and bool(self.last_name.strip())

    async def mount(self) -> bool:
        self.clear_error()
        user_id = await self._verified_user_id()
        if user_id is None:
            return False
        async with self.guard("settings_load_failed"):
            profile = await service.get_profile(self.provider.backend(), user_id)
            if profile.id != user_id:
                self.fail(BACKEND, VERIFY_LOAD_MESSAGE)
                return False
            self._fill(
                profile.first_name,
                profile.last_name,
                profile.leaderboard_opt_in,
                profile.location_tracking_opt_in,
            )
        return self.error is None

    def toggle_leaderboard(self, checked: bool) -> bool:
        """Switching on needs both names; otherwise the toggle stays off."""
        if checked and not self.names_complete:
            return self.fail(VALIDATION, NAMES_REQUIRED_MESSAGE)
        self.clear_error()
        self.leaderboard_opt_in = checked
        return True

    def toggle_location_tracking(self, checked: bool) -> None:
        self.location_tracking_opt_in = checked

    async def save(self) -> bool:
        self.clear_error()
        self.success = None
        user_id = await self._verified_user_id()
        if user_id is None:
            return False
        if self.leaderboard_opt_in and not self.names_complete:
            return self.fail(VALIDATION, NAMES_REQUIRED_MESSAGE)

        async with self.guard("settings_save_failed"):
            stored = await service.update_profile(
                self.provider.backend(),
                user_id,
                first_name=self.first_name.strip() or None,
                last_name=self.last_name.strip() or None,
                leaderboard_opt_in=self.leaderboard_opt_in,
                location_tracking_opt_in=self.location_tracking_opt_in,
            )
            if stored is None or stored.id != user_id:
                logger.error("settings_update_unverified", user_id=user_id, stored_id=stored.id if stored else None)
                self.fail(BACKEND, VERIFY_SAVE_MESSAGE)
                return False
            self._fill(stored.first_name, stored.last_name, stored.leaderboard_opt_in, stored.location_tracking_opt_in)
            self.success = SAVED_MESSAGE
        return self.error is None
