"""Application root: session bootstrap, callback consumption, top-level view choice."""

from __future__ import annotations

import structlog

from dumptracker.backend.auth import AuthUser, Session
from dumptracker.backend.errors import AuthError
from dumptracker.session.callback import has_reset_marker, parse_callback, strip_fragment, with_reset_marker
from dumptracker.session.provider import AuthEvent, SessionProvider, Subscription

logger = structlog.get_logger()

AUTH_VIEW = "auth"
DEFAULT_VIEW = "dashboard"
AUTHENTICATED_VIEWS = ("dashboard", "settings", "leaderboard", "notifications", "news")


class AppShell:
    """Owns the top-level branch between the auth view and the signed-in views."""

    def __init__(self, provider: SessionProvider, url: str) -> None:
        self.provider = provider
        self.url = url
        self.user: AuthUser | None = None
        self.loading = True
        self.selected_view = DEFAULT_VIEW
        self.reload_url: str | None = None
        self.callback_error: str | None = None
        self._subscription: Subscription | None = None

    async def mount(self) -> None:
        session = await self.provider.get_session()
        self.user = session.user if session else None
        self._subscription = self.provider.subscribe(self._on_auth_event)
        await self._consume_callback()
        self.loading = False

    def unmount(self) -> None:
        if self._subscription:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_event(self, event: AuthEvent, session: Session | None) -> None:
        self.user = session.user if session else None
        if event is AuthEvent.SIGNED_OUT:
            self.selected_view = DEFAULT_VIEW

    async def _consume_callback(self) -> None:
        """Exchange tokens from a signup/recovery link, once, and ask for a clean reload."""
        callback = parse_callback(self.url)
        if callback is None:
            return

        target = strip_fragment(self.url)
        if callback.is_recovery:
            target = with_reset_marker(target)

        try:
            await self.provider.exchange_tokens(
                callback.access_token,
                callback.refresh_token,
                recovery=callback.is_recovery,
            )
            logger.info("auth_callback_consumed", callback_type=callback.type)
        except AuthError as e:
            logger.warning("auth_callback_failed", callback_type=callback.type, error=e.message)
            self.callback_error = e.message

        self.url = target
        self.reload_url = target

    @property
    def reset_in_progress(self) -> bool:
        return has_reset_marker(self.url)

    def navigate(self, view: str) -> None:
        if view not in AUTHENTICATED_VIEWS:
            msg = f"Unknown view: {view}"
            raise ValueError(msg)
        self.selected_view = view

    @property
    def current_view(self) -> str:
        if self.reset_in_progress or self.user is None:
            return AUTH_VIEW
        return self.selected_view
