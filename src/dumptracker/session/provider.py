"""Session provider: the one place that holds and changes the signed-in session.

Views never read tokens from globals; they receive a ``SessionProvider`` and
subscribe to its change events. Every mutation goes through the auth API and
then notifies subscribers synchronously, in subscription order.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

import structlog

from dumptracker.backend.auth import AuthUser, Session, SignUpResult
from dumptracker.backend.client import BackendClient
from dumptracker.backend.errors import AuthError

logger = structlog.get_logger()


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


Listener = Callable[[AuthEvent, Session | None], None]


class Subscription:
    """Handle returned by ``subscribe``; call ``unsubscribe`` on teardown."""

    def __init__(self, provider: SessionProvider, listener: Listener) -> None:
        self._provider = provider
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._provider._remove(self._listener)
            self.active = False


class SessionProvider:
    def __init__(self, backend: BackendClient, session: Session | None = None) -> None:
        self._backend = backend
        self._session = session
        self._listeners: list[Listener] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> AuthUser | None:
        return self._session.user if self._session else None

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def backend(self) -> BackendClient:
        """Data client acting as the current user (anonymous when signed out)."""
        return self._backend.with_token(self.access_token)

    # --- Subscription ---

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: AuthEvent) -> None:
        logger.debug("auth_event", auth_event=event.value, user_id=self.user.id if self.user else None)
        for listener in list(self._listeners):
            try:
                listener(event, self._session)
            except Exception:  # noqa: BLE001
                logger.exception("auth_listener_failed", auth_event=event.value)

    def close(self) -> None:
        """Drop every listener."""
        self._listeners.clear()

    # --- Session lifecycle ---

    async def get_session(self) -> Session | None:
        """Current session or None. Absence is not an error."""
        return self._session

    def set_session(self, session: Session | None, event: AuthEvent = AuthEvent.SIGNED_IN) -> None:
        self._session = session
        self._emit(event if session else AuthEvent.SIGNED_OUT)

    async def restore(self, access_token: str, refresh_token: str | None = None) -> Session | None:
        """Rebuild a session from tokens the caller already holds.

        The access token is validated against the auth API; an expired one is
        refreshed once with the refresh token. Returns None when neither works.
        """
        auth = self._backend.auth
        try:
            user = await auth.get_user(access_token)
        except AuthError as e:
            if not refresh_token:
                logger.info("session_restore_failed", error=e.message)
                return None
            try:
                refreshed = await auth.refresh_session(refresh_token)
            except AuthError as refresh_error:
                logger.info("session_refresh_failed", error=refresh_error.message)
                return None
            self._session = refreshed
            self._emit(AuthEvent.TOKEN_REFRESHED)
            return refreshed

        self._session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._emit(AuthEvent.INITIAL_SESSION)
        return self._session

    async def exchange_tokens(
        self,
        access_token: str,
        refresh_token: str | None,
        *,
        recovery: bool = False,
    ) -> Session:
        """Turn tokens from an email callback into a live session. Raises AuthError."""
        user = await self._backend.auth.get_user(access_token)
        self._session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._emit(AuthEvent.PASSWORD_RECOVERY if recovery else AuthEvent.SIGNED_IN)
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        session = await self._backend.auth.sign_in_with_password(email, password)
        self._session = session
        logger.info("signed_in", user_id=session.user.id)
        self._emit(AuthEvent.SIGNED_IN)
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        data: dict[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> SignUpResult:
        result = await self._backend.auth.sign_up(email, password, data=data, redirect_to=redirect_to)
        logger.info("signed_up", user_id=result.user.id if result.user else None)
        if result.session:
            self._session = result.session
            self._emit(AuthEvent.SIGNED_IN)
        return result

    async def sign_out(self) -> None:
        """Revoke the session remotely (best effort) and forget it locally."""
        if self._session:
            try:
                await self._backend.auth.sign_out(self._session.access_token)
            except AuthError as e:
                logger.warning("sign_out_failed", error=e.message)
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)

    async def get_user(self) -> AuthUser | None:
        """Fresh identity check against the auth API; None when there is no valid session."""
        if not self._session:
            return None
        try:
            return await self._backend.auth.get_user(self._session.access_token)
        except AuthError as e:
            logger.info("identity_check_failed", error=e.message)
            return None

    async def reset_password_for_email(self, email: str, *, redirect_to: str | None = None) -> None:
        await self._backend.auth.reset_password_for_email(email, redirect_to=redirect_to)

    async def update_password(self, password: str) -> AuthUser:
        if not self._session:
            raise AuthError("Auth session missing!", status_code=401)
        user = await self._backend.auth.update_user(self._session.access_token, password=password)
        self._session = self._session.model_copy(update={"user": user})
        self._emit(AuthEvent.USER_UPDATED)
        return user
