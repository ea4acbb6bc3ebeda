"""Shared FastAPI dependencies: backend handle and per-request session providers."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Response, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dumptracker.backend.client import BackendClient
from dumptracker.backend.connection import get_backend
from dumptracker.config import Settings, get_settings
from dumptracker.session.provider import AuthEvent, SessionProvider

_bearer = HTTPBearer(auto_error=False)


def get_backend_client() -> BackendClient:
    return get_backend()


def get_app_settings() -> Settings:
    return get_settings()


async def get_anonymous_provider(
    backend: BackendClient = Depends(get_backend_client),  # noqa: B008
) -> AsyncGenerator[SessionProvider, None]:
    """A provider with no session, for sign-in and sign-up requests."""
    provider = SessionProvider(backend)
    try:
        yield provider
    finally:
        provider.close()


async def get_session_provider(
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),  # noqa: B008
    refresh_token: str | None = Header(None, alias="X-Refresh-Token"),  # noqa: B008
    backend: BackendClient = Depends(get_backend_client),  # noqa: B008
) -> AsyncGenerator[SessionProvider, None]:
    """Restore the caller's session from its bearer token; 401 when it cannot be restored.

    A refreshed session's new tokens are returned in ``X-Access-Token`` and
    ``X-Refresh-Token`` response headers.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    provider = SessionProvider(backend)
    refreshed: list[bool] = []
    subscription = provider.subscribe(
        lambda event, _session: refreshed.append(True) if event is AuthEvent.TOKEN_REFRESHED else None
    )
    session = await provider.restore(credentials.credentials, refresh_token)
    subscription.unsubscribe()
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    if refreshed:
        response.headers["X-Access-Token"] = session.access_token
        if session.refresh_token:
            response.headers["X-Refresh-Token"] = session.refresh_token

    try:
        yield provider
    finally:
        provider.close()
