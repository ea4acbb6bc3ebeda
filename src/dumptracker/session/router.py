"""Session bootstrap endpoint: which screen to show for a page load."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from dumptracker.auth.schemas import SessionResponse, UserResponse
from dumptracker.backend.client import BackendClient
from dumptracker.dependencies import get_backend_client
from dumptracker.session.bootstrap import AppShell
from dumptracker.session.provider import SessionProvider

router = APIRouter(prefix="/api/v1/session", tags=["Session"])

_bearer = HTTPBearer(auto_error=False)


class BootstrapRequest(BaseModel):
    """The page URL as loaded, fragment included, plus the view the user asked for."""

    url: str
    view: str | None = None


class BootstrapResponse(BaseModel):
    view: str
    reset_in_progress: bool
    reload_url: str | None = None
    callback_error: str | None = None
    user: UserResponse | None = None
    session: SessionResponse | None = None


@router.post("/bootstrap", response_model=BootstrapResponse)
async def bootstrap(
    body: BootstrapRequest,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),  # noqa: B008
    refresh_token: str | None = Header(None, alias="X-Refresh-Token"),  # noqa: B008
    backend: BackendClient = Depends(get_backend_client),  # noqa: B008
) -> BootstrapResponse:
    """Restore any session, consume an email callback, and pick the view.

    A missing or stale token is not an error here: the answer is simply the auth view.
    """
    provider = SessionProvider(backend)
    if credentials is not None:
        await provider.restore(credentials.credentials, refresh_token)

    shell = AppShell(provider, body.url)
    await shell.mount()
    try:
        if body.view and shell.current_view != "auth":
            try:
                shell.navigate(body.view)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
        session = provider.session
        return BootstrapResponse(
            view=shell.current_view,
            reset_in_progress=shell.reset_in_progress,
            reload_url=shell.reload_url,
            callback_error=shell.callback_error,
            user=UserResponse.from_user(shell.user) if shell.user else None,
            session=SessionResponse.from_session(session) if session else None,
        )
    finally:
        shell.unmount()
        provider.close()
