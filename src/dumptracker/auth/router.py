"""Auth router: /api/v1/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from dumptracker.auth.flow import AuthFlow
from dumptracker.auth.schemas import (
    AuthStateResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RecoveryRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
)
from dumptracker.config import Settings
from dumptracker.dependencies import get_anonymous_provider, get_app_settings, get_session_provider
from dumptracker.session.provider import SessionProvider
from dumptracker.views import raise_for_view_error

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _state_response(flow: AuthFlow) -> AuthStateResponse:
    session = flow.provider.session
    return AuthStateResponse(
        state=flow.state,
        verification_sent_to=flow.verification_sent_to,
        reset_email_sent_to=flow.reset_email_sent_to,
        reload_url=flow.reload_url,
        error=flow.error.message if flow.error else None,
        session=SessionResponse.from_session(session) if session else None,
    )


@router.post("/register", response_model=AuthStateResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    provider: SessionProvider = Depends(get_anonymous_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> AuthStateResponse:
    """Create an account. The caller stays signed out until the email is verified."""
    flow = AuthFlow(provider, settings.app_base_url)
    flow.show("register")
    await flow.register(body.email, body.password, body.first_name, body.last_name)
    raise_for_view_error(flow)
    return _state_response(flow)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    provider: SessionProvider = Depends(get_anonymous_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> SessionResponse:
    flow = AuthFlow(provider, settings.app_base_url)
    await flow.login(body.email, body.password)
    raise_for_view_error(flow)
    if provider.session is None:
        raise HTTPException(status_code=401, detail="Sign-in did not return a session")
    return SessionResponse.from_session(provider.session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
) -> None:
    await provider.sign_out()


@router.post("/forgot-password", response_model=AuthStateResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    provider: SessionProvider = Depends(get_anonymous_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> AuthStateResponse:
    """Send a reset email whose link returns to the app with ``reset=true``."""
    flow = AuthFlow(provider, settings.app_base_url)
    flow.show("forgot-password-request")
    await flow.request_password_reset(body.email)
    raise_for_view_error(flow)
    return _state_response(flow)


@router.post("/recovery", response_model=AuthStateResponse)
async def recovery(
    body: RecoveryRequest,
    provider: SessionProvider = Depends(get_anonymous_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> AuthStateResponse:
    """Consume a recovery link. Ends in ``reset-form`` or ``reset-blocked``."""
    flow = AuthFlow(provider, settings.app_base_url, url=body.url)
    await flow.begin_recovery()
    return _state_response(flow)


@router.post("/reset-password", response_model=AuthStateResponse)
async def reset_password(
    body: ResetPasswordRequest,
    provider: SessionProvider = Depends(get_session_provider),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> AuthStateResponse:
    """Set a new password for the recovery session held in the bearer token."""
    flow = AuthFlow(provider, settings.app_base_url, url=body.url or f"{settings.app_base_url}/?reset=true")
    if await flow.begin_recovery():
        await flow.complete_reset(body.password, body.confirm_password)
    raise_for_view_error(flow)
    return _state_response(flow)
