"""Auth API client for the managed backend (GoTrue-style endpoints)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from dumptracker.backend.errors import AuthError

logger = structlog.get_logger()


class AuthUser(BaseModel):
    """Identity as reported by the auth service."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: datetime | None = None


class Session(BaseModel):
    """A signed-in session: short-lived access token plus refresh token."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    user: AuthUser


class SignUpResult(BaseModel):
    """Sign-up returns a session only when email confirmation is disabled."""

    user: AuthUser | None = None
    session: Session | None = None


class AuthClient:
    """Calls the auth service. Every method raises AuthError on failure."""

    def __init__(self, http: httpx.AsyncClient, url: str, api_key: str) -> None:
        self.http = http
        self.url = url.rstrip("/")
        self.api_key = api_key

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
        }

    async def _call(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:  # noqa: ANN401
        try:
            response = await self.http.request(
                method,
                f"{self.url}/auth/v1{path}",
                params=params,
                json=json,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            logger.warning("auth_unreachable", path=path, error=str(e))
            raise AuthError(f"Could not reach the server: {e}") from e

        if response.is_error:
            base = AuthError.from_response(response)
            raise AuthError(
                base.message,
                status_code=base.status_code,
                code=base.code,
                details=base.details,
                hint=base.hint,
            )
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        data: dict[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> SignUpResult:
        """Create an account; profile metadata is stored on the auth user."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        body = await self._call(
            "POST",
            "/signup",
            params=params,
            json={"email": email, "password": password, "data": data or {}},
        )
        if body and "access_token" in body:
            session = Session.model_validate(body)
            return SignUpResult(user=session.user, session=session)
        user_data = (body or {}).get("user", body)
        return SignUpResult(user=AuthUser.model_validate(user_data) if user_data else None)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        body = await self._call(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return Session.model_validate(body)

    async def refresh_session(self, refresh_token: str) -> Session:
        body = await self._call(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return Session.model_validate(body)

    async def sign_out(self, access_token: str) -> None:
        await self._call("POST", "/logout", access_token=access_token)

    async def get_user(self, access_token: str) -> AuthUser:
        body = await self._call("GET", "/user", access_token=access_token)
        return AuthUser.model_validate(body)

    async def reset_password_for_email(self, email: str, *, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._call("POST", "/recover", params=params, json={"email": email})

    async def update_user(self, access_token: str, *, password: str) -> AuthUser:
        body = await self._call("PUT", "/user", access_token=access_token, json={"password": password})
        return AuthUser.model_validate(body)
