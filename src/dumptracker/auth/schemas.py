"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from dumptracker.backend.auth import AuthUser, Session


class RegisterRequest(BaseModel):
    """Email registration. Names are stored as auth metadata and copied to the profile."""

    email: EmailStr
    password: str = Field(..., max_length=128)
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class RecoveryRequest(BaseModel):
    """The full URL the recovery email link opened, fragment included."""

    url: str


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., max_length=128)
    url: str | None = None


class UserResponse(BaseModel):
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_user(cls, user: AuthUser) -> UserResponse:
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.user_metadata.get("first_name"),
            last_name=user.user_metadata.get("last_name"),
        )


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    user: UserResponse

    @classmethod
    def from_session(cls, session: Session) -> SessionResponse:
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            token_type=session.token_type,
            expires_in=session.expires_in,
            user=UserResponse.from_user(session.user),
        )


class AuthStateResponse(BaseModel):
    """Snapshot of the auth view after an action."""

    state: str
    verification_sent_to: str | None = None
    reset_email_sent_to: str | None = None
    reload_url: str | None = None
    error: str | None = None
    session: SessionResponse | None = None
