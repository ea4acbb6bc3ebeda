"""Authentication view: login, registration and the password-reset state machine."""

from __future__ import annotations

import structlog

from dumptracker.auth.validation import check_new_password, check_registration
from dumptracker.backend.errors import AuthError
from dumptracker.session.callback import has_reset_marker, parse_callback, without_reset_marker
from dumptracker.session.provider import SessionProvider
from dumptracker.views import AUTH, VALIDATION, BaseView

logger = structlog.get_logger()

LOGIN = "login"
REGISTER = "register"
FORGOT_PASSWORD_REQUEST = "forgot-password-request"
FORGOT_PASSWORD_SENT = "forgot-password-sent"
RESET_IN_PROGRESS = "reset-in-progress"
RESET_FORM = "reset-form"
RESET_BLOCKED = "reset-blocked"

VALID_TRANSITIONS: dict[str, list[str]] = {
    LOGIN: [REGISTER, FORGOT_PASSWORD_REQUEST, RESET_IN_PROGRESS],
    REGISTER: [LOGIN, RESET_IN_PROGRESS],
    FORGOT_PASSWORD_REQUEST: [LOGIN, FORGOT_PASSWORD_SENT],
    FORGOT_PASSWORD_SENT: [LOGIN, FORGOT_PASSWORD_REQUEST],
    RESET_IN_PROGRESS: [RESET_FORM, RESET_BLOCKED],
    RESET_FORM: [LOGIN],
    RESET_BLOCKED: [LOGIN, FORGOT_PASSWORD_REQUEST],
}

RESET_BLOCKED_MESSAGE = "This password reset link is invalid or has expired. Please request a new one."


def validate_transition(current_state: str, target_state: str) -> None:
    """Validate a state transition. Raises ValueError if invalid."""
    valid = VALID_TRANSITIONS.get(current_state, [])
    if target_state not in valid:
        raise ValueError(
            f"Invalid transition: {current_state} -> {target_state}. "
            f"Valid transitions: {valid}"
        )


class AuthFlow(BaseView):
    """State for the signed-out screen.

    ``state`` only moves along ``VALID_TRANSITIONS``. Validation failures are
    recorded before any network call; auth failures are recorded inline.
    """

    def __init__(self, provider: SessionProvider, app_base_url: str, url: str | None = None) -> None:
        super().__init__(provider)
        self.app_base_url = app_base_url.rstrip("/")
        self.url = url or f"{self.app_base_url}/"
        self.state = LOGIN
        self.email = ""
        self.first_name = ""
        self.last_name = ""
        self.verification_sent_to: str | None = None
        self.reset_email_sent_to: str | None = None
        self.reload_url: str | None = None

    def show(self, state: str) -> None:
        """Switch tabs or screens; clears any inline error."""
        if state == self.state:
            return
        validate_transition(self.state, state)
        self.state = state
        self.clear_error()

    def _advance(self, state: str) -> None:
        validate_transition(self.state, state)
        self.state = state

    def dismiss_verification(self) -> None:
        self.verification_sent_to = None

    # --- Login / register ---

    async def login(self, email: str, password: str) -> bool:
        self.clear_error()
        self.email = email
        try:
            await self.provider.sign_in_with_password(email, password)
        except AuthError as e:
            logger.info("login_failed", error=e.message)
            return self.fail(AUTH, e.message or "An error occurred")
        return True

    async def register(self, email: str, password: str, first_name: str, last_name: str) -> bool:
        """Create the account, then sign straight back out until the email is verified."""
        self.clear_error()
        self.email = email
        self.first_name = first_name
        self.last_name = last_name

        problem = check_registration(email, password, first_name, last_name)
        if problem:
            return self.fail(VALIDATION, problem)

        try:
            await self.provider.sign_up(
                email,
                password,
                data={"first_name": first_name.strip(), "last_name": last_name.strip()},
                redirect_to=self.app_base_url,
            )
            await self.provider.sign_out()
        except AuthError as e:
            logger.info("registration_failed", error=e.message)
            return self.fail(AUTH, e.message or "An error occurred")

        self.first_name = ""
        self.last_name = ""
        self.verification_sent_to = email
        self.state = LOGIN
        logger.info("registration_completed")
        return True

    # --- Forgot password ---

    async def request_password_reset(self, email: str) -> bool:
        self.clear_error()
        self.email = email
        if not email.strip():
            return self.fail(VALIDATION, "Email is required")
        try:
            await self.provider.reset_password_for_email(
                email.strip(),
                redirect_to=f"{self.app_base_url}/?reset=true",
            )
        except AuthError as e:
            logger.info("password_reset_request_failed", error=e.message)
            return self.fail(AUTH, e.message or "An error occurred")

        self.reset_email_sent_to = email.strip()
        self.state = FORGOT_PASSWORD_SENT
        return True

    # --- Recovery ---

    async def begin_recovery(self) -> bool:
        """Handle arrival with the reset marker: exchange any token, then confirm a session."""
        callback = parse_callback(self.url)
        if callback is not None and not callback.is_recovery:
            callback = None
        if not has_reset_marker(self.url) and callback is None:
            return False

        self.state = RESET_IN_PROGRESS
        self.clear_error()

        if callback is not None:
            try:
                await self.provider.exchange_tokens(
                    callback.access_token,
                    callback.refresh_token,
                    recovery=callback.is_recovery,
                )
            except AuthError as e:
                logger.info("recovery_exchange_failed", error=e.message)

        user = await self.provider.get_user()
        if user is None:
            self._advance(RESET_BLOCKED)
            self.fail(AUTH, RESET_BLOCKED_MESSAGE)
            return False

        self._advance(RESET_FORM)
        return True

    async def complete_reset(self, password: str, confirm_password: str) -> bool:
        self.clear_error()
        if self.state != RESET_FORM:
            return self.fail(AUTH, RESET_BLOCKED_MESSAGE)

        problem = check_new_password(password, confirm_password)
        if problem:
            return self.fail(VALIDATION, problem)

        try:
            await self.provider.update_password(password)
        except AuthError as e:
            logger.info("password_update_failed", error=e.message)
            return self.fail(AUTH, e.message or "An error occurred")

        self.url = without_reset_marker(self.url)
        self.reload_url = self.url
        self._advance(LOGIN)
        logger.info("password_reset_completed")
        return True
