"""View-model base: local state, a recorded error, and backend-failure capture.

Handlers on a view never raise past the view; a failure is recorded as a
``ViewError`` and the caller (an HTTP router or an embedding UI) decides how
to present it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog
from fastapi import HTTPException

from dumptracker.backend.errors import AuthError, BackendError
from dumptracker.session.provider import SessionProvider

logger = structlog.get_logger()

VALIDATION = "validation"
AUTH = "auth"
FORBIDDEN = "forbidden"
NOT_FOUND = "not_found"
BACKEND = "backend"
GEOLOCATION = "geolocation"

_STATUS_BY_KIND = {
    VALIDATION: 400,
    AUTH: 401,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    BACKEND: 502,
    GEOLOCATION: 422,
}


@dataclass(frozen=True)
class ViewError:
    kind: str
    message: str

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND.get(self.kind, 500)


class BaseView:
    """Shared state handling for every view model."""

    def __init__(self, provider: SessionProvider) -> None:
        self.provider = provider
        self.error: ViewError | None = None
        self.loading = False

    @property
    def user_id(self) -> str | None:
        user = self.provider.user
        return user.id if user else None

    def fail(self, kind: str, message: str) -> bool:
        """Record an error. Returns False so handlers can ``return self.fail(...)``."""
        self.error = ViewError(kind, message)
        return False

    def clear_error(self) -> None:
        self.error = None

    @asynccontextmanager
    async def guard(self, event: str) -> AsyncIterator[None]:
        """Record backend failures raised inside the block as view errors."""
        self.loading = True
        try:
            yield
        except AuthError as e:
            logger.info(event, error=e.message, status=e.status_code)
            self.fail(AUTH, e.message or "An error occurred")
        except BackendError as e:
            logger.warning(event, error=e.message, status=e.status_code, code=e.code)
            self.fail(BACKEND, e.message or "An error occurred")
        finally:
            self.loading = False


def raise_for_view_error(view: BaseView) -> None:
    """Translate a recorded view error into an HTTPException."""
    if view.error is not None:
        raise HTTPException(status_code=view.error.status_code, detail=view.error.message)
