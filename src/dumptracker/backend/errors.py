"""Errors raised by the managed backend wrappers."""

from __future__ import annotations

from typing import Any

import httpx


class BackendError(Exception):
    """A data or RPC call against the managed backend failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_response(cls, response: httpx.Response) -> BackendError:
        """Build an error from a non-2xx response body.

        Data API errors carry ``message``/``code``/``details``/``hint``; auth API
        errors use ``msg``, ``error_description`` or ``error`` instead.
        """
        try:
            body: Any = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            text = response.text.strip()
            return cls(text or f"HTTP {response.status_code}", status_code=response.status_code)

        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
            or f"HTTP {response.status_code}"
        )
        code = body.get("code") or body.get("error_code")
        return cls(
            str(message),
            status_code=response.status_code,
            code=str(code) if code is not None else None,
            details=body.get("details"),
            hint=body.get("hint"),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code}, code={self.code!r})"


class AuthError(BackendError):
    """An auth API call failed (bad credentials, expired token, unverified email...)."""


class NotFoundError(BackendError):
    """A single-row query matched no rows."""
