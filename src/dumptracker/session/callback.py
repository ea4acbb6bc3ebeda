"""Email callback URLs: token fragments and the password-reset marker."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

RESET_PARAM = "reset"
CALLBACK_TYPES = frozenset({"signup", "recovery"})


@dataclass(frozen=True)
class AuthCallback:
    """Tokens the auth service appends to a verification or recovery link."""

    access_token: str
    refresh_token: str | None
    type: str

    @property
    def is_recovery(self) -> bool:
        return self.type == "recovery"


def parse_callback(url: str) -> AuthCallback | None:
    """Return the callback in the URL fragment, or None if there is none to consume."""
    fragment = urlsplit(url).fragment
    if not fragment:
        return None
    params = parse_qs(fragment.lstrip("#"))
    access_token = params.get("access_token", [""])[0]
    callback_type = params.get("type", [""])[0]
    if not access_token or callback_type not in CALLBACK_TYPES:
        return None
    refresh_token = params.get("refresh_token", [None])[0]
    return AuthCallback(access_token=access_token, refresh_token=refresh_token, type=callback_type)


def strip_fragment(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def has_reset_marker(url: str) -> bool:
    query = dict(parse_qsl(urlsplit(url).query))
    return query.get(RESET_PARAM) == "true"


def with_reset_marker(url: str) -> str:
    """Add ``reset=true`` to the query string (and drop any fragment)."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != RESET_PARAM]
    query.append((RESET_PARAM, "true"))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))


def without_reset_marker(url: str) -> str:
    """Remove ``reset`` from the query string (and drop any fragment)."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != RESET_PARAM]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))
