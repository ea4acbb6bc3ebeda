"""Shared HTTP connection to the managed backend."""

from __future__ import annotations

import httpx

from dumptracker.backend.client import BackendClient
from dumptracker.config import Settings

_http: httpx.AsyncClient | None = None
_client: BackendClient | None = None


async def init_backend(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
    """Create the shared HTTP client and the anonymous backend handle."""
    global _http, _client  # noqa: PLW0603
    _http = httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=transport)
    _client = BackendClient(_http, settings.supabase_url, settings.supabase_anon_key)


async def close_backend() -> None:
    """Close the shared HTTP client."""
    global _http, _client  # noqa: PLW0603
    if _http:
        await _http.aclose()
        _http = None
    _client = None


def get_backend() -> BackendClient:
    """Get the anonymous backend client."""
    if _client is None:
        msg = "Backend not initialized. Call init_backend() first."
        raise RuntimeError(msg)
    return _client


def get_http() -> httpx.AsyncClient:
    """Get the shared HTTP client (also used for geocoding)."""
    if _http is None:
        msg = "Backend not initialized. Call init_backend() first."
        raise RuntimeError(msg)
    return _http
