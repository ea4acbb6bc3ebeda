"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("DUMP_SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("DUMP_SUPABASE_ANON_KEY", "test-anon-key")
os.environ["DUMP_REDIS_URL"] = ""
os.environ["DUMP_APP_BASE_URL"] = "http://localhost:5173"

from collections.abc import AsyncGenerator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from dumptracker.backend.client import BackendClient  # noqa: E402
from dumptracker.backend.connection import close_backend, get_backend, init_backend  # noqa: E402
from dumptracker.config import Settings, get_settings  # noqa: E402
from dumptracker.main import create_app  # noqa: E402
from dumptracker.session.provider import SessionProvider  # noqa: E402
from fake_backend import FakeSupabase  # noqa: E402


@pytest.fixture
def fake() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


@pytest_asyncio.fixture
async def backend(fake: FakeSupabase, settings: Settings) -> AsyncGenerator[BackendClient, None]:
    """Anonymous backend handle wired to the fake."""
    await init_backend(settings, transport=fake.transport())
    yield get_backend()
    await close_backend()


@pytest_asyncio.fixture
async def client(fake: FakeSupabase, settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client; the backend connection points at the fake."""
    app = create_app()
    await init_backend(settings, transport=fake.transport())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await close_backend()


@pytest.fixture
def user(fake: FakeSupabase) -> dict[str, Any]:
    """A confirmed account with both names set."""
    return fake.create_user()


@pytest.fixture
def tokens(fake: FakeSupabase, user: dict[str, Any]) -> dict[str, str]:
    return fake.issue_tokens(user["id"])


@pytest_asyncio.fixture
async def provider(backend: BackendClient, tokens: dict[str, str]) -> SessionProvider:
    """A provider holding a live session for ``user``."""
    p = SessionProvider(backend)
    session = await p.restore(tokens["access_token"], tokens["refresh_token"])
    assert session is not None
    return p


@pytest.fixture
def authed_client(client: AsyncClient, tokens: dict[str, str]) -> AsyncClient:
    client.headers["Authorization"] = f"Bearer {tokens['access_token']}"
    client.headers["X-Refresh-Token"] = tokens["refresh_token"]
    return client
