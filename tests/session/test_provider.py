"""Session provider: restore, refresh, events and sign-out."""

from __future__ import annotations

from typing import Any

import pytest

from dumptracker.backend.client import BackendClient
from dumptracker.backend.errors import AuthError
from dumptracker.session.provider import AuthEvent, SessionProvider
from fake_backend import FakeSupabase


class TestRestore:
    async def test_valid_token_restores_session(self, backend: BackendClient, user: dict, tokens: dict) -> None:
        provider = SessionProvider(backend)
        events: list[AuthEvent] = []
        provider.subscribe(lambda event, _s: events.append(event))

        session = await provider.restore(tokens["access_token"], tokens["refresh_token"])

        assert session is not None
        assert provider.user is not None
        assert provider.user.id == user["id"]
        assert events == [AuthEvent.INITIAL_SESSION]

    async def test_expired_token_refreshes_once(
        self, fake: FakeSupabase, backend: BackendClient, user: dict, tokens: dict
    ) -> None:
        fake.expire(tokens["access_token"])
        provider = SessionProvider(backend)
        events: list[AuthEvent] = []
        provider.subscribe(lambda event, _s: events.append(event))

        session = await provider.restore(tokens["access_token"], tokens["refresh_token"])

        assert session is not None
        assert session.access_token != tokens["access_token"]
        assert events == [AuthEvent.TOKEN_REFRESHED]

    async def test_no_valid_token_gives_none(self, fake: FakeSupabase, backend: BackendClient, tokens: dict) -> None:
        fake.expire(tokens["access_token"])
        provider = SessionProvider(backend)
        assert await provider.restore(tokens["access_token"], "bogus-refresh") is None
        assert provider.session is None
        assert await provider.restore(tokens["access_token"]) is None


class TestEvents:
    async def test_listener_failure_does_not_stop_delivery(self, provider: SessionProvider) -> None:
        seen: list[AuthEvent] = []

        def broken(_event: AuthEvent, _session: Any) -> None:
            raise RuntimeError("boom")

        provider.subscribe(broken)
        provider.subscribe(lambda event, _s: seen.append(event))
        await provider.sign_out()
        assert seen == [AuthEvent.SIGNED_OUT]

    async def test_unsubscribe_stops_events(self, provider: SessionProvider) -> None:
        seen: list[AuthEvent] = []
        subscription = provider.subscribe(lambda event, _s: seen.append(event))
        subscription.unsubscribe()
        subscription.unsubscribe()
        await provider.sign_out()
        assert seen == []

    async def test_get_session_absent_is_none(self, backend: BackendClient) -> None:
        assert await SessionProvider(backend).get_session() is None


class TestSignInOut:
    async def test_sign_in_emits_signed_in(self, backend: BackendClient, user: dict) -> None:
        provider = SessionProvider(backend)
        events: list[AuthEvent] = []
        provider.subscribe(lambda event, _s: events.append(event))
        session = await provider.sign_in_with_password(user["email"], user["password"])
        assert session.user.id == user["id"]
        assert events == [AuthEvent.SIGNED_IN]

    async def test_sign_in_wrong_password(self, backend: BackendClient, user: dict) -> None:
        provider = SessionProvider(backend)
        with pytest.raises(AuthError, match="Invalid login credentials"):
            await provider.sign_in_with_password(user["email"], "wrong-password")
        assert provider.session is None

    async def test_sign_out_revokes_token(self, fake: FakeSupabase, provider: SessionProvider) -> None:
        token = provider.access_token
        await provider.sign_out()
        assert provider.session is None
        assert token not in fake.tokens

    async def test_sign_out_is_best_effort(self, fake: FakeSupabase, provider: SessionProvider) -> None:
        fake.unreachable = True
        await provider.sign_out()
        assert provider.session is None

    async def test_get_user_is_a_fresh_check(self, fake: FakeSupabase, provider: SessionProvider) -> None:
        assert (await provider.get_user()) is not None
        fake.expire(provider.access_token)
        assert await provider.get_user() is None

    async def test_update_password(self, fake: FakeSupabase, provider: SessionProvider, user: dict) -> None:
        events: list[AuthEvent] = []
        provider.subscribe(lambda event, _s: events.append(event))
        await provider.update_password("new-secret")
        assert fake.accounts[user["email"]]["password"] == "new-secret"
        assert events == [AuthEvent.USER_UPDATED]

    async def test_update_password_without_session(self, backend: BackendClient) -> None:
        with pytest.raises(AuthError):
            await SessionProvider(backend).update_password("new-secret")
