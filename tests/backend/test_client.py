"""Data API client against the in-memory backend."""

from __future__ import annotations

import json

import httpx
import pytest

from dumptracker.backend.client import BackendClient, case_insensitive_equals
from dumptracker.backend.errors import AuthError, BackendError, NotFoundError
from fake_backend import ANON_KEY, SUPABASE_URL, FakeSupabase


@pytest.fixture
async def http(fake: FakeSupabase):
    async with httpx.AsyncClient(transport=fake.transport()) as client:
        yield client


@pytest.fixture
def as_user(fake: FakeSupabase, http: httpx.AsyncClient):
    account = fake.create_user()
    tokens = fake.issue_tokens(account["id"])
    return account, BackendClient(http, SUPABASE_URL, ANON_KEY, tokens["access_token"])


def test_case_insensitive_equals_escapes_wildcards() -> None:
    assert case_insensitive_equals("50%_off\\") == "50\\%\\_off\\\\"
    assert case_insensitive_equals("Starbucks") == "Starbucks"
    assert case_insensitive_equals("Home*") == "Home\\*"


class TestQuery:
    async def test_filters_order_and_limit_are_sent(self, fake: FakeSupabase, as_user) -> None:
        account, client = as_user
        await client.table("dumps").select("id").eq("user_id", account["id"]).order("count", desc=True).limit(3).execute()
        request = fake.calls("/rest/v1/dumps", "GET")[-1]
        assert request.url.params.get("select") == "id"
        assert request.url.params.get("user_id") == f"eq.{account['id']}"
        assert request.url.params.get("order") == "count.desc"
        assert request.url.params.get("limit") == "3"
        assert request.headers["apikey"] == ANON_KEY

    async def test_eq_formats_booleans_and_null(self, fake: FakeSupabase, as_user) -> None:
        _account, client = as_user
        await client.table("users").eq("leaderboard_opt_in", True).eq("first_name", None).execute()
        request = fake.calls("/rest/v1/users", "GET")[-1]
        assert request.url.params.get("leaderboard_opt_in") == "eq.true"
        assert request.url.params.get("first_name") == "eq.null"

    async def test_single_returns_one_row(self, as_user) -> None:
        account, client = as_user
        row = await client.table("users").select("id, first_name").eq("id", account["id"]).single()
        assert row == {"id": account["id"], "first_name": "Pat"}

    async def test_single_without_match_raises_not_found(self, as_user) -> None:
        _account, client = as_user
        with pytest.raises(NotFoundError) as exc_info:
            await client.table("dumps").eq("id", "missing").single()
        assert exc_info.value.code == "PGRST116"

    async def test_maybe_single_returns_none(self, as_user) -> None:
        _account, client = as_user
        assert await client.table("dumps").eq("id", "missing").maybe_single() is None

    async def test_insert_returns_representation(self, fake: FakeSupabase, as_user) -> None:
        account, client = as_user
        row = await client.table("dumps").insert({"user_id": account["id"], "location_name": "Home", "count": 0})
        assert row["location_name"] == "Home"
        assert fake.row("dumps", row["id"]) is not None
        request = fake.calls("/rest/v1/dumps", "POST")[-1]
        assert request.headers["Prefer"] == "return=representation"

    async def test_update_and_delete_need_a_filter(self, as_user) -> None:
        _account, client = as_user
        with pytest.raises(ValueError, match="without a filter"):
            await client.table("dumps").update({"count": 1})
        with pytest.raises(ValueError, match="without a filter"):
            await client.table("dumps").delete()

    async def test_row_security_hides_other_users(self, fake: FakeSupabase, as_user) -> None:
        _account, client = as_user
        other = fake.create_user(email="other@example.com")
        fake.add_dump(other["id"], "Theirs")
        assert await client.table("dumps").select("*").execute() == []


class TestErrors:
    async def test_backend_error_carries_code_and_message(self, fake: FakeSupabase, as_user) -> None:
        _account, client = as_user
        with pytest.raises(BackendError) as exc_info:
            await client.table("nonexistent").execute()
        assert exc_info.value.code == "42P01"
        assert "does not exist" in exc_info.value.message
        assert exc_info.value.status_code == 404

    async def test_unreachable_server(self, fake: FakeSupabase, as_user) -> None:
        _account, client = as_user
        fake.unreachable = True
        with pytest.raises(BackendError, match="Could not reach the server"):
            await client.rpc("ensure_user_exists")

    async def test_rpc_posts_params(self, fake: FakeSupabase, as_user) -> None:
        _account, client = as_user
        fake.rpc_results["get_notifications"] = [{"id": 1}]
        assert await client.rpc("get_notifications", {"p_limit": 5}) == [{"id": 1}]
        request = fake.calls("/rest/v1/rpc/get_notifications", "POST")[-1]
        assert json.loads(request.content) == {"p_limit": 5}

    async def test_auth_errors_use_auth_error_type(self, http: httpx.AsyncClient) -> None:
        client = BackendClient(http, SUPABASE_URL, ANON_KEY)
        with pytest.raises(AuthError, match="Invalid login credentials"):
            await client.auth.sign_in_with_password("nobody@example.com", "whatever")

    def test_from_response_plain_text(self) -> None:
        response = httpx.Response(503, text="upstream down")
        error = BackendError.from_response(response)
        assert error.message == "upstream down"
        assert error.status_code == 503
