"""In-memory managed backend served through ``httpx.MockTransport``.

Covers the slice of the data API and auth API the app uses: table reads with
eq/ilike/order/limit, writes returning representations, row-level scoping by
bearer token, the entry count triggers, the profile-row trigger on sign-up,
stored procedures, and a reverse-geocoding host.
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

SUPABASE_URL = "https://test-project.supabase.co"
ANON_KEY = "test-anon-key"
GEOCODING_HOST = "nominatim.openstreetmap.org"

LEADERBOARD_RPCS = (
    "get_leaderboard_daily",
    "get_leaderboard_weekly",
    "get_leaderboard_2026",
    "get_leaderboard_ghost_wipes",
    "get_leaderboard_messy_dumps",
    "get_leaderboard_single_day_record",
    "get_leaderboard_single_location_record",
    "get_leaderboard_avg_per_day",
)

_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
_OWNER_COLUMN = {"users": "id", "dumps": "user_id", "dump_entries": "user_id"}


def _text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a LIKE pattern (``%``/``*`` and ``_``, backslash escapes) to a case-insensitive regex."""
    out: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char in "%*":
            out.append(".*")
        elif char == "_":
            out.append(".")
        else:
            out.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(out) + "$", re.IGNORECASE | re.DOTALL)


def _sort_key(value: Any) -> Any:
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return value
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


def _error(status: int, message: str, code: str | None = None, **extra: Any) -> httpx.Response:
    body: dict[str, Any] = {"message": message, "code": code, "details": None, "hint": None}
    body.update(extra)
    return httpx.Response(status, json=body)


def _auth_error(status: int, msg: str, error_code: str) -> httpx.Response:
    return httpx.Response(status, json={"code": status, "error_code": error_code, "msg": msg})


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"users": [], "dumps": [], "dump_entries": []}
        self.accounts: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.rpc_results: dict[str, Any] = {name: [] for name in LEADERBOARD_RPCS}
        self.rpc_results["get_notifications"] = []
        self.failing_rpcs: set[str] = set()
        self.failing_writes: set[tuple[str, str]] = set()
        self.recover_requests: list[dict[str, Any]] = []
        self.signup_redirects: list[str | None] = []
        self.unreachable = False
        self.geocode_status = 200
        self.geocode_body: Any = {"display_name": "1 Main St, Springfield"}
        self.requests: list[httpx.Request] = []
        self.clock = datetime.now(timezone.utc) - timedelta(hours=1)

    # --- wiring ---

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        if request.url.host == GEOCODING_HOST:
            return self._geocode(request)
        path = request.url.path
        if path.startswith("/auth/v1/"):
            return self._auth(request, path.removeprefix("/auth/v1"))
        if path.startswith("/rest/v1/rpc/"):
            return self._rpc(request, path.removeprefix("/rest/v1/rpc/"))
        if path.startswith("/rest/v1/"):
            return self._table(request, path.removeprefix("/rest/v1/"))
        return _error(404, f"No route for {path}")

    # --- helpers for tests ---

    def tick(self) -> str:
        self.clock += timedelta(seconds=1)
        return self.clock.isoformat()

    def create_user(
        self,
        email: str = "pat@example.com",
        password: str = "secret123",
        first_name: str | None = "Pat",
        last_name: str | None = "Doe",
        *,
        confirmed: bool = True,
        leaderboard_opt_in: bool = False,
        location_tracking_opt_in: bool = False,
    ) -> dict[str, Any]:
        account = self._new_account(email, password, {"first_name": first_name, "last_name": last_name})
        account["confirmed"] = confirmed
        row = self.row("users", account["id"])
        assert row is not None
        row["leaderboard_opt_in"] = leaderboard_opt_in
        row["location_tracking_opt_in"] = location_tracking_opt_in
        return account

    def confirm_email(self, email: str) -> None:
        self.accounts[email]["confirmed"] = True

    def issue_tokens(self, user_id: str) -> dict[str, str]:
        access = f"access-{uuid.uuid4().hex}"
        refresh = f"refresh-{uuid.uuid4().hex}"
        self.tokens[access] = user_id
        self.refresh_tokens[refresh] = user_id
        return {"access_token": access, "refresh_token": refresh}

    def expire(self, access_token: str) -> None:
        self.tokens.pop(access_token, None)

    def add_dump(self, user_id: str, location_name: str, count: int = 0, **fields: Any) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "location_name": location_name,
            "count": count,
            "address": None,
            "latitude": None,
            "longitude": None,
            "location_data_provided": None,
            "location_data_declined": None,
            "created_at": self.tick(),
            "updated_at": None,
        }
        row.update(fields)
        self.tables["dumps"].append(row)
        return row

    def add_entry(self, user_id: str, dump_id: str, created_at: str | None = None, **flags: bool) -> dict[str, Any]:
        """Insert an entry as the app would, count trigger included."""
        row = self._entry_row({"user_id": user_id, "dump_id": dump_id, "created_at": created_at, **flags})
        self.tables["dump_entries"].append(row)
        self._adjust_count(dump_id, 1)
        return row

    def row(self, table: str, row_id: str) -> dict[str, Any] | None:
        return next((r for r in self.tables[table] if r["id"] == row_id), None)

    def calls(self, path_prefix: str, method: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.path.startswith(path_prefix) and (method is None or r.method == method)
        ]

    # --- internals ---

    def _new_account(self, email: str, password: str, metadata: dict[str, Any]) -> dict[str, Any]:
        account = {
            "id": str(uuid.uuid4()),
            "email": email,
            "password": password,
            "metadata": metadata,
            "confirmed": False,
        }
        self.accounts[email] = account
        # on-signup trigger creates the profile row
        self.tables["users"].append(
            {
                "id": account["id"],
                "first_name": metadata.get("first_name"),
                "last_name": metadata.get("last_name"),
                "leaderboard_opt_in": False,
                "location_tracking_opt_in": False,
            }
        )
        return account

    def _account_by_id(self, user_id: str) -> dict[str, Any] | None:
        return next((a for a in self.accounts.values() if a["id"] == user_id), None)

    def _user_json(self, account: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": account["id"],
            "email": account["email"],
            "user_metadata": account["metadata"],
            "email_confirmed_at": self.clock.isoformat() if account["confirmed"] else None,
        }

    def _session_json(self, account: dict[str, Any]) -> dict[str, Any]:
        tokens = self.issue_tokens(account["id"])
        return {**tokens, "token_type": "bearer", "expires_in": 3600, "user": self._user_json(account)}

    def _bearer(self, request: httpx.Request) -> str | None:
        header = request.headers.get("Authorization", "")
        return header.removeprefix("Bearer ").strip() or None

    def _entry_row(self, values: dict[str, Any]) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "ghost_wipe": False,
            "messy_dump": False,
            "liquid_dump": False,
            "classic_dump": False,
        }
        row.update({k: v for k, v in values.items() if v is not None})
        row.setdefault("created_at", self.tick())
        return row

    def _adjust_count(self, dump_id: str, delta: int) -> None:
        dump = self.row("dumps", dump_id)
        if dump is not None:
            dump["count"] = max(0, dump["count"] + delta)

    # --- auth API ---

    def _auth(self, request: httpx.Request, path: str) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        params = request.url.params

        if path == "/health" and request.method == "GET":
            return httpx.Response(200, json={"name": "GoTrue", "version": "test"})

        if path == "/signup":
            email = body.get("email", "")
            if email in self.accounts:
                return _auth_error(422, "User already registered", "user_already_exists")
            if len(body.get("password", "")) < 6:
                return _auth_error(422, "Password should be at least 6 characters.", "weak_password")
            self.signup_redirects.append(params.get("redirect_to"))
            account = self._new_account(email, body["password"], dict(body.get("data") or {}))
            return httpx.Response(200, json=self._user_json(account))

        if path == "/token":
            grant = params.get("grant_type")
            if grant == "password":
                account = self.accounts.get(body.get("email", ""))
                if account is None or account["password"] != body.get("password"):
                    return _auth_error(400, "Invalid login credentials", "invalid_credentials")
                if not account["confirmed"]:
                    return _auth_error(400, "Email not confirmed", "email_not_confirmed")
                return httpx.Response(200, json=self._session_json(account))
            if grant == "refresh_token":
                user_id = self.refresh_tokens.pop(body.get("refresh_token", ""), None)
                account = self._account_by_id(user_id) if user_id else None
                if account is None:
                    return _auth_error(400, "Invalid Refresh Token: Refresh Token Not Found", "refresh_token_not_found")
                return httpx.Response(200, json=self._session_json(account))
            return _auth_error(400, "unsupported grant type", "validation_failed")

        if path == "/recover":
            self.recover_requests.append({"email": body.get("email"), "redirect_to": params.get("redirect_to")})
            return httpx.Response(200, json={})

        token = self._bearer(request)
        user_id = self.tokens.get(token or "")
        account = self._account_by_id(user_id) if user_id else None

        if path == "/logout":
            if token:
                self.tokens.pop(token, None)
            return httpx.Response(204)

        if path == "/user":
            if account is None:
                return _auth_error(401, "invalid JWT: unable to parse or verify signature", "bad_jwt")
            if request.method == "PUT":
                password = body.get("password", "")
                if len(password) < 6:
                    return _auth_error(422, "Password should be at least 6 characters.", "weak_password")
                account["password"] = password
            return httpx.Response(200, json=self._user_json(account))

        return _auth_error(404, f"No auth route for {path}", "not_found")

    # --- data API ---

    def _caller(self, request: httpx.Request) -> tuple[str | None, httpx.Response | None]:
        token = self._bearer(request)
        if token is None or token == ANON_KEY:
            return None, None
        user_id = self.tokens.get(token)
        if user_id is None:
            return None, _error(401, "JWT expired", "PGRST301")
        return user_id, None

    def _visible(self, table: str, user_id: str | None) -> list[dict[str, Any]]:
        owner = _OWNER_COLUMN[table]
        return [r for r in self.tables[table] if user_id is not None and r.get(owner) == user_id]

    def _filtered(self, table: str, user_id: str | None, params: httpx.QueryParams) -> list[dict[str, Any]]:
        rows = self._visible(table, user_id)
        for column, expr in params.multi_items():
            if column in ("select", "order", "limit"):
                continue
            op, _, value = expr.partition(".")
            if op == "eq":
                rows = [r for r in rows if _text(r.get(column)) == value]
            elif op == "ilike":
                pattern = like_to_regex(value)
                rows = [r for r in rows if pattern.match(_text(r.get(column)))]
        order = params.get("order")
        if order:
            column, _, direction = order.partition(".")
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            rows = sorted(present, key=lambda r: _sort_key(r[column]), reverse=direction == "desc") + missing
        limit = params.get("limit")
        if limit is not None:
            rows = rows[: int(limit)]
        return rows

    @staticmethod
    def _project(row: dict[str, Any], select: str | None) -> dict[str, Any]:
        if not select or select.strip() == "*":
            return dict(row)
        columns = [c.strip() for c in select.split(",")]
        return {c: row.get(c) for c in columns}

    def _table(self, request: httpx.Request, table: str) -> httpx.Response:
        if table not in self.tables:
            return _error(404, f'relation "public.{table}" does not exist', "42P01")
        if (request.method, table) in self.failing_writes:
            return _error(400, f"write to {table} rejected", "23514")
        user_id, denied = self._caller(request)
        if denied is not None:
            return denied
        params = request.url.params
        select = params.get("select")

        if request.method == "GET":
            rows = [self._project(r, select) for r in self._filtered(table, user_id, params)]
            if request.headers.get("Accept") == _OBJECT_MEDIA_TYPE:
                if len(rows) != 1:
                    return _error(
                        406,
                        "JSON object requested, multiple (or no) rows returned",
                        "PGRST116",
                        details=f"The result contains {len(rows)} rows",
                    )
                return httpx.Response(200, json=rows[0])
            return httpx.Response(200, json=rows)

        if request.method == "POST":
            values = json.loads(request.content)
            owner = _OWNER_COLUMN[table]
            if user_id is None or values.get(owner) != user_id:
                return _error(403, f'new row violates row-level security policy for table "{table}"', "42501")
            if table == "dump_entries":
                row = self._entry_row(values)
                self.tables[table].append(row)
                self._adjust_count(row["dump_id"], 1)
            elif table == "dumps":
                extra = {k: v for k, v in values.items() if k not in ("user_id", "location_name")}
                row = self.add_dump(user_id, values["location_name"], **extra)
            else:
                row = {"id": str(uuid.uuid4()), **values}
                self.tables[table].append(row)
            return httpx.Response(201, json=[self._project(row, select)])

        if request.method == "PATCH":
            values = json.loads(request.content)
            rows = self._filtered(table, user_id, params)
            for row in rows:
                row.update(values)
            return httpx.Response(200, json=[self._project(r, select) for r in rows])

        if request.method == "DELETE":
            rows = self._filtered(table, user_id, params)
            for row in rows:
                self.tables[table].remove(row)
                if table == "dump_entries":
                    self._adjust_count(row["dump_id"], -1)
            return httpx.Response(200, json=[dict(r) for r in rows])

        return _error(405, f"{request.method} not allowed")

    def _rpc(self, request: httpx.Request, function: str) -> httpx.Response:
        user_id, denied = self._caller(request)
        if denied is not None:
            return denied
        if function in self.failing_rpcs:
            return _error(400, f"function {function} failed", "P0001")

        if function == "ensure_user_exists":
            if user_id is None:
                return _error(401, "Not authenticated", "28000")
            if self.row("users", user_id) is None:
                account = self._account_by_id(user_id) or {"metadata": {}}
                self.tables["users"].append(
                    {
                        "id": user_id,
                        "first_name": account["metadata"].get("first_name"),
                        "last_name": account["metadata"].get("last_name"),
                        "leaderboard_opt_in": False,
                        "location_tracking_opt_in": False,
                    }
                )
            return httpx.Response(204)

        if function not in self.rpc_results:
            return _error(404, f"Could not find the function public.{function}", "PGRST202")
        return httpx.Response(200, json=self.rpc_results[function])

    # --- reverse geocoding ---

    def _geocode(self, request: httpx.Request) -> httpx.Response:
        if self.geocode_status >= 400:
            return httpx.Response(self.geocode_status, text="error")
        return httpx.Response(200, json=self.geocode_body)
