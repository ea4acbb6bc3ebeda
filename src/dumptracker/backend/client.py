"""Data API client for the managed backend.

Thin async wrapper around the backend's PostgREST-style REST endpoints:
table reads and writes with equality / case-insensitive filters and single
column ordering, plus stored procedure calls. Row-level security on the
backend scopes every query to the bearer token's user.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from dumptracker.backend.auth import AuthClient
from dumptracker.backend.errors import BackendError, NotFoundError

logger = structlog.get_logger()

_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
_NO_ROWS_CODE = "PGRST116"


def case_insensitive_equals(value: str) -> str:
    """Escape LIKE wildcards so an ``ilike`` filter is an exact case-insensitive match.

    The data API reads ``*`` as ``%`` in like patterns, so it is escaped too.
    """
    escaped = value.replace("\\", "\\\\")
    for wildcard in ("%", "_", "*"):
        escaped = escaped.replace(wildcard, "\\" + wildcard)
    return escaped


def _format_value(value: Any) -> str:  # noqa: ANN401
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Query:
    """Fluent builder for one table request. Terminal methods are coroutines."""

    def __init__(self, client: BackendClient, table: str) -> None:
        self._client = client
        self._table = table
        self._columns = "*"
        self._filters: list[tuple[str, str]] = []
        self._order: str | None = None
        self._limit: int | None = None

    def select(self, columns: str = "*") -> Query:
        self._columns = columns
        return self

    def eq(self, column: str, value: Any) -> Query:  # noqa: ANN401
        self._filters.append((column, f"eq.{_format_value(value)}"))
        return self

    def ilike(self, column: str, pattern: str) -> Query:
        self._filters.append((column, f"ilike.{pattern}"))
        return self

    def order(self, column: str, *, desc: bool = False) -> Query:
        self._order = f"{column}.{'desc' if desc else 'asc'}"
        return self

    def limit(self, count: int) -> Query:
        self._limit = count
        return self

    def _params(self, *, with_select: bool = True) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if with_select:
            params.append(("select", self._columns))
        params.extend(self._filters)
        if self._order:
            params.append(("order", self._order))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self._table}"

    async def execute(self) -> list[dict[str, Any]]:
        """Run the select and return all matching rows."""
        data = await self._client.request("GET", self._path, params=self._params())
        return list(data or [])

    async def single(self) -> dict[str, Any]:
        """Return exactly one row. Raises NotFoundError when none (or several) match."""
        try:
            data = await self._client.request(
                "GET",
                self._path,
                params=self._params(),
                headers={"Accept": _OBJECT_MEDIA_TYPE},
            )
        except BackendError as e:
            if e.code == _NO_ROWS_CODE:
                raise NotFoundError(e.message, status_code=e.status_code, code=e.code) from e
            raise
        return dict(data)

    async def maybe_single(self) -> dict[str, Any] | None:
        """Return the first matching row or None."""
        if self._limit is None:
            self._limit = 1
        rows = await self.execute()
        return rows[0] if rows else None

    async def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return its stored representation."""
        data = await self._client.request(
            "POST",
            self._path,
            params=[("select", self._columns)],
            json=row,
            headers={"Prefer": "return=representation"},
        )
        rows = list(data or [])
        if not rows:
            raise BackendError(f"Insert into {self._table} returned no row")
        return rows[0]

    async def update(self, values: dict[str, Any]) -> list[dict[str, Any]]:
        """Update every row matching the filters; returns the updated rows."""
        if not self._filters:
            raise ValueError("Refusing to update without a filter")
        data = await self._client.request(
            "PATCH",
            self._path,
            params=self._params(),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return list(data or [])

    async def delete(self) -> list[dict[str, Any]]:
        """Delete every row matching the filters; returns the deleted rows."""
        if not self._filters:
            raise ValueError("Refusing to delete without a filter")
        data = await self._client.request(
            "DELETE",
            self._path,
            params=self._params(),
            headers={"Prefer": "return=representation"},
        )
        return list(data or [])


class BackendClient:
    """Configured handle to the managed backend.

    One instance per credential: the anonymous client uses the public API key
    as its bearer token, ``with_token`` derives a client acting as a signed-in
    user. All instances share the same ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str,
        api_key: str,
        access_token: str | None = None,
    ) -> None:
        self.http = http
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token

    def with_token(self, access_token: str | None) -> BackendClient:
        """Return a client that authenticates as the given session token."""
        return BackendClient(self.http, self.url, self.api_key, access_token)

    @property
    def auth(self) -> AuthClient:
        return AuthClient(self.http, self.url, self.api_key)

    def headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def table(self, name: str) -> Query:
        return Query(self, name)

    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:  # noqa: ANN401
        """Call a stored procedure and return its decoded result."""
        return await self.request("POST", f"/rest/v1/rpc/{function}", json=params or {})

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,  # noqa: ANN401
        headers: dict[str, str] | None = None,
    ) -> Any:  # noqa: ANN401
        try:
            response = await self.http.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json,
                headers=self.headers(headers),
            )
        except httpx.HTTPError as e:
            logger.warning("backend_unreachable", method=method, path=path, error=str(e))
            raise BackendError(f"Could not reach the server: {e}") from e

        if response.is_error:
            error = BackendError.from_response(response)
            logger.info(
                "backend_request_failed",
                method=method,
                path=path,
                status=response.status_code,
                code=error.code,
            )
            raise error

        if response.status_code == 204 or not response.content:
            return None
        return response.json()
