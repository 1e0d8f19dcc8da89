"""Access to the hosted database through its PostgREST interface."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class StoreError(Exception):
    """Raised when the database rejects a request or cannot be reached."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class DataStore(Protocol):
    """Generic query/upsert/delete interface over named tables."""

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        ilike: Mapping[str, str] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Return the rows matching every filter."""
        ...

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        """Insert rows and return them as stored."""
        ...

    async def update(self, table: str, values: Row, *, eq: Mapping[str, Any]) -> list[Row]:
        """Update the matching rows and return them."""
        ...

    async def upsert(
        self,
        table: str,
        rows: Row | Sequence[Row],
        *,
        on_conflict: str | None = None,
    ) -> list[Row]:
        """Insert rows, merging into existing ones on conflict."""
        ...

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> list[Row]:
        """Delete the matching rows and return them."""
        ...


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _filter_params(
    *,
    eq: Mapping[str, Any] | None = None,
    ilike: Mapping[str, str] | None = None,
    in_: Mapping[str, Sequence[Any]] | None = None,
) -> list[tuple[str, str]]:
    params: list[tuple[str, str]] = []
    for column, value in (eq or {}).items():
        operator = "is" if value is None else "eq"
        params.append((column, f"{operator}.{_literal(value)}"))
    for column, pattern in (ilike or {}).items():
        params.append((column, f"ilike.{pattern}"))
    for column, values in (in_ or {}).items():
        joined = ",".join(f'"{_literal(v)}"' for v in values)
        params.append((column, f"in.({joined})"))
    return params


class SupabaseStore:
    """PostgREST client for a Supabase project.

    Args:
        base_url: Project URL, e.g. ``https://xyz.supabase.co``.
        api_key: Project API key, sent as ``apikey``.
        access_token: Bearer token; defaults to ``api_key``.
        client: Optional client to reuse.
        request_timeout: Timeout in seconds for each request.

    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
        request_timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Accept": "application/json",
        }
        self._client = client or httpx.AsyncClient(timeout=request_timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SupabaseStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]],
        json: Any = None,
        prefer: str | None = None,
    ) -> list[Row]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = await self._client.request(
                method,
                self._url(table),
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, table, exc)
            msg = f"Failed to fetch: {exc}"
            raise StoreError(msg) from exc

        if not response.is_success:
            try:
                detail = response.json()
            except ValueError:
                detail = {}
            if not isinstance(detail, dict):
                detail = {}
            message = detail.get("message") or response.text or f"HTTP {response.status_code}"
            logger.warning("%s %s returned %s: %s", method, table, response.status_code, message)
            raise StoreError(str(message), detail.get("code"))

        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return list(data)

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        ilike: Mapping[str, str] | None = None,
        in_: Mapping[str, Sequence[Any]] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Return the rows matching every filter."""
        params = [("select", columns), *_filter_params(eq=eq, ilike=ilike, in_=in_)]
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        """Insert rows and return them as stored."""
        return await self._request(
            "POST",
            table,
            params=[],
            json=rows,
            prefer="return=representation",
        )

    async def update(self, table: str, values: Row, *, eq: Mapping[str, Any]) -> list[Row]:
        """Update the matching rows and return them."""
        return await self._request(
            "PATCH",
            table,
            params=_filter_params(eq=eq),
            json=values,
            prefer="return=representation",
        )

    async def upsert(
        self,
        table: str,
        rows: Row | Sequence[Row],
        *,
        on_conflict: str | None = None,
    ) -> list[Row]:
        """Insert rows, merging into existing ones on conflict."""
        params = [("on_conflict", on_conflict)] if on_conflict else []
        return await self._request(
            "POST",
            table,
            params=params,
            json=rows,
            prefer="resolution=merge-duplicates,return=representation",
        )

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> list[Row]:
        """Delete the matching rows and return them."""
        return await self._request(
            "DELETE",
            table,
            params=_filter_params(eq=eq),
            prefer="return=representation",
        )


async def select_one(store: DataStore, table: str, **kwargs: Any) -> Row | None:
    """Return the first matching row, or ``None``."""
    rows = await store.select(table, limit=1, **kwargs)
    return rows[0] if rows else None
