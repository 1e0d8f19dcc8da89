"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
import io
import json
from typing import TYPE_CHECKING, Any

import pytest
from rich.console import Console

from geomweb.store import StoreError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


@pytest.fixture
def mock_console() -> Console:
    """Provide a console that writes to a StringIO for testing."""
    return Console(file=io.StringIO(), width=80, force_terminal=True)


class FakeStore:
    """In-memory stand-in for the hosted database.

    Supports the filters the package uses: ``eq`` (``None`` matches null),
    case-insensitive ``ilike`` without wildcards, ``in_``, ordering and limit.
    Every call is recorded in ``calls``.
    """

    def __init__(self, tables: Mapping[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.fail_with: StoreError | None = None
        self._next_id = 1000

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _matches(
        self,
        row: dict[str, Any],
        eq: Mapping[str, Any] | None,
        ilike: Mapping[str, str] | None,
        in_: Mapping[str, Sequence[Any]] | None,
    ) -> bool:
        for column, value in (eq or {}).items():
            if row.get(column) != value:
                return False
        for column, pattern in (ilike or {}).items():
            if str(row.get(column) or "").lower() != pattern.lower():
                return False
        return all(row.get(column) in values for column, values in (in_ or {}).items())

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
    ) -> list[dict[str, Any]]:
        self.calls.append(("select", table, {"eq": eq, "ilike": ilike, "in_": in_}))
        self._check()
        rows = [row for row in self.tables.get(table, []) if self._matches(row, eq, ilike, in_)]
        if order:
            rows.sort(key=lambda row: str(row.get(order) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns != "*":
            wanted = columns.split(",")
            rows = [{key: row.get(key) for key in wanted} for row in rows]
        return [dict(row) for row in rows]

    async def insert(self, table: str, rows: Any) -> list[dict[str, Any]]:
        self.calls.append(("insert", table, {"rows": rows}))
        self._check()
        new_rows = [rows] if isinstance(rows, dict) else list(rows)
        created = []
        for row in new_rows:
            stored = {"id": str(self._next_id), "created_at": "2024-05-01T10:00:00Z", **row}
            self._next_id += 1
            self.tables.setdefault(table, []).append(stored)
            created.append(dict(stored))
        return created

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        eq: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        self.calls.append(("update", table, {"values": values, "eq": eq}))
        self._check()
        changed = []
        for row in self.tables.get(table, []):
            if self._matches(row, eq, None, None):
                row.update(values)
                changed.append(dict(row))
        return changed

    async def upsert(
        self,
        table: str,
        rows: Any,
        *,
        on_conflict: str | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("upsert", table, {"rows": rows, "on_conflict": on_conflict}))
        self._check()
        key = on_conflict or "id"
        result = []
        for row in [rows] if isinstance(rows, dict) else list(rows):
            existing = next(
                (item for item in self.tables.get(table, []) if item.get(key) == row.get(key)),
                None,
            )
            if existing is not None:
                existing.update(row)
                result.append(dict(existing))
            else:
                result.extend(await self.insert(table, row))
        return result

    async def delete(self, table: str, *, eq: Mapping[str, Any]) -> list[dict[str, Any]]:
        self.calls.append(("delete", table, {"eq": eq}))
        self._check()
        kept, removed = [], []
        for row in self.tables.get(table, []):
            (removed if self._matches(row, eq, None, None) else kept).append(row)
        self.tables[table] = kept
        return removed

    def count(self, method: str, table: str | None = None) -> int:
        """Number of recorded calls of ``method`` (optionally on ``table``)."""
        return sum(
            1 for call, name, _ in self.calls if call == method and table in (None, name)
        )


@pytest.fixture
def fake_store() -> FakeStore:
    """An empty in-memory store."""
    return FakeStore()


def sse(*payloads: Any) -> bytes:
    """Encode payloads as ``data:`` lines; strings are sent verbatim."""
    lines = [
        f"data: {payload if isinstance(payload, str) else json.dumps(payload)}\n"
        for payload in payloads
    ]
    return "".join(lines).encode("utf-8")


def delta_chunk(text: str) -> dict[str, Any]:
    """An OpenAI-style streaming chunk carrying ``text``."""
    return {"choices": [{"delta": {"content": text}}]}
