"""Parsing of timestamps returned by the database."""

from __future__ import annotations

from datetime import UTC, datetime


def parse_database_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp, reading values without an offset as UTC.

    Raises:
        ValueError: If ``value`` is not an ISO 8601 timestamp.

    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
