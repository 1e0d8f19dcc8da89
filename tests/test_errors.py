"""Tests for readable error messages and timestamp parsing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from geomweb.errors import readable_error_message
from geomweb.store import StoreError
from geomweb.timestamps import parse_database_timestamp


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (StoreError("whatever", "23505"), "Cette valeur existe deja."),
        (StoreError("Key (email) already exists"), "Cette valeur existe deja."),
        (
            StoreError("new row violates row-level security policy for table users"),
            "Action refusee par la securite des donnees.",
        ),
        (StoreError("permission denied for table admins"), "Action refusee par la securite des donnees."),
        (StoreError("Failed to fetch: ConnectError"), "Connexion reseau impossible. Reessayez."),
        (StoreError("JWT expired"), "Session invalide. Reconnectez-vous puis reessayez."),
        (ValueError("Invalid login credentials"), "Identifiants invalides."),
        (
            StoreError("Could not find the 'phone' column of 'users' in the schema cache"),
            "Base de donnees non synchronisee. Appliquez les migrations SQL puis reessayez.",
        ),
        (StoreError("something odd happened"), "something odd happened"),
    ],
)
def test_readable_error_message(error: BaseException, expected: str) -> None:
    """Known failures are translated; others keep their own message."""
    assert readable_error_message(error) == expected


def test_readable_error_message_fallback() -> None:
    """Empty errors use the fallback."""
    assert readable_error_message(None) == "Une erreur est survenue."
    assert readable_error_message(StoreError(""), "Envoi impossible.") == "Envoi impossible."


def test_timestamp_without_offset_is_utc() -> None:
    """Database values without an offset are read as UTC."""
    assert parse_database_timestamp("2024-05-01T10:00:00") == datetime(2024, 5, 1, 10, tzinfo=UTC)
    assert parse_database_timestamp("2024-05-01 10:00:00.123456") == datetime(
        2024, 5, 1, 10, 0, 0, 123456, tzinfo=UTC,
    )


def test_timestamp_with_offset() -> None:
    """Explicit offsets and ``Z`` are kept."""
    assert parse_database_timestamp("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, tzinfo=UTC)
    parsed = parse_database_timestamp("2024-05-01T12:00:00+02:00")
    assert parsed.utcoffset() == timedelta(hours=2)
    assert parsed == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


def test_timestamp_invalid() -> None:
    """Garbage raises ``ValueError``."""
    with pytest.raises(ValueError, match="Invalid isoformat"):
        parse_database_timestamp("hier")
