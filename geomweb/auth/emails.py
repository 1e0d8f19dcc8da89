"""E-mail addresses configured as admins."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an e-mail address."""
    return (email or "").strip().lower()


def parse_admin_emails(raw: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated list (or iterable) into normalized e-mails."""
    if not raw:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    return [email for email in (normalize_email(item) for item in items) if email]


def is_admin_email(email: str | None, admin_emails: Sequence[str]) -> bool:
    """Return whether ``email`` is one of the configured admin e-mails."""
    if not email:
        return False
    return normalize_email(email) in admin_emails
