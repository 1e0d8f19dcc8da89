"""Helpers shared by the commands that talk to the hosted database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from geomweb.auth.session import SessionStore, validate_password_stamp
from geomweb.config import AdminsConfig, SupabaseConfig
from geomweb.core.utils import print_error_message
from geomweb.errors import readable_error_message
from geomweb.profiles.directory import AdminDirectory
from geomweb.store import SupabaseStore

if TYPE_CHECKING:
    from geomweb.auth.session import LocalAuthRecord


def supabase_config(
    supabase_url: str | None,
    supabase_key: str | None,
    access_token: str | None = None,
) -> SupabaseConfig:
    """Validate the database options or exit with a hint."""
    if not supabase_url or not supabase_key:
        print_error_message(
            "Database connection is not configured.",
            "Set --supabase-url/--supabase-key or SUPABASE_URL/SUPABASE_PUBLISHABLE_KEY.",
        )
        raise typer.Exit(1)
    return SupabaseConfig(url=supabase_url, api_key=supabase_key, access_token=access_token)


def open_store(cfg: SupabaseConfig) -> SupabaseStore:
    """Create a store client for ``cfg``. Close it with ``aclose``."""
    return SupabaseStore(cfg.url, cfg.api_key, access_token=cfg.access_token)


def admin_directory(store: SupabaseStore, admin_emails: str) -> AdminDirectory:
    """Create the admin directory with the configured admin e-mails."""
    admins = AdminsConfig(emails=admin_emails)
    return AdminDirectory(store, admin_emails=admins.emails, ttl=admins.cache_ttl)


def fail(error: BaseException) -> typer.Exit:
    """Print ``error`` readably and return the exit to raise."""
    print_error_message(readable_error_message(error))
    return typer.Exit(1)


async def require_admin(store: SupabaseStore) -> LocalAuthRecord:
    """Return the validated admin session, or exit with a hint."""
    record = await validate_password_stamp(SessionStore(), store)
    if record is None or not record.is_admin:
        print_error_message(
            "Acces reserve aux administrateurs.",
            "Connectez-vous avec `geomweb login`.",
        )
        raise typer.Exit(1)
    return record


def parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Turn repeated ``--set key=value`` strings into a dict; later keys win."""
    values: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            msg = f"Expected key=value, got {assignment!r}."
            raise typer.BadParameter(msg, param_hint="--set")
        values[key.strip()] = value
    return values
