"""Cached lookups of active admin profiles."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from geomweb import constants
from geomweb.auth.emails import is_admin_email
from geomweb.profiles.cache import ProfileCache
from geomweb.profiles.models import AdminProfile
from geomweb.timestamps import parse_database_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from geomweb.store import DataStore

logger = logging.getLogger(__name__)

ADMINS_TABLE = "admins"
ALL_ACTIVE = "__all_active__"
ADMIN_COLUMNS = "*"


def _non_empty(value: str | None) -> bool:
    return bool(value and value.strip())


def get_admin_cabinet_name(admin: AdminProfile | None) -> str:
    """Return the cabinet name, falling back to the tagline and legacy column."""
    if admin is None:
        return ""
    for value in (admin.cabinet_name, admin.tagline, admin.nom_cabinet):
        if _non_empty(value):
            return value.strip()  # type: ignore[union-attr]
    return ""


def profile_score(admin: AdminProfile) -> int:
    """Score how complete a profile is for public display."""
    return (
        (4 if get_admin_cabinet_name(admin) else 0)
        + (3 if _non_empty(admin.grade) else 0)
        + (2 if _non_empty(admin.name) else 0)
        + (1 if _non_empty(admin.phone) else 0)
        + (1 if _non_empty(admin.email) else 0)
    )


def _updated_at(admin: AdminProfile) -> float:
    if not admin.updated_at:
        return 0.0
    try:
        return parse_database_timestamp(admin.updated_at).timestamp()
    except ValueError:
        return 0.0


def pick_primary_admin(
    admins: Sequence[AdminProfile],
    admin_emails: Sequence[str] = (),
) -> AdminProfile | None:
    """Choose the admin whose profile represents the cabinet publicly.

    The most complete profile wins, newest first on ties. A configured admin
    e-mail takes precedence when its profile is at least as complete.
    """
    if not admins:
        return None
    best = sorted(admins, key=lambda a: (-profile_score(a), -_updated_at(a)))[0]
    if not admin_emails:
        return best
    matched = next(
        (a for a in admins if (a.email or "").strip().lower() in admin_emails),
        None,
    )
    if matched is not None and profile_score(matched) >= profile_score(best):
        return matched
    return best


class AdminDirectory:
    """Three cached partitions over the active rows of the ``admins`` table.

    Args:
        store: Database access.
        admin_emails: Normalized e-mails always treated as admins.
        ttl: Seconds a lookup result stays fresh.
        clock: Returns the current time in seconds.

    """

    def __init__(
        self,
        store: DataStore,
        *,
        admin_emails: Sequence[str] = (),
        ttl: float = constants.CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.admin_emails = list(admin_emails)
        self.by_email: ProfileCache[AdminProfile | None] = ProfileCache(
            self._load_by_email,
            default=lambda: None,
            ttl=ttl,
            clock=clock,
            name="admin_by_email",
        )
        self.by_slug: ProfileCache[AdminProfile | None] = ProfileCache(
            self._load_by_slug,
            default=lambda: None,
            ttl=ttl,
            clock=clock,
            name="admin_by_slug",
        )
        self.active: ProfileCache[list[AdminProfile]] = ProfileCache(
            self._load_active,
            default=list,
            ttl=ttl,
            clock=clock,
            name="active_admins",
        )

    async def _load_by_email(self, email: str) -> AdminProfile | None:
        rows = await self.store.select(
            ADMINS_TABLE,
            columns=ADMIN_COLUMNS,
            ilike={"email": email},
            eq={"active": True},
            order="updated_at",
            descending=True,
            limit=1,
        )
        return AdminProfile.model_validate(rows[0]) if rows else None

    async def _load_by_slug(self, slug: str) -> AdminProfile | None:
        rows = await self.store.select(
            ADMINS_TABLE,
            columns=ADMIN_COLUMNS,
            eq={"slug": slug, "active": True},
            limit=1,
        )
        return AdminProfile.model_validate(rows[0]) if rows else None

    async def _load_active(self, _key: str) -> list[AdminProfile]:
        rows = await self.store.select(
            ADMINS_TABLE,
            columns=ADMIN_COLUMNS,
            eq={"active": True},
            order="updated_at",
            descending=True,
        )
        return [AdminProfile.model_validate(row) for row in rows]

    async def fetch_admin_by_email(self, email: str | None) -> AdminProfile | None:
        """Return the active admin with this e-mail, if any."""
        return await self.by_email.get(email)

    async def fetch_admin_by_slug(self, slug: str | None) -> AdminProfile | None:
        """Return the active admin with this slug, if any."""
        return await self.by_slug.get(slug)

    async def list_active_admins(self) -> list[AdminProfile]:
        """Return every active admin, most recently updated first."""
        return await self.active.get(ALL_ACTIVE)

    async def primary_admin(self) -> AdminProfile | None:
        """Return the admin representing the cabinet."""
        return pick_primary_admin(await self.list_active_admins(), self.admin_emails)

    async def is_admin_user(self, email: str | None) -> bool:
        """Return whether ``email`` belongs to an admin."""
        if not email:
            return False
        if is_admin_email(email, self.admin_emails):
            return True
        return await self.fetch_admin_by_email(email) is not None

    def invalidate_all(self) -> None:
        """Drop every cached lookup in all three partitions."""
        logger.debug("Invalidating admin profile caches")
        self.by_email.invalidate_all()
        self.by_slug.invalidate_all()
        self.active.invalidate_all()
