"""Admin account settings: surveyor identity and public cabinet details."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from geomweb.auth.emails import normalize_email
from geomweb.profiles.directory import ADMINS_TABLE
from geomweb.profiles.models import AdminProfile
from geomweb.store import select_one

if TYPE_CHECKING:
    from pydantic import ValidationInfo

    from geomweb.auth.session import LocalAuthRecord
    from geomweb.profiles.directory import AdminDirectory
    from geomweb.store import DataStore

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_REQUIRED = ("name", "email")


class SettingsError(Exception):
    """Raised when settings cannot be saved; the message is user-facing."""


class AdminSettings(BaseModel):
    """Columns of the ``admins`` row an admin edits from their account."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    email: str = ""
    phone: str | None = None
    active: bool = True
    tagline: str | None = None
    bio: str | None = None
    address: str | None = None
    city: str | None = None
    opening_hours_weekdays: str | None = None
    opening_hours_saturday: str | None = None
    avatar_url: str | None = None
    hero_image_url: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any, info: ValidationInfo) -> Any:
        # Blank optional columns are stored as null.
        if info.field_name in _REQUIRED:
            return v.strip() if isinstance(v, str) else v or ""
        if isinstance(v, str):
            return v.strip() or None
        return v


async def _check_email_free(store: DataStore, email: str, admin_id: str) -> None:
    other_admin = await select_one(store, ADMINS_TABLE, columns="id", ilike={"email": email})
    if other_admin and str(other_admin["id"]) != admin_id:
        msg = "Un autre compte admin utilise deja cet email."
        raise SettingsError(msg)
    if await select_one(store, "users", columns="id", ilike={"email": email}):
        msg = "Cet email est deja utilise par un utilisateur."
        raise SettingsError(msg)


async def update_admin_settings(
    store: DataStore,
    record: LocalAuthRecord,
    changes: dict[str, Any],
    *,
    directory: AdminDirectory | None = None,
) -> tuple[AdminProfile, LocalAuthRecord]:
    """Apply ``changes`` to the signed-in admin's row.

    A new e-mail must not belong to another admin or to a user. The session
    record follows the new name, e-mail and avatar, and cached admin lookups
    are dropped.

    Returns:
        The stored profile and the session record to keep.

    Raises:
        SettingsError: On a non-admin session, a missing row, a missing name,
            an invalid or taken e-mail, or a refused update.

    """
    if not record.is_admin:
        msg = "Compte admin requis."
        raise SettingsError(msg)
    current = await select_one(store, ADMINS_TABLE, eq={"id": record.id})
    if current is None:
        msg = "Compte introuvable."
        raise SettingsError(msg)

    try:
        settings = AdminSettings.model_validate({**current, **changes})
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
        msg = f"Valeur invalide pour: {', '.join(fields)}."
        raise SettingsError(msg) from exc

    if not settings.name:
        msg = "Le nom du geometre est obligatoire."
        raise SettingsError(msg)
    email = normalize_email(settings.email)
    if not _EMAIL.match(email):
        msg = "Veuillez saisir un email valide."
        raise SettingsError(msg)
    if email != normalize_email(current.get("email")):
        await _check_email_free(store, email, record.id)

    payload = settings.model_dump()
    payload["email"] = email
    rows = await store.update(ADMINS_TABLE, payload, eq={"id": record.id})
    if not rows:
        msg = "Modification impossible."
        raise SettingsError(msg)
    logger.info("Updated settings of admin %s", email)
    if directory is not None:
        directory.invalidate_all()

    if normalize_email(record.email) == normalize_email(current.get("email")):
        record = record.model_copy(
            update={
                "email": email,
                "full_name": settings.name,
                "avatar_url": settings.avatar_url or record.avatar_url,
            },
        )
    return AdminProfile.model_validate(rows[0]), record
