"""Sign-in, sign-up and OAuth session bootstrap against the admins/users tables.

Credentials live in the ``password`` column of the ``admins`` and ``users``
tables; OAuth code exchange itself is done by the hosted auth provider and only
its outcome (an e-mail and profile metadata) reaches this module.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from geomweb import constants
from geomweb.auth.emails import normalize_email
from geomweb.auth.fingerprint import password_fingerprint
from geomweb.auth.session import LocalAuthRecord
from geomweb.store import StoreError, select_one

if TYPE_CHECKING:
    from geomweb.profiles.directory import AdminDirectory
    from geomweb.store import DataStore

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication failures; the message is user-facing."""


class InvalidCredentialsError(AuthError):
    """Raised when no account matches the e-mail and password."""

    def __init__(self) -> None:
        super().__init__("Email ou mot de passe incorrect.")


class SignUpError(AuthError):
    """Raised when an account cannot be created."""


@dataclass(frozen=True)
class OAuthUser:
    """The identity returned by the provider after code exchange."""

    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> str | None:
        """Display name supplied by the provider, if any."""
        value = self.user_metadata.get("full_name")
        return value if isinstance(value, str) and value.strip() else None

    @property
    def avatar_url(self) -> str | None:
        """Avatar supplied by the provider, if any."""
        value = self.user_metadata.get("avatar_url")
        return value if isinstance(value, str) and value else None


def _local_part(email: str) -> str:
    return email.split("@")[0]


def _password_matches(stored: Any, given: str) -> bool:
    if not isinstance(stored, str):
        return False
    return hmac.compare_digest(stored.encode("utf-8"), given.encode("utf-8"))


async def sign_in(store: DataStore, email: str, password: str) -> LocalAuthRecord:
    """Open a session for an active admin or a user with matching credentials.

    Raises:
        InvalidCredentialsError: If neither table has a matching account.

    """
    normalized = normalize_email(email)
    admin = await select_one(
        store,
        "admins",
        columns="id,name,email,password,active,avatar_url,password_updated_at",
        ilike={"email": normalized},
    )
    if admin and admin.get("active") and _password_matches(admin.get("password"), password):
        logger.info("Admin %s signed in", normalized)
        return LocalAuthRecord(
            id=str(admin["id"]),
            email=admin.get("email") or normalized,
            full_name=admin.get("name") or _local_part(normalized),
            avatar_url=admin.get("avatar_url"),
            role="admin",
            password_updated_at=admin.get("password_updated_at"),
            password_fingerprint=password_fingerprint(password),
        )

    user = await select_one(
        store,
        "users",
        columns="id,name,email,password,password_updated_at",
        ilike={"email": normalized},
    )
    if user and _password_matches(user.get("password"), password):
        logger.info("User %s signed in", normalized)
        return LocalAuthRecord(
            id=str(user["id"]),
            email=user.get("email") or normalized,
            full_name=user.get("name") or _local_part(normalized),
            role="user",
            password_updated_at=user.get("password_updated_at"),
            password_fingerprint=password_fingerprint(password),
        )

    raise InvalidCredentialsError


async def sign_up(
    store: DataStore,
    directory: AdminDirectory,
    *,
    name: str,
    email: str,
    password: str,
) -> LocalAuthRecord:
    """Create a user account linked to the cabinet's primary admin.

    Raises:
        SignUpError: On a missing name, a short password, no active admin, or
            an e-mail already used by an admin or a user.

    """
    if not name.strip():
        msg = "Veuillez renseigner votre nom complet."
        raise SignUpError(msg)
    if len(password) < constants.MIN_PASSWORD_LENGTH:
        msg = f"Minimum {constants.MIN_PASSWORD_LENGTH} caracteres."
        raise SignUpError(msg)

    primary = await directory.primary_admin()
    if primary is None:
        msg = "Aucun admin actif disponible pour lier ce compte."
        raise SignUpError(msg)

    normalized = normalize_email(email)
    existing_admin = await select_one(store, "admins", columns="id", ilike={"email": normalized})
    existing_user = await select_one(store, "users", columns="id", ilike={"email": normalized})
    if existing_admin or existing_user:
        msg = "Un compte avec cet email existe deja."
        raise SignUpError(msg)

    try:
        rows = await store.insert(
            "users",
            {
                "name": name.strip(),
                "email": normalized,
                "password": password,
                "admin_id": primary.id,
            },
        )
    except StoreError as exc:
        if exc.code == "23505":
            msg = "Un compte avec cet email existe deja."
            raise SignUpError(msg) from exc
        raise
    if not rows:
        msg = "Creation du compte impossible."
        raise SignUpError(msg)

    created = rows[0]
    logger.info("Created user account %s", normalized)
    return LocalAuthRecord(
        id=str(created["id"]),
        email=created.get("email") or normalized,
        full_name=created.get("name") or _local_part(normalized),
        role="user",
        password_updated_at=created.get("password_updated_at"),
        password_fingerprint=password_fingerprint(password),
    )


async def bootstrap_oauth_session(
    store: DataStore,
    directory: AdminDirectory,
    user: OAuthUser,
) -> LocalAuthRecord:
    """Turn a provider identity into a local session.

    Admins get an admin session built from their ``admins`` row. Everyone
    else is upserted into ``users`` (keyed by e-mail) and linked to the
    primary admin; a failed upsert still yields a session from the provider
    identity.
    """
    normalized = normalize_email(user.email)

    if await directory.is_admin_user(normalized):
        admin_row = await select_one(
            store,
            "admins",
            columns="id,name,email,avatar_url,password,password_updated_at",
            ilike={"email": normalized},
            eq={"active": True},
        ) or {}
        return LocalAuthRecord(
            id=str(admin_row.get("id") or user.id),
            email=admin_row.get("email") or user.email,
            full_name=admin_row.get("name") or user.full_name or _local_part(user.email),
            avatar_url=admin_row.get("avatar_url") or user.avatar_url,
            role="admin",
            password_updated_at=admin_row.get("password_updated_at"),
            password_fingerprint=password_fingerprint(admin_row.get("password") or ""),
        )

    primary = await directory.primary_admin()
    user_name = user.full_name or _local_part(normalized)
    row: dict[str, Any] = {}
    try:
        rows = await store.upsert(
            "users",
            {
                "name": user_name,
                "email": normalized,
                "password": "",
                "admin_id": primary.id if primary else None,
            },
            on_conflict="email",
        )
        row = rows[0] if rows else {}
    except StoreError as exc:
        logger.warning("OAuth users upsert failed: %s", exc.message)

    return LocalAuthRecord(
        id=str(row.get("id") or user.id),
        email=row.get("email") or normalized,
        full_name=row.get("name") or user_name,
        avatar_url=user.avatar_url,
        role="user",
        password_updated_at=row.get("password_updated_at"),
        password_fingerprint=password_fingerprint(row.get("password") or ""),
    )


class PasswordChangeError(AuthError):
    """Raised when a new password is refused."""


async def change_password(
    store: DataStore,
    record: LocalAuthRecord,
    password: str,
    confirm: str,
) -> LocalAuthRecord:
    """Set a new password for the signed-in account.

    Returns:
        The session record carrying the stored password stamp, so the session
        that made the change stays valid.

    Raises:
        PasswordChangeError: On a short password, a confirmation mismatch, or
            when the account row is gone.

    """
    if len(password) < constants.MIN_PASSWORD_LENGTH:
        msg = f"Minimum {constants.MIN_PASSWORD_LENGTH} caracteres."
        raise PasswordChangeError(msg)
    if password != confirm:
        msg = "Les mots de passe ne correspondent pas."
        raise PasswordChangeError(msg)

    table = "admins" if record.is_admin else "users"
    rows = await store.update(table, {"password": password}, eq={"id": record.id})
    if not rows:
        msg = "Compte introuvable."
        raise PasswordChangeError(msg)
    logger.info("Password changed for %s", record.email)
    return record.model_copy(
        update={
            "password_updated_at": rows[0].get("password_updated_at"),
            "password_fingerprint": password_fingerprint(password),
        },
    )
