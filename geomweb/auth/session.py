"""The signed-in user, persisted to a local JSON file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from geomweb.store import StoreError, select_one

if TYPE_CHECKING:
    from geomweb.store import DataStore

logger = logging.getLogger(__name__)

SESSION_PATH = Path.home() / ".config" / "geomweb" / "session.json"


class LocalAuthRecord(BaseModel):
    """Who is signed in, and the password stamp their session was opened with."""

    id: str
    email: str
    full_name: str
    avatar_url: str | None = None
    role: Literal["admin", "user"] = "user"
    password_updated_at: str | None = None
    password_fingerprint: str | None = None

    @property
    def is_admin(self) -> bool:
        """Whether this session has the admin role."""
        return self.role == "admin"


def record_from_dict(data: Any) -> LocalAuthRecord | None:
    """Build a record from loosely-typed data, or ``None`` if unusable."""
    if not isinstance(data, dict):
        return None
    record_id = data.get("id")
    email = data.get("email")
    if not record_id or not isinstance(email, str) or not email:
        return None

    def optional_str(key: str) -> str | None:
        value = data.get(key)
        return value if isinstance(value, str) else None

    return LocalAuthRecord(
        id=str(record_id),
        email=email,
        full_name=optional_str("full_name") or email.split("@")[0],
        avatar_url=optional_str("avatar_url"),
        role="admin" if data.get("role") == "admin" else "user",
        password_updated_at=optional_str("password_updated_at"),
        password_fingerprint=optional_str("password_fingerprint"),
    )


class SessionStore:
    """Reads and writes the current session record."""

    def __init__(self, path: Path = SESSION_PATH) -> None:
        self.path = path

    def load(self) -> LocalAuthRecord | None:
        """Return the current session, or ``None`` when signed out."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None
        return record_from_dict(data)

    def save(self, record: LocalAuthRecord) -> None:
        """Persist ``record`` as the current session."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=self.path.parent,
        ) as tmp:
            tmp.write(record.model_dump_json(indent=2))
            tmp_name = tmp.name
        os.replace(tmp_name, self.path)
        logger.debug("Saved %s session for %s", record.role, record.email)

    def clear(self) -> None:
        """Sign out."""
        self.path.unlink(missing_ok=True)


async def validate_password_stamp(sessions: SessionStore, store: DataStore) -> LocalAuthRecord | None:
    """Check the session against the database and return what remains of it.

    The session is cleared when its row is gone, when an admin was
    deactivated, or when the password changed since sign-in. A session without
    a stamp adopts the database one. Database errors leave it untouched.
    """
    record = sessions.load()
    if record is None:
        return None

    table = "admins" if record.is_admin else "users"
    columns = "id,active,password_updated_at" if record.is_admin else "id,password_updated_at"
    try:
        row = await select_one(store, table, columns=columns, eq={"id": record.id})
    except StoreError:
        logger.warning("Could not verify the session of %s", record.email, exc_info=True)
        return record

    if row is None or (record.is_admin and not row.get("active")):
        logger.info("Session of %s is no longer valid", record.email)
        sessions.clear()
        return None

    db_stamp = row.get("password_updated_at")
    if not record.password_updated_at and db_stamp:
        record = record.model_copy(update={"password_updated_at": db_stamp})
        sessions.save(record)
        return record
    if record.password_updated_at and db_stamp and record.password_updated_at != db_stamp:
        logger.info("Password of %s changed, signing out", record.email)
        sessions.clear()
        return None
    return record
