"""Contact-form notifications and the admin inbox built from them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

from geomweb import constants
from geomweb.notifications.message import (
    ContactSubmission,
    format_contact_message,
    parse_contact_message,
)
from geomweb.store import StoreError, select_one
from geomweb.timestamps import parse_database_timestamp

if TYPE_CHECKING:
    from geomweb.store import DataStore

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"
USERS_TABLE = "users"
_LABELLED_FORMAT = re.compile(r"(^|\n)\s*(nom|sujet)\s*:", re.IGNORECASE)
# Shown for rows whose created_at cannot be parsed.
UNKNOWN_DATE = datetime.fromtimestamp(0, tz=UTC)


class Notification(BaseModel):
    """A row of the ``notifications`` table."""

    id: str
    title: str = ""
    message: str = ""
    user_id: str | None = None
    subject: str | None = None
    read: bool = False
    created_at: str
    type: Literal["success", "info", "warning"] = "info"


class UserContact(BaseModel):
    """Contact details of the user linked to a notification."""

    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class InboxEntry:
    """A notification as shown to admins."""

    id: str
    title: str
    sender_name: str
    sender_email: str
    sender_phone: str
    subject: str
    body: str
    read: bool
    created_at: datetime
    is_contact_message: bool


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(*values: Any) -> str:
    for value in values:
        text = _text(value)
        if text:
            return text
    return ""


def build_inbox_entry(item: Notification, user: UserContact | None = None) -> InboxEntry:
    """Resolve sender and content of one notification.

    The linked user row wins over what the message itself says; contact
    messages in the labelled format are decoded.
    """
    is_contact = item.title == constants.CONTACT_NOTIFICATION_TITLE
    labelled = bool(_LABELLED_FORMAT.search(item.message))
    parsed = parse_contact_message(item.message) if is_contact else None
    user = user or UserContact(id="")

    if parsed is not None:
        sender_name = _first(user.name, parsed.sender_name, constants.DEFAULT_SENDER_NAME)
        sender_email = _first(user.email, parsed.sender_email)
        sender_phone = _first(user.phone, parsed.sender_phone)
        subject = _first(item.subject, parsed.subject if labelled else "")
        body = _first(parsed.body, item.message) if labelled else _text(item.message)
    else:
        sender_name = _first(user.name, constants.SYSTEM_SENDER_NAME)
        sender_email = _text(user.email)
        sender_phone = _text(user.phone)
        subject = _first(item.subject, item.title)
        body = _text(item.message)

    try:
        created_at = parse_database_timestamp(item.created_at)
    except ValueError:
        logger.warning("Notification %s has an invalid date: %r", item.id, item.created_at)
        created_at = UNKNOWN_DATE

    return InboxEntry(
        id=item.id,
        title=item.title,
        sender_name=sender_name,
        sender_email=sender_email,
        sender_phone=sender_phone,
        subject=subject,
        body=body,
        read=item.read,
        created_at=created_at,
        is_contact_message=is_contact,
    )


class ContactLinkError(Exception):
    """Raised when a contact message cannot be tied to a ``users`` row."""

    def __init__(self) -> None:
        super().__init__(
            "Impossible de lier le message a cet utilisateur. Reconnectez-vous puis reessayez.",
        )


async def link_contact_user(
    store: DataStore,
    submission: ContactSubmission,
    *,
    user_id: str | None = None,
    admin_id: str | None = None,
) -> str:
    """Find or create the ``users`` row of the sender and return its id.

    A signed-in user (``user_id``) gets the submitted contact details written
    to their row first; failing that write does not block the message. The
    row is then looked up by id, then by e-mail (case-insensitive), and
    finally inserted without a password.

    Raises:
        ContactLinkError: If no row could be found or created.

    """
    name = submission.name.strip()
    email = submission.email.strip()
    contact: dict[str, Any] = {"name": name, "email": email, "phone": submission.phone.strip()}
    if admin_id:
        contact["admin_id"] = admin_id

    if user_id:
        try:
            await store.update(USERS_TABLE, contact, eq={"id": user_id})
        except StoreError as exc:
            logger.warning("Could not update contact details of user %s: %s", user_id, exc.message)
        row = await select_one(store, USERS_TABLE, columns="id", eq={"id": user_id})
        if row:
            return str(row["id"])

    row = await select_one(store, USERS_TABLE, columns="id", ilike={"email": email})
    if row:
        return str(row["id"])

    new_user = {**contact, "name": name or email.split("@")[0], "password": ""}
    if user_id:
        new_user["id"] = user_id
    try:
        rows = await store.insert(USERS_TABLE, new_user)
    except StoreError as exc:
        logger.warning("Could not create a user for %s: %s", email, exc.message)
        raise ContactLinkError from exc
    if not rows or not rows[0].get("id"):
        raise ContactLinkError
    logger.info("Created user %s from the contact form", email)
    return str(rows[0]["id"])


async def submit_contact_message(
    store: DataStore,
    submission: ContactSubmission,
    *,
    user_id: str | None = None,
    admin_id: str | None = None,
) -> Notification:
    """Store a contact-form submission as an unread notification.

    The notification is linked to the sender's ``users`` row, created for
    visitors on the fly, so the inbox shows current contact details.
    """
    linked_id = await link_contact_user(store, submission, user_id=user_id, admin_id=admin_id)
    rows = await store.insert(
        NOTIFICATIONS_TABLE,
        {
            "user_id": linked_id,
            "title": constants.CONTACT_NOTIFICATION_TITLE,
            "subject": submission.subject.strip(),
            "message": format_contact_message(submission),
            "type": "info",
            "read": False,
        },
    )
    logger.info("Stored contact message from %s", submission.email.strip())
    return Notification.model_validate(rows[0])


async def load_inbox(store: DataStore) -> list[InboxEntry]:
    """Return every notification, newest first, with resolved senders."""
    rows = await store.select(
        NOTIFICATIONS_TABLE,
        columns="id,title,message,user_id,subject,read,created_at,type",
        order="created_at",
        descending=True,
    )
    items = [Notification.model_validate(row) for row in rows]

    user_ids = sorted({item.user_id for item in items if item.user_id})
    users: dict[str, UserContact] = {}
    if user_ids:
        user_rows = await store.select(
            USERS_TABLE,
            columns="id,name,email,phone",
            in_={"id": user_ids},
        )
        users = {row["id"]: UserContact.model_validate(row) for row in user_rows}

    return [build_inbox_entry(item, users.get(item.user_id or "")) for item in items]


async def mark_read(store: DataStore, notification_id: str) -> None:
    """Mark one notification as read."""
    await store.update(NOTIFICATIONS_TABLE, {"read": True}, eq={"id": notification_id})


async def mark_all_read(store: DataStore) -> int:
    """Mark every unread notification as read and return how many changed."""
    rows = await store.update(NOTIFICATIONS_TABLE, {"read": True}, eq={"read": False})
    return len(rows)
