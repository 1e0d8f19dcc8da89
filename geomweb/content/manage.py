"""Listing and editing of content rows owned by an admin."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from geomweb.content.models import CONTENT_KINDS, ContentError, ContentKind
from geomweb.store import select_one

if TYPE_CHECKING:
    from geomweb.store import DataStore, Row

logger = logging.getLogger(__name__)


def content_kind(name: str) -> ContentKind:
    """Return the kind called ``name``.

    Raises:
        ContentError: If there is no such kind.

    """
    try:
        return CONTENT_KINDS[name.strip().lower()]
    except KeyError:
        msg = f"Type de contenu inconnu: {name}. Choix possibles: {', '.join(CONTENT_KINDS)}."
        raise ContentError(msg) from None


async def list_items(
    store: DataStore,
    kind: ContentKind,
    *,
    admin_id: str | None = None,
    active_only: bool = False,
) -> list[Row]:
    """Return the rows of ``kind`` in display order.

    ``admin_id`` restricts to one admin's rows; ``active_only`` hides
    deactivated rows for kinds that have the flag.
    """
    eq: dict[str, Any] = {}
    if admin_id is not None:
        eq["admin_id"] = admin_id
    if active_only and kind.has_active:
        eq["active"] = True
    return await store.select(kind.table, eq=eq, order=kind.order, descending=kind.descending)


async def create_item(
    store: DataStore,
    kind: ContentKind,
    admin_id: str,
    values: dict[str, Any],
) -> Row:
    """Validate ``values`` and insert them as a new row owned by ``admin_id``."""
    payload = kind.validate(values)
    rows = await store.insert(kind.table, {"admin_id": admin_id, **payload})
    if not rows:
        msg = "Creation impossible."
        raise ContentError(msg)
    logger.info("Created %s %s", kind.name, rows[0].get("id"))
    return rows[0]


async def update_item(
    store: DataStore,
    kind: ContentKind,
    admin_id: str,
    item_id: str,
    changes: dict[str, Any],
) -> Row:
    """Apply ``changes`` to one row of ``admin_id`` and return it as stored.

    The whole row is validated again, so a change cannot blank a required field.
    """
    owned = {"id": item_id, "admin_id": admin_id}
    current = await select_one(store, kind.table, eq=owned)
    if current is None:
        msg = f"{kind.label} {item_id} introuvable."
        raise ContentError(msg)
    payload = kind.validate({**current, **changes})
    rows = await store.update(kind.table, payload, eq=owned)
    if not rows:
        msg = "Mise a jour impossible."
        raise ContentError(msg)
    logger.info("Updated %s %s", kind.name, item_id)
    return rows[0]


async def delete_item(store: DataStore, kind: ContentKind, admin_id: str, item_id: str) -> None:
    """Delete one row of ``admin_id``."""
    rows = await store.delete(kind.table, eq={"id": item_id, "admin_id": admin_id})
    if not rows:
        msg = f"Suppression impossible: {kind.label.lower()} {item_id} introuvable."
        raise ContentError(msg)
    logger.info("Deleted %s %s", kind.name, item_id)
