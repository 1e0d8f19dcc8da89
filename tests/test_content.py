"""Tests for admin-edited site content."""

from __future__ import annotations

import pytest
from conftest import FakeStore

from geomweb.content.manage import (
    content_kind,
    create_item,
    delete_item,
    list_items,
    update_item,
)
from geomweb.content.models import CONTENT_KINDS, ContentError, ContentKind, make_slug

EQUIPE = CONTENT_KINDS["equipe"]
SERVICES = CONTENT_KINDS["services"]
REALISATIONS = CONTENT_KINDS["realisations"]


@pytest.mark.parametrize(
    ("title", "slug"),
    [
        ("Etablissement de document d'arpentage", "etablissement-de-document-d-arpentage"),
        ("  Géomètre à Alger ", "geometre-a-alger"),
        ("Copropriété (division)", "copropriete-division"),
        ("!!!", ""),
    ],
)
def test_make_slug(title: str, slug: str) -> None:
    """Accents are dropped and other characters collapse to dashes."""
    assert make_slug(title) == slug


def test_team_member_payload() -> None:
    """Blank optional fields become null and strings are trimmed."""
    payload = EQUIPE.validate(
        {"prenom": " Amel ", "name": "Haddad", "role": " ", "email": "a@x.dz", "sort_order": "3"},
    )
    assert payload == {
        "active": True,
        "sort_order": 3,
        "prenom": "Amel",
        "name": "Haddad",
        "role": None,
        "date_of_birth": None,
        "email": "a@x.dz",
        "phone": None,
        "bio": None,
        "image_url": None,
    }


def test_sort_order_that_is_not_a_number() -> None:
    """A non-numeric position sorts first."""
    assert EQUIPE.validate({"prenom": "A", "name": "B", "sort_order": "premier"})["sort_order"] == 0


@pytest.mark.parametrize(
    ("kind", "values", "message"),
    [
        (EQUIPE, {"prenom": "Amel", "name": "  "}, "prenom et le nom"),
        (SERVICES, {"title": "Bornage"}, "Titre et description"),
        (SERVICES, {"title": "%%", "description": "d"}, "slug genere est vide"),
        (REALISATIONS, {"title": "Lotissement"}, "Titre et image"),
        (REALISATIONS, {"title": "L", "image_url": "u", "category": "piscine"}, "Categorie inconnue"),
        (EQUIPE, {"prenom": "A", "name": "B", "active": "peut-etre"}, "Valeur invalide pour: active"),
    ],
)
def test_invalid_content(kind: ContentKind, values: dict, message: str) -> None:
    """Missing or malformed fields are refused with a readable message."""
    with pytest.raises(ContentError, match=message):
        kind.validate(values)


def test_service_slug() -> None:
    """The slug is generated from the title unless one is given."""
    generated = SERVICES.validate({"title": "Levé topographique", "description": "d"})
    assert generated["slug"] == "leve-topographique"
    assert generated["category"] is None
    given = SERVICES.validate({"title": "Levé", "slug": " leve-3d ", "description": "d"})
    assert given["slug"] == "leve-3d"


def test_content_kind_lookup() -> None:
    """Kinds are looked up by name, ignoring case."""
    assert content_kind(" Services ") is SERVICES
    with pytest.raises(ContentError, match="equipe, services, realisations"):
        content_kind("blog")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        {
            "services": [
                {"id": "s1", "admin_id": "a1", "title": "Bornage", "slug": "bornage",
                 "description": "Pose de bornes", "active": True, "sort_order": 2},
                {"id": "s2", "admin_id": "a1", "title": "Division", "slug": "division",
                 "description": "Partage", "active": False, "sort_order": 1},
                {"id": "s3", "admin_id": "a2", "title": "Topo", "slug": "topo",
                 "description": "Releve", "active": True, "sort_order": 0},
            ],
            "realisations": [
                {"id": "r1", "admin_id": "a1", "title": "Ancien", "image_url": "u1",
                 "category": "bornage", "created_at": "2024-01-01T00:00:00Z"},
                {"id": "r2", "admin_id": "a1", "title": "Recent", "image_url": "u2",
                 "category": "division", "created_at": "2024-06-01T00:00:00Z"},
            ],
        },
    )


@pytest.mark.asyncio
async def test_list_own_rows_in_display_order(store: FakeStore) -> None:
    """An admin sees their rows, inactive ones included, by position."""
    rows = await list_items(store, SERVICES, admin_id="a1")
    assert [row["id"] for row in rows] == ["s2", "s1"]


@pytest.mark.asyncio
async def test_list_public_rows(store: FakeStore) -> None:
    """Visitors only see active rows, across admins."""
    rows = await list_items(store, SERVICES, active_only=True)
    assert [row["id"] for row in rows] == ["s3", "s1"]


@pytest.mark.asyncio
async def test_realisations_newest_first(store: FakeStore) -> None:
    """Completed projects have no active flag and are listed newest first."""
    rows = await list_items(store, REALISATIONS, active_only=True)
    assert [row["id"] for row in rows] == ["r2", "r1"]


@pytest.mark.asyncio
async def test_create_item_is_owned_by_admin(fake_store: FakeStore) -> None:
    """New rows carry the admin id and the validated fields."""
    row = await create_item(fake_store, EQUIPE, "a1", {"prenom": "Amel", "name": "Haddad"})
    assert row["admin_id"] == "a1"
    assert row["prenom"] == "Amel"
    assert fake_store.tables["equipe"][0]["role"] is None


@pytest.mark.asyncio
async def test_invalid_item_is_not_written(fake_store: FakeStore) -> None:
    """Validation happens before anything is sent."""
    with pytest.raises(ContentError):
        await create_item(fake_store, SERVICES, "a1", {"title": "Bornage"})
    assert fake_store.calls == []


@pytest.mark.asyncio
async def test_update_item_merges_changes(store: FakeStore) -> None:
    """Only the given fields change; the rest of the row is kept."""
    row = await update_item(store, SERVICES, "a1", "s1", {"active": "false", "sort_order": "5"})
    assert row["active"] is False
    assert row["sort_order"] == 5
    assert row["title"] == "Bornage"
    assert row["slug"] == "bornage"


@pytest.mark.asyncio
async def test_update_cannot_blank_required_field(store: FakeStore) -> None:
    """The merged row is validated again."""
    with pytest.raises(ContentError, match="Titre et description"):
        await update_item(store, SERVICES, "a1", "s1", {"description": " "})
    assert store.count("update") == 0


@pytest.mark.asyncio
async def test_rows_of_other_admins_are_untouched(store: FakeStore) -> None:
    """Updates and deletes are scoped to the admin's own rows."""
    with pytest.raises(ContentError, match="introuvable"):
        await update_item(store, SERVICES, "a1", "s3", {"title": "Vole"})
    with pytest.raises(ContentError, match="Suppression impossible"):
        await delete_item(store, SERVICES, "a1", "s3")
    assert [row["id"] for row in store.tables["services"]] == ["s1", "s2", "s3"]


@pytest.mark.asyncio
async def test_delete_item(store: FakeStore) -> None:
    """A deleted row is gone from the table."""
    await delete_item(store, REALISATIONS, "a1", "r1")
    assert [row["id"] for row in store.tables["realisations"]] == ["r2"]
