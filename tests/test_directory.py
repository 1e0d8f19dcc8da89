"""Tests for the cached admin directory."""

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeStore

from geomweb.profiles.directory import (
    ALL_ACTIVE,
    AdminDirectory,
    get_admin_cabinet_name,
    pick_primary_admin,
    profile_score,
)
from geomweb.profiles.models import AdminProfile
from geomweb.store import StoreError

ADMINS = [
    {
        "id": "a1",
        "name": "Karim Benali",
        "grade": "Geometre-expert",
        "email": "Karim@Cabinet.dz",
        "phone": "0555",
        "slug": "karim",
        "cabinet_name": "Cabinet Benali",
        "active": True,
        "password": "secret",
        "updated_at": "2024-03-01T10:00:00+00:00",
    },
    {
        "id": "a2",
        "name": "Old Admin",
        "email": "old@cabinet.dz",
        "slug": "old",
        "active": False,
        "updated_at": "2024-04-01T10:00:00+00:00",
    },
    {
        "id": "a3",
        "name": "Sara",
        "email": "sara@cabinet.dz",
        "slug": "sara",
        "active": True,
        "updated_at": "2024-05-01T10:00:00+00:00",
    },
]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore({"admins": ADMINS})


def test_cabinet_name_fallbacks() -> None:
    """Cabinet name, then tagline, then the legacy column."""
    assert get_admin_cabinet_name(None) == ""
    assert get_admin_cabinet_name(AdminProfile(id="1", cabinet_name=" A ", tagline="B")) == "A"
    assert get_admin_cabinet_name(AdminProfile(id="1", cabinet_name=" ", tagline="B")) == "B"
    assert get_admin_cabinet_name(AdminProfile(id="1", nom_cabinet="C")) == "C"


def test_profile_score() -> None:
    """Cabinet name weighs most, then grade, name, phone and e-mail."""
    assert profile_score(AdminProfile(id="1")) == 0
    full = AdminProfile(id="1", cabinet_name="C", grade="G", name="N", phone="P", email="E")
    assert profile_score(full) == 11


def test_pick_primary_admin() -> None:
    """The most complete profile wins; ties go to the most recently updated."""
    complete = AdminProfile(id="1", name="N", grade="G", updated_at="2024-01-01T00:00:00Z")
    tie_old = AdminProfile(id="2", name="N", updated_at="2023-01-01T00:00:00Z")
    tie_new = AdminProfile(id="3", name="N", updated_at="2024-06-01T00:00:00Z")
    assert pick_primary_admin([]) is None
    assert pick_primary_admin([tie_old, complete]).id == "1"
    assert pick_primary_admin([tie_old, tie_new]).id == "3"


def test_configured_admin_wins_when_as_complete() -> None:
    """A configured e-mail takes precedence only if its profile is as complete."""
    best = AdminProfile(id="1", name="N", grade="G", email="best@x.dz")
    configured = AdminProfile(id="2", name="N", grade="G", email="Boss@x.dz")
    weak = AdminProfile(id="3", email="weak@x.dz")
    assert pick_primary_admin([best, configured], ["boss@x.dz"]).id == "2"
    assert pick_primary_admin([best, weak], ["weak@x.dz"]).id == "1"


@pytest.mark.asyncio
async def test_fetch_by_email_is_cached(store: FakeStore) -> None:
    """Lookups are case-insensitive and hit the database once."""
    directory = AdminDirectory(store)

    admin = await directory.fetch_admin_by_email("karim@cabinet.DZ ")
    again = await directory.fetch_admin_by_email("KARIM@cabinet.dz")

    assert admin is not None
    assert admin.id == "a1"
    assert again is admin
    assert store.count("select", "admins") == 1


@pytest.mark.asyncio
async def test_inactive_admins_are_hidden(store: FakeStore) -> None:
    """Only active rows are returned."""
    directory = AdminDirectory(store)
    assert await directory.fetch_admin_by_slug("old") is None
    assert await directory.fetch_admin_by_email("old@cabinet.dz") is None
    active = await directory.list_active_admins()
    assert [admin.id for admin in active] == ["a3", "a1"]


@pytest.mark.asyncio
async def test_partitions_are_independent(store: FakeStore) -> None:
    """The same key in different partitions are separate entries."""
    directory = AdminDirectory(store)
    by_slug = await directory.fetch_admin_by_slug("karim")
    by_email = await directory.fetch_admin_by_email("karim")
    assert by_slug is not None
    assert by_slug.id == "a1"
    assert by_email is None
    assert store.count("select", "admins") == 2


@pytest.mark.asyncio
async def test_concurrent_list_shares_one_query(store: FakeStore) -> None:
    """Simultaneous callers of the active list share a single query."""
    directory = AdminDirectory(store)
    results = await asyncio.gather(*(directory.list_active_admins() for _ in range(5)))
    assert all(result == results[0] for result in results)
    assert store.count("select", "admins") == 1
    assert ALL_ACTIVE in directory.active


@pytest.mark.asyncio
async def test_invalidate_all_clears_every_partition(store: FakeStore) -> None:
    """After invalidation every lookup goes back to the database."""
    directory = AdminDirectory(store)
    await directory.fetch_admin_by_email("karim@cabinet.dz")
    await directory.fetch_admin_by_slug("karim")
    await directory.list_active_admins()

    directory.invalidate_all()

    assert "karim@cabinet.dz" not in directory.by_email
    assert "karim" not in directory.by_slug
    assert ALL_ACTIVE not in directory.active
    await directory.fetch_admin_by_slug("karim")
    assert store.count("select", "admins") == 4


@pytest.mark.asyncio
async def test_database_error_gives_empty_result(store: FakeStore) -> None:
    """Backend failures resolve to the partition's empty value."""
    store.fail_with = StoreError("permission denied", "42501")
    directory = AdminDirectory(store)
    assert await directory.fetch_admin_by_email("karim@cabinet.dz") is None
    assert await directory.list_active_admins() == []


@pytest.mark.asyncio
async def test_primary_admin_and_is_admin_user(store: FakeStore) -> None:
    """The most complete active admin is primary; configured e-mails are admins."""
    directory = AdminDirectory(store, admin_emails=["boss@cabinet.dz"])
    primary = await directory.primary_admin()
    assert primary is not None
    assert primary.id == "a1"
    assert await directory.is_admin_user("Boss@Cabinet.dz")
    assert await directory.is_admin_user("sara@cabinet.dz")
    assert not await directory.is_admin_user("old@cabinet.dz")
    assert not await directory.is_admin_user("")
