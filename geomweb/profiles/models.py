"""Admin profile records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AdminProfile(BaseModel):
    """A row of the ``admins`` table, without the password column."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    grade: str | None = None
    email: str | None = None
    phone: str | None = None
    active: bool = True
    slug: str | None = None
    tagline: str | None = None
    cabinet_name: str | None = None
    nom_cabinet: str | None = None
    bio: str | None = None
    address: str | None = None
    city: str | None = None
    opening_hours_weekdays: str | None = None
    opening_hours_saturday: str | None = None
    avatar_url: str | None = None
    hero_image_url: str | None = None
    password_updated_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
