"""Forms validating admin-edited content before it is written."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

if TYPE_CHECKING:
    from pydantic import ValidationInfo

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

REALISATION_CATEGORIES = ("bornage", "division", "topographie", "copropriete", "implantation")


class ContentError(Exception):
    """Raised when content cannot be saved; the message is user-facing."""


def make_slug(value: str) -> str:
    """Build a URL slug from a title: accents dropped, other runs become ``-``."""
    text = _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", value))
    return _NON_SLUG.sub("-", text.lower().strip()).strip("-")


class ContentForm(BaseModel):
    """Editable fields of a content row.

    Strings are trimmed, unknown keys ignored, and the ``nullable`` fields
    stored as null when blank.
    """

    model_config = ConfigDict(extra="ignore")

    required: ClassVar[tuple[str, ...]] = ()
    required_message: ClassVar[str] = ""
    nullable: ClassVar[tuple[str, ...]] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("*")
    @classmethod
    def _blank_to_none(cls, v: Any, info: ValidationInfo) -> Any:
        if info.field_name in cls.nullable and v == "":
            return None
        return v

    def payload(self) -> dict[str, Any]:
        """Return the row to write.

        Raises:
            ContentError: If a required field is empty.

        """
        if any(not getattr(self, field) for field in self.required):
            raise ContentError(self.required_message)
        return self.model_dump()


class _Ordered(ContentForm):
    active: bool = True
    sort_order: int = 0

    @field_validator("sort_order", mode="before")
    @classmethod
    def _sort_order(cls, v: Any) -> Any:
        # Anything that is not a number sorts first.
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0


class TeamMemberForm(_Ordered):
    """A row of the ``equipe`` table."""

    required = ("prenom", "name")
    required_message = "Le prenom et le nom sont obligatoires."
    nullable = ("role", "date_of_birth", "email", "phone", "bio", "image_url")

    prenom: str = ""
    name: str = ""
    role: str | None = None
    date_of_birth: str | None = None
    email: str | None = None
    phone: str | None = None
    bio: str | None = None
    image_url: str | None = None


class ServiceForm(_Ordered):
    """A row of the ``services`` table. The slug defaults to one built from the title."""

    required = ("title", "description")
    required_message = "Titre et description sont obligatoires."
    nullable = ("category", "icon", "image_url")

    title: str = ""
    slug: str = ""
    category: str | None = None
    description: str = ""
    icon: str | None = None
    image_url: str | None = None

    def payload(self) -> dict[str, Any]:
        """Return the row to write, with the generated slug when none was given."""
        row = super().payload()
        row["slug"] = self.slug or make_slug(self.title)
        if not row["slug"]:
            msg = "Le slug genere est vide. Modifiez le titre."
            raise ContentError(msg)
        return row


class RealisationForm(ContentForm):
    """A row of the ``realisations`` table."""

    required = ("title", "image_url")
    required_message = "Titre et image sont obligatoires."

    title: str = ""
    category: str = "bornage"
    image_url: str = ""
    location: str = ""
    date: str = ""
    surface: str = ""
    description: str = ""

    def payload(self) -> dict[str, Any]:
        """Return the row to write, refusing unknown categories."""
        row = super().payload()
        if self.category not in REALISATION_CATEGORIES:
            choices = ", ".join(REALISATION_CATEGORIES)
            msg = f"Categorie inconnue: {self.category}. Choix possibles: {choices}."
            raise ContentError(msg)
        return row


@dataclass(frozen=True)
class ContentKind:
    """Where one kind of content is stored and how it is listed."""

    name: str
    label: str
    table: str
    form: type[ContentForm]
    order: str
    descending: bool
    columns: tuple[str, ...]
    has_active: bool = True

    def validate(self, values: dict[str, Any]) -> dict[str, Any]:
        """Validate ``values`` with this kind's form and return the row to write.

        Raises:
            ContentError: On a missing field or a value of the wrong type.

        """
        try:
            form = self.form.model_validate(values)
        except ValidationError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            msg = f"Valeur invalide pour: {', '.join(fields)}."
            raise ContentError(msg) from exc
        return form.payload()


CONTENT_KINDS: dict[str, ContentKind] = {
    kind.name: kind
    for kind in (
        ContentKind(
            name="equipe",
            label="Membre",
            table="equipe",
            form=TeamMemberForm,
            order="sort_order",
            descending=False,
            columns=("prenom", "name", "role", "active", "sort_order"),
        ),
        ContentKind(
            name="services",
            label="Service",
            table="services",
            form=ServiceForm,
            order="sort_order",
            descending=False,
            columns=("title", "slug", "category", "active", "sort_order"),
        ),
        ContentKind(
            name="realisations",
            label="Realisation",
            table="realisations",
            form=RealisationForm,
            order="created_at",
            descending=True,
            columns=("title", "category", "location", "date"),
            has_active=False,
        ),
    )
}
