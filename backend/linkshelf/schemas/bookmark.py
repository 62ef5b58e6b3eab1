"""
LinkShelf Backend — Bookmark Domain & Request Schemas
=======================================================

What:  Pydantic models for every entity the application moves around
       (User, Link, Note, Label, LinkLabel, sessions) plus the composite
       views and the request payloads.
How:   One set of models serves three roles:
         - backends return them (never ORM rows, never shared references)
         - FastAPI serializes them as response bodies
         - the client library parses responses back into them
Who:   MockBackend stores them directly; SqlBackend builds them from rows
       via `model_validate(row)` (`from_attributes`).

Wire format:
    Fields are snake_case in Python and camelCase on the wire
    (`is_permanent` ↔ `isPermanent`). `populate_by_name` lets request
    bodies and constructors use either spelling.

Timestamps:
    All datetimes are UTC-aware. SQLite hands back naive values, so every
    timestamp field passes through `as_utc`.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field
from pydantic.alias_generators import to_camel

from linkshelf.utils import as_utc

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """Base for every schema: camelCase aliases, ORM-row friendly."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ══════════════════════════════════════════════════════════════════════════
# Domain Models — What backends return and the API serves
# ══════════════════════════════════════════════════════════════════════════


class User(CamelModel):
    id: str
    email: str
    created_at: UtcDatetime


class Link(CamelModel):
    """
    A saved URL.

    `description` is genuinely optional: absent is `None`, never `""`.
    """
    id: str
    user_id: str
    url: str
    title: str
    description: Optional[str] = None
    is_permanent: bool = False
    is_public: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime


class Note(CamelModel):
    id: str
    link_id: str
    content: str
    is_published: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime


class Label(CamelModel):
    id: str
    user_id: str
    name: str
    created_at: UtcDatetime


class LinkLabel(CamelModel):
    link_id: str
    label_id: str


class LinkWithNotes(Link):
    notes: List[Note] = Field(default_factory=list)


class LinkWithLabels(Link):
    labels: List[Label] = Field(default_factory=list)


class LinkFull(Link):
    """
    Derived view: a link, its notes (oldest first) and its labels.

    Built on demand by the backends; never stored.
    """
    notes: List[Note] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list)


class AuthSession(CamelModel):
    """
    A durable login session.

    `id` is the hex SHA-256 of the session token; the token itself is only
    ever held by the browser cookie.
    """
    id: str
    user_id: str
    expires_at: UtcDatetime


# ══════════════════════════════════════════════════════════════════════════
# Request Payloads — What clients send
# ══════════════════════════════════════════════════════════════════════════


class LinkCreate(CamelModel):
    """
    Body of POST /api/links.

    Identity, ownership and timestamps are assigned server-side.
    """
    url: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    is_permanent: bool = False
    is_public: bool = False


class LinkUpdate(CamelModel):
    """
    Body of PATCH /api/links/{id}.

    Only fields present in the body change; callers dump it with
    `exclude_unset=True`.
    """
    url: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_permanent: Optional[bool] = None
    is_public: Optional[bool] = None


class NoteCreate(CamelModel):
    link_id: str = Field(min_length=1)
    content: str
    is_published: bool = False


class NoteUpdate(CamelModel):
    content: Optional[str] = None
    is_published: Optional[bool] = None


class LabelCreate(CamelModel):
    name: str = Field(min_length=1)


class LabelUpdate(CamelModel):
    name: str = Field(min_length=1)


def changed_fields(payload: BaseModel) -> dict:
    """
    Fields the client actually sent, by Python name.

    Explicit nulls survive (`{"description": null}` clears a description);
    non-nullable columns drop them so a stray null cannot blank a title.
    """
    data = payload.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in data.items()
        if value is not None or key == "description"
    }
