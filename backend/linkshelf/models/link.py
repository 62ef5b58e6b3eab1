"""
LinkShelf Backend — Link & LinkLabel SQLAlchemy Models
========================================================

What:  ORM models for the `link` table and the `link_label` association table.
Who:   Used by SqlBackend for CRUD and by Alembic for schema management.

Table Design:
    - id: UUID string generated in Python, so the mock and SQL backends
      hand out ids the same way and SQLite/PostgreSQL behave alike
    - description: nullable; absent is NULL, never an empty string
    - created_at / updated_at: UTC, timezone-aware; updated_at is refreshed
      by SqlBackend on every mutation (no ON UPDATE trigger)
    - link_label: pure association, composite primary key (link_id, label_id)
      so a pair can exist at most once

    Index on user_id:
        Supports get_links_by_user and the per-user views.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from linkshelf.database import Base
from linkshelf.utils import utcnow


class Link(Base):
    """
    A saved URL owned by exactly one user.

    Deleting a Link removes its notes and link_label rows first; SqlBackend
    does all three deletes in one transaction.
    """

    __tablename__ = "link"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("user.id"),
        nullable=False,
    )

    url: Mapped[str] = mapped_column(Text, nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    is_permanent: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_link_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, title='{self.title}')>"


class LinkLabel(Base):
    """Association row: label `label_id` is attached to link `link_id`."""

    __tablename__ = "link_label"

    link_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("link.id"),
        primary_key=True,
    )

    label_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("label.id"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<LinkLabel(link_id={self.link_id}, label_id={self.label_id})>"
