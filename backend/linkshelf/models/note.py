"""
LinkShelf Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `note` table.
Who:   Used by SqlBackend for CRUD and by Alembic for schema management.

Query Patterns:
    - Notes of one link, oldest first:
      SELECT ... WHERE link_id = :id ORDER BY created_at ASC
      → Uses idx_note_link_id
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from linkshelf.database import Base
from linkshelf.utils import utcnow


class Note(Base):
    """
    A free-text annotation on one link.

    No independent lifecycle: rows are removed together with their link.
    """

    __tablename__ = "note"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    link_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("link.id"),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    is_published: Mapped[bool] = mapped_column(
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
        Index("idx_note_link_id", "link_id"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, link_id={self.link_id})>"
