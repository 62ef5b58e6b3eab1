"""
LinkShelf Backend — User & Session SQLAlchemy Models
======================================================

What:  ORM models for the `user` and `session` tables.
Who:   Used by SqlBackend for identity lookups and durable login sessions.

Table Design:
    - user.id is provider-qualified text (e.g. "github-583231"), not a UUID:
      the id is derived from the OAuth identity so repeat logins find the
      same row.
    - session.id is the hex SHA-256 of the raw session token. The raw token
      only ever lives in the browser cookie.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, text
from sqlalchemy.orm import Mapped, mapped_column

from linkshelf.database import Base
from linkshelf.utils import utcnow


class User(Base):
    """An account, created on first OAuth login and immutable afterwards."""

    __tablename__ = "user"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Primary (or first) verified email reported by the provider",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """
    A login session.

    Lifecycle:
        1. Inserted by the OAuth callback (expires_at = now + 30 days)
        2. Looked up by the session middleware on every request
        3. Deleted on logout, or when found expired during validation
    """

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Hex SHA-256 of the session token",
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("user.id"),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuthSession(user_id={self.user_id}, expires_at='{self.expires_at}')>"
