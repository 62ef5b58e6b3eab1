"""ORM model for the `label` table (user-defined tags)."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from linkshelf.database import Base
from linkshelf.utils import utcnow


class Label(Base):
    __tablename__ = "label"

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

    name: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_label_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Label(id={self.id}, name='{self.name}')>"
