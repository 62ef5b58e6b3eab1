"""
LinkShelf Backend — Relational (SQLAlchemy) Backend
=====================================================

What:  BookmarkBackend implementation over async SQLAlchemy 2.0.
How:   Each public method opens its own AsyncSession and runs inside one
       transaction (`session.begin()`), then converts ORM rows into
       Pydantic models before the session closes. ORM instances never leave
       this module.
Who:   Selected by `build_backend()` when a usable DATABASE_URL is configured.

Transaction Boundaries:
    One backend call = one transaction. Cascading deletes are therefore
    atomic: delete_link removes notes, link_label rows and the link in the
    same transaction, and delete_label removes link_label rows and the
    label together. A failure part-way rolls all of it back.

Error Handling:
    - Missing rows are normal results (None / False).
    - LinkShelfError raised inside a transaction (e.g. ValidationError for a
      note on an unknown link) propagates unchanged after rollback.
    - Anything else (SQLAlchemyError, driver errors) is logged with its
      cause and re-raised as DatabaseError with a generic message.

Query plans:
    get_links_by_user   → idx_link_user_id
    get_notes_by_link   → idx_note_link_id
    get_labels          → idx_label_user_id
    link_label lookups  → composite primary key
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import asc, delete, desc, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from linkshelf import models
from linkshelf.backends.base import (
    DEFAULT_USER_EMAIL,
    DEFAULT_USER_ID,
    BookmarkBackend,
    email_taken,
    unknown_owner,
)
from linkshelf.database import dispose_engine
from linkshelf.exceptions import DatabaseError, LinkShelfError, ValidationError
from linkshelf.schemas.bookmark import (
    AuthSession,
    Label,
    Link,
    LinkFull,
    LinkWithLabels,
    LinkWithNotes,
    Note,
    User,
)
from linkshelf.utils import advance_timestamp, new_id, utcnow

logger = logging.getLogger(__name__)

LINK_FIELDS = ("url", "title", "description", "is_permanent", "is_public")
NOTE_FIELDS = ("content", "is_published")


class SqlBackend(BookmarkBackend):
    """
    Bookmark store backed by a relational database.

    Args:
        engine: Async engine from `linkshelf.database.create_engine()`.
                The backend owns it and disposes it in `close()`.
    """

    kind = "sql"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        # expire_on_commit=False: rows stay readable after the transaction
        # commits, while they are converted to Pydantic models
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Yield a session inside a transaction; commit on success.

        Args:
            operation: Name logged alongside any failure
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except LinkShelfError:
            raise  # Already our exception, propagate as-is
        except Exception as e:
            logger.error("Database error in %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    # ── Query helpers (run inside an open session) ───────────────────────

    @staticmethod
    async def _notes_of(session: AsyncSession, link_id: str) -> List[Note]:
        result = await session.execute(
            select(models.Note)
            .where(models.Note.link_id == link_id)
            .order_by(asc(models.Note.created_at))
        )
        return [Note.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def _labels_of(session: AsyncSession, link_id: str) -> List[Label]:
        result = await session.execute(
            select(models.Label)
            .join(models.LinkLabel, models.LinkLabel.label_id == models.Label.id)
            .where(models.LinkLabel.link_id == link_id)
            .order_by(asc(models.Label.name))
        )
        return [Label.model_validate(row) for row in result.scalars().all()]

    # ── Links ─────────────────────────────────────────────────────────────

    async def get_links(self) -> List[Link]:
        async with self._transaction("get_links") as session:
            result = await session.execute(
                select(models.Link).order_by(desc(models.Link.created_at))
            )
            return [Link.model_validate(row) for row in result.scalars().all()]

    async def get_link_by_id(self, link_id: str) -> Optional[Link]:
        async with self._transaction("get_link_by_id") as session:
            row = await session.get(models.Link, link_id)
            return Link.model_validate(row) if row else None

    async def get_links_by_user(self, user_id: str) -> List[Link]:
        async with self._transaction("get_links_by_user") as session:
            result = await session.execute(
                select(models.Link)
                .where(models.Link.user_id == user_id)
                .order_by(desc(models.Link.created_at))
            )
            return [Link.model_validate(row) for row in result.scalars().all()]

    async def get_link_with_notes(self, link_id: str) -> Optional[LinkWithNotes]:
        async with self._transaction("get_link_with_notes") as session:
            row = await session.get(models.Link, link_id)
            if row is None:
                return None
            link = Link.model_validate(row)
            notes = await self._notes_of(session, link_id)
            return LinkWithNotes(**link.model_dump(), notes=notes)

    async def get_link_with_labels(self, link_id: str) -> Optional[LinkWithLabels]:
        async with self._transaction("get_link_with_labels") as session:
            row = await session.get(models.Link, link_id)
            if row is None:
                return None
            link = Link.model_validate(row)
            labels = await self._labels_of(session, link_id)
            return LinkWithLabels(**link.model_dump(), labels=labels)

    async def get_full_link(self, link_id: str) -> Optional[LinkFull]:
        async with self._transaction("get_full_link") as session:
            row = await session.get(models.Link, link_id)
            if row is None:
                return None
            link = Link.model_validate(row)
            notes = await self._notes_of(session, link_id)
            labels = await self._labels_of(session, link_id)
            return LinkFull(**link.model_dump(), notes=notes, labels=labels)

    async def create_link(self, data: Dict[str, Any], user_id: str) -> Link:
        now = utcnow()
        async with self._transaction("create_link") as session:
            if await session.get(models.User, user_id) is None:
                raise unknown_owner(user_id)
            row = models.Link(
                id=new_id(),
                user_id=user_id,
                created_at=now,
                updated_at=now,
                **{key: data[key] for key in LINK_FIELDS if key in data},
            )
            session.add(row)
            await session.flush()
            link = Link.model_validate(row)
        logger.info("Created link %s for user %s", link.id, user_id)
        return link

    async def update_link(self, link_id: str, data: Dict[str, Any]) -> Optional[Link]:
        async with self._transaction("update_link") as session:
            row = await session.get(models.Link, link_id)
            if row is None:
                return None
            for key in LINK_FIELDS:
                if key in data:
                    setattr(row, key, data[key])
            row.updated_at = advance_timestamp(row.updated_at)
            await session.flush()
            return Link.model_validate(row)

    async def delete_link(self, link_id: str) -> bool:
        async with self._transaction("delete_link") as session:
            notes = await session.execute(
                delete(models.Note).where(models.Note.link_id == link_id)
            )
            associations = await session.execute(
                delete(models.LinkLabel).where(models.LinkLabel.link_id == link_id)
            )
            result = await session.execute(
                delete(models.Link).where(models.Link.id == link_id)
            )
            deleted = result.rowcount > 0
        if deleted:
            logger.info(
                "Deleted link %s (%d notes, %d label associations)",
                link_id, notes.rowcount, associations.rowcount,
            )
        return deleted

    # ── Notes ─────────────────────────────────────────────────────────────

    async def get_notes_by_link(self, link_id: str) -> List[Note]:
        async with self._transaction("get_notes_by_link") as session:
            return await self._notes_of(session, link_id)

    async def create_note(self, data: Dict[str, Any]) -> Note:
        link_id = data.get("link_id")
        now = utcnow()
        async with self._transaction("create_note") as session:
            if not link_id or await session.get(models.Link, link_id) is None:
                raise ValidationError(
                    message="Link not found for note",
                    field="linkId",
                    context={"link_id": link_id},
                )
            row = models.Note(
                id=new_id(),
                link_id=link_id,
                created_at=now,
                updated_at=now,
                **{key: data[key] for key in NOTE_FIELDS if key in data},
            )
            session.add(row)
            await session.flush()
            return Note.model_validate(row)

    async def update_note(self, note_id: str, data: Dict[str, Any]) -> Optional[Note]:
        async with self._transaction("update_note") as session:
            row = await session.get(models.Note, note_id)
            if row is None:
                return None
            for key in NOTE_FIELDS:
                if key in data:
                    setattr(row, key, data[key])
            row.updated_at = advance_timestamp(row.updated_at)
            await session.flush()
            return Note.model_validate(row)

    async def delete_note(self, note_id: str) -> bool:
        async with self._transaction("delete_note") as session:
            result = await session.execute(
                delete(models.Note).where(models.Note.id == note_id)
            )
            return result.rowcount > 0

    # ── Labels ────────────────────────────────────────────────────────────

    async def get_labels(self, user_id: str) -> List[Label]:
        async with self._transaction("get_labels") as session:
            result = await session.execute(
                select(models.Label)
                .where(models.Label.user_id == user_id)
                .order_by(asc(models.Label.name))
            )
            return [Label.model_validate(row) for row in result.scalars().all()]

    async def create_label(self, name: str, user_id: str) -> Label:
        async with self._transaction("create_label") as session:
            if await session.get(models.User, user_id) is None:
                raise unknown_owner(user_id)
            row = models.Label(id=new_id(), user_id=user_id, name=name, created_at=utcnow())
            session.add(row)
            await session.flush()
            label = Label.model_validate(row)
        logger.info("Created label %s (%s)", label.id, name)
        return label

    async def update_label(self, label_id: str, name: str) -> Optional[Label]:
        async with self._transaction("update_label") as session:
            row = await session.get(models.Label, label_id)
            if row is None:
                return None
            row.name = name
            await session.flush()
            return Label.model_validate(row)

    async def delete_label(self, label_id: str) -> bool:
        async with self._transaction("delete_label") as session:
            await session.execute(
                delete(models.LinkLabel).where(models.LinkLabel.label_id == label_id)
            )
            result = await session.execute(
                delete(models.Label).where(models.Label.id == label_id)
            )
            deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted label %s", label_id)
        return deleted

    # ── Link ↔ Label ──────────────────────────────────────────────────────

    async def add_label_to_link(self, link_id: str, label_id: str) -> bool:
        async with self._transaction("add_label_to_link") as session:
            if await session.get(models.Link, link_id) is None:
                return False
            if await session.get(models.Label, label_id) is None:
                return False
            existing = await session.get(models.LinkLabel, (link_id, label_id))
            if existing is None:
                session.add(models.LinkLabel(link_id=link_id, label_id=label_id))
            return True

    async def remove_label_from_link(self, link_id: str, label_id: str) -> bool:
        async with self._transaction("remove_label_from_link") as session:
            result = await session.execute(
                delete(models.LinkLabel).where(
                    models.LinkLabel.link_id == link_id,
                    models.LinkLabel.label_id == label_id,
                )
            )
            return result.rowcount > 0

    async def get_labels_by_link(self, link_id: str) -> List[Label]:
        async with self._transaction("get_labels_by_link") as session:
            return await self._labels_of(session, link_id)

    async def get_links_by_label(self, label_id: str) -> List[Link]:
        async with self._transaction("get_links_by_label") as session:
            result = await session.execute(
                select(models.Link)
                .join(models.LinkLabel, models.LinkLabel.link_id == models.Link.id)
                .where(models.LinkLabel.label_id == label_id)
                .order_by(desc(models.Link.created_at))
            )
            return [Link.model_validate(row) for row in result.scalars().all()]

    # ── Users & Sessions ──────────────────────────────────────────────────

    async def get_current_user(self) -> User:
        return await self.find_or_create_user(DEFAULT_USER_ID, DEFAULT_USER_EMAIL)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        async with self._transaction("get_user_by_id") as session:
            row = await session.get(models.User, user_id)
            return User.model_validate(row) if row else None

    async def find_or_create_user(self, user_id: str, email: str) -> User:
        async with self._transaction("find_or_create_user") as session:
            row = await session.get(models.User, user_id)
            if row is None:
                taken = await session.execute(
                    select(models.User.id).where(models.User.email == email)
                )
                if taken.first() is not None:
                    raise email_taken(email)
                row = models.User(id=user_id, email=email, created_at=utcnow())
                session.add(row)
                await session.flush()
                logger.info("Created user %s", user_id)
            return User.model_validate(row)

    async def create_session(self, session: AuthSession) -> AuthSession:
        async with self._transaction("create_session") as db:
            row = models.AuthSession(
                id=session.id,
                user_id=session.user_id,
                expires_at=session.expires_at,
            )
            db.add(row)
            await db.flush()
            return AuthSession.model_validate(row)

    async def get_session(self, session_id: str) -> Optional[AuthSession]:
        async with self._transaction("get_session") as session:
            row = await session.get(models.AuthSession, session_id)
            return AuthSession.model_validate(row) if row else None

    async def delete_session(self, session_id: str) -> bool:
        async with self._transaction("delete_session") as session:
            result = await session.execute(
                delete(models.AuthSession).where(models.AuthSession.id == session_id)
            )
            return result.rowcount > 0

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database unreachable: %s", str(e))
            return False

    async def close(self) -> None:
        await dispose_engine(self.engine)
