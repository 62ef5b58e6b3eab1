"""
LinkShelf Backend — In-Memory Mock Backend
============================================

What:  BookmarkBackend implementation that keeps everything in Python lists.
How:   Rows are Pydantic models. Every read hands out a deep copy and every
       write replaces the stored model with `model_copy(update=...)`, so a
       caller can never reach backend-owned state through a returned object.
Who:   Selected by `build_backend()` when no usable DATABASE_URL is
       configured (or USE_MOCK_DATA=true), and used throughout the tests.
When:  Lives for the whole process; nothing is persisted across restarts.

Concurrency:
    The collections are shared by every request but no method awaits
    anything between reading and writing them, so under a single asyncio
    event loop each operation is atomic without locks.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, TypeVar

from pydantic import BaseModel

from linkshelf.backends import mock_data
from linkshelf.backends.base import (
    DEFAULT_USER_EMAIL,
    DEFAULT_USER_ID,
    BookmarkBackend,
    email_taken,
    unknown_owner,
)
from linkshelf.exceptions import ValidationError
from linkshelf.schemas.bookmark import (
    AuthSession,
    Label,
    Link,
    LinkFull,
    LinkLabel,
    LinkWithLabels,
    LinkWithNotes,
    Note,
    User,
)
from linkshelf.utils import advance_timestamp, new_id, utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Columns a client may set on create/update; everything else is server-owned
LINK_FIELDS = ("url", "title", "description", "is_permanent", "is_public")
NOTE_FIELDS = ("content", "is_published")


def _copy(item: ModelT) -> ModelT:
    return item.model_copy(deep=True)


def _copies(items: Iterable[ModelT]) -> List[ModelT]:
    return [item.model_copy(deep=True) for item in items]


def _pick(data: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    return {key: data[key] for key in allowed if key in data}


def _newest_first(links: Iterable[Link]) -> List[Link]:
    return sorted(links, key=lambda link: link.created_at, reverse=True)


def _oldest_first(notes: Iterable[Note]) -> List[Note]:
    return sorted(notes, key=lambda note: note.created_at)


def _by_name(labels: Iterable[Label]) -> List[Label]:
    return sorted(labels, key=lambda label: label.name)


class MockBackend(BookmarkBackend):
    """
    In-memory bookmark store.

    Args:
        seed: Load the demo collection (3 links, 4 notes, 4 labels). Tests
              that need an empty store pass False; the demo user is still
              created on first use of `get_current_user()`.
    """

    kind = "mock"

    def __init__(self, seed: bool = True):
        self.users: List[User] = []
        self.links: List[Link] = []
        self.notes: List[Note] = []
        self.labels: List[Label] = []
        self.link_labels: List[LinkLabel] = []
        self.sessions: Dict[str, AuthSession] = {}

        if seed:
            data = mock_data.seed()
            self.users = data["users"]
            self.links = data["links"]
            self.notes = data["notes"]
            self.labels = data["labels"]
            self.link_labels = data["link_labels"]

        logger.info(
            "Mock backend ready: %d links, %d notes, %d labels",
            len(self.links), len(self.notes), len(self.labels),
        )

    # ── Internal lookups (return stored objects, never hand them out) ────

    def _find_link(self, link_id: str) -> Optional[Link]:
        return next((link for link in self.links if link.id == link_id), None)

    def _find_note(self, note_id: str) -> Optional[Note]:
        return next((note for note in self.notes if note.id == note_id), None)

    def _find_label(self, label_id: str) -> Optional[Label]:
        return next((label for label in self.labels if label.id == label_id), None)

    def _find_user(self, user_id: str) -> Optional[User]:
        return next((user for user in self.users if user.id == user_id), None)

    def _notes_of(self, link_id: str) -> List[Note]:
        return _oldest_first(note for note in self.notes if note.link_id == link_id)

    def _labels_of(self, link_id: str) -> List[Label]:
        label_ids = {ll.label_id for ll in self.link_labels if ll.link_id == link_id}
        return _by_name(label for label in self.labels if label.id in label_ids)

    @staticmethod
    def _replace(items: List[ModelT], old: ModelT, new: ModelT) -> None:
        items[items.index(old)] = new

    # ── Links ─────────────────────────────────────────────────────────────

    async def get_links(self) -> List[Link]:
        return _copies(_newest_first(self.links))

    async def get_link_by_id(self, link_id: str) -> Optional[Link]:
        link = self._find_link(link_id)
        return _copy(link) if link else None

    async def get_links_by_user(self, user_id: str) -> List[Link]:
        return _copies(_newest_first(link for link in self.links if link.user_id == user_id))

    async def get_link_with_notes(self, link_id: str) -> Optional[LinkWithNotes]:
        link = self._find_link(link_id)
        if link is None:
            return None
        return LinkWithNotes(**link.model_dump(), notes=_copies(self._notes_of(link_id)))

    async def get_link_with_labels(self, link_id: str) -> Optional[LinkWithLabels]:
        link = self._find_link(link_id)
        if link is None:
            return None
        return LinkWithLabels(**link.model_dump(), labels=_copies(self._labels_of(link_id)))

    async def get_full_link(self, link_id: str) -> Optional[LinkFull]:
        link = self._find_link(link_id)
        if link is None:
            return None
        return LinkFull(
            **link.model_dump(),
            notes=_copies(self._notes_of(link_id)),
            labels=_copies(self._labels_of(link_id)),
        )

    async def create_link(self, data: Dict[str, Any], user_id: str) -> Link:
        if self._find_user(user_id) is None:
            raise unknown_owner(user_id)
        now = utcnow()
        link = Link(
            **_pick(data, LINK_FIELDS),
            id=new_id("link"),
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        self.links.append(link)
        logger.info("Created link %s for user %s", link.id, user_id)
        return _copy(link)

    async def update_link(self, link_id: str, data: Dict[str, Any]) -> Optional[Link]:
        link = self._find_link(link_id)
        if link is None:
            return None
        changes = _pick(data, LINK_FIELDS)
        changes["updated_at"] = advance_timestamp(link.updated_at)
        updated = link.model_copy(update=changes)
        self._replace(self.links, link, updated)
        return _copy(updated)

    async def delete_link(self, link_id: str) -> bool:
        link = self._find_link(link_id)
        if link is None:
            return False
        notes_before = len(self.notes)
        labels_before = len(self.link_labels)
        self.notes = [note for note in self.notes if note.link_id != link_id]
        self.link_labels = [ll for ll in self.link_labels if ll.link_id != link_id]
        self.links.remove(link)
        logger.info(
            "Deleted link %s (%d notes, %d label associations)",
            link_id,
            notes_before - len(self.notes),
            labels_before - len(self.link_labels),
        )
        return True

    # ── Notes ─────────────────────────────────────────────────────────────

    async def get_notes_by_link(self, link_id: str) -> List[Note]:
        return _copies(self._notes_of(link_id))

    async def create_note(self, data: Dict[str, Any]) -> Note:
        link_id = data.get("link_id")
        if not link_id or self._find_link(link_id) is None:
            raise ValidationError(
                message="Link not found for note",
                field="linkId",
                context={"link_id": link_id},
            )
        now = utcnow()
        note = Note(
            **_pick(data, NOTE_FIELDS),
            id=new_id("note"),
            link_id=link_id,
            created_at=now,
            updated_at=now,
        )
        self.notes.append(note)
        return _copy(note)

    async def update_note(self, note_id: str, data: Dict[str, Any]) -> Optional[Note]:
        note = self._find_note(note_id)
        if note is None:
            return None
        changes = _pick(data, NOTE_FIELDS)
        changes["updated_at"] = advance_timestamp(note.updated_at)
        updated = note.model_copy(update=changes)
        self._replace(self.notes, note, updated)
        return _copy(updated)

    async def delete_note(self, note_id: str) -> bool:
        note = self._find_note(note_id)
        if note is None:
            return False
        self.notes.remove(note)
        return True

    # ── Labels ────────────────────────────────────────────────────────────

    async def get_labels(self, user_id: str) -> List[Label]:
        return _copies(_by_name(label for label in self.labels if label.user_id == user_id))

    async def create_label(self, name: str, user_id: str) -> Label:
        if self._find_user(user_id) is None:
            raise unknown_owner(user_id)
        label = Label(id=new_id("label"), user_id=user_id, name=name, created_at=utcnow())
        self.labels.append(label)
        logger.info("Created label %s (%s)", label.id, name)
        return _copy(label)

    async def update_label(self, label_id: str, name: str) -> Optional[Label]:
        label = self._find_label(label_id)
        if label is None:
            return None
        updated = label.model_copy(update={"name": name})
        self._replace(self.labels, label, updated)
        return _copy(updated)

    async def delete_label(self, label_id: str) -> bool:
        label = self._find_label(label_id)
        if label is None:
            return False
        self.link_labels = [ll for ll in self.link_labels if ll.label_id != label_id]
        self.labels.remove(label)
        logger.info("Deleted label %s", label_id)
        return True

    # ── Link ↔ Label ──────────────────────────────────────────────────────

    async def add_label_to_link(self, link_id: str, label_id: str) -> bool:
        if self._find_link(link_id) is None or self._find_label(label_id) is None:
            return False
        pair = LinkLabel(link_id=link_id, label_id=label_id)
        if pair not in self.link_labels:
            self.link_labels.append(pair)
        return True

    async def remove_label_from_link(self, link_id: str, label_id: str) -> bool:
        pair = LinkLabel(link_id=link_id, label_id=label_id)
        if pair not in self.link_labels:
            return False
        self.link_labels.remove(pair)
        return True

    async def get_labels_by_link(self, link_id: str) -> List[Label]:
        return _copies(self._labels_of(link_id))

    async def get_links_by_label(self, label_id: str) -> List[Link]:
        link_ids = {ll.link_id for ll in self.link_labels if ll.label_id == label_id}
        return _copies(_newest_first(link for link in self.links if link.id in link_ids))

    # ── Users & Sessions ──────────────────────────────────────────────────

    async def get_current_user(self) -> User:
        return await self.find_or_create_user(DEFAULT_USER_ID, DEFAULT_USER_EMAIL)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        user = self._find_user(user_id)
        return _copy(user) if user else None

    async def find_or_create_user(self, user_id: str, email: str) -> User:
        user = self._find_user(user_id)
        if user is None:
            if any(existing.email == email for existing in self.users):
                raise email_taken(email)
            user = User(id=user_id, email=email, created_at=utcnow())
            self.users.append(user)
            logger.info("Created user %s", user_id)
        return _copy(user)

    async def create_session(self, session: AuthSession) -> AuthSession:
        self.sessions[session.id] = _copy(session)
        return _copy(session)

    async def get_session(self, session_id: str) -> Optional[AuthSession]:
        session = self.sessions.get(session_id)
        return _copy(session) if session else None

    async def delete_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None
