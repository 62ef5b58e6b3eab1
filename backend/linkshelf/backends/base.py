"""
LinkShelf Backend — Abstract Persistence Interface
====================================================

What:  Abstract base class defining the CRUD contract every persistence
       backend implements (links, notes, labels, link-label associations,
       users and login sessions).
How:   Concrete implementations inherit from BookmarkBackend:
         - MockBackend: in-memory collections seeded with a demo dataset
         - SqlBackend:  async SQLAlchemy over PostgreSQL (or SQLite in tests)
       `build_backend()` picks one at startup; route handlers only ever see
       this interface.
Who:   Called by the REST route handlers, the auth service and the session
       middleware.

Contract:
    - "Not found" is a normal return value: `None` for lookups and updates,
      `False` for deletes and association changes. Backends never raise for
      a missing row.
    - Every returned object is a fresh Pydantic model. Mutating it never
      changes backend state.
    - Creation assigns the id and stamps `created_at == updated_at`.
    - Updates only touch the provided fields and strictly advance
      `updated_at`. Reads never change it.
    - Unexpected failures (driver errors, lost connections) surface as
      `DatabaseError`.
    - Orderings: links newest first, notes oldest first, labels by name.
    - Referential rules are checked by the backend itself, so both
      implementations reject the same input with ValidationError: links
      and labels need an existing owner, notes an existing link, and an
      email belongs to at most one user.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from linkshelf.exceptions import ValidationError
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

# Identity used for requests that arrive without a login session
DEFAULT_USER_ID = "user-1"
DEFAULT_USER_EMAIL = "demo@example.com"


def unknown_owner(user_id: str) -> ValidationError:
    return ValidationError(message="Owner not found", field="userId", context={"user_id": user_id})


def email_taken(email: str) -> ValidationError:
    return ValidationError(message="Email already registered", field="email", context={"email": email})


class BookmarkBackend(ABC):
    """
    Abstract interface for bookmark persistence.

    Attributes:
        kind: Short name reported by the health endpoint ("mock" or "sql")
    """

    kind: str = "abstract"

    # ── Links ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_links(self) -> List[Link]:
        """All links, newest first."""
        ...

    @abstractmethod
    async def get_link_by_id(self, link_id: str) -> Optional[Link]:
        ...

    @abstractmethod
    async def get_links_by_user(self, user_id: str) -> List[Link]:
        """Links owned by `user_id`, newest first."""
        ...

    @abstractmethod
    async def get_link_with_notes(self, link_id: str) -> Optional[LinkWithNotes]:
        ...

    @abstractmethod
    async def get_link_with_labels(self, link_id: str) -> Optional[LinkWithLabels]:
        ...

    @abstractmethod
    async def get_full_link(self, link_id: str) -> Optional[LinkFull]:
        """
        Link plus its notes (oldest first) and labels.

        Returns:
            LinkFull, or None when the link does not exist.
        """
        ...

    @abstractmethod
    async def create_link(self, data: Dict[str, Any], user_id: str) -> Link:
        """
        Create a link owned by `user_id`.

        Args:
            data:    url, title and optionally description, is_permanent,
                     is_public. Any id, owner or timestamp keys are ignored.
            user_id: Owner; the caller resolves the current user.
        """
        ...

    @abstractmethod
    async def update_link(self, link_id: str, data: Dict[str, Any]) -> Optional[Link]:
        ...

    @abstractmethod
    async def delete_link(self, link_id: str) -> bool:
        """
        Delete a link together with its notes and label associations.

        Returns:
            False if the link did not exist.
        """
        ...

    # ── Notes ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_notes_by_link(self, link_id: str) -> List[Note]:
        ...

    @abstractmethod
    async def create_note(self, data: Dict[str, Any]) -> Note:
        """
        Create a note on an existing link.

        Raises:
            ValidationError: `data["link_id"]` does not name an existing link.
        """
        ...

    @abstractmethod
    async def update_note(self, note_id: str, data: Dict[str, Any]) -> Optional[Note]:
        ...

    @abstractmethod
    async def delete_note(self, note_id: str) -> bool:
        ...

    # ── Labels ────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_labels(self, user_id: str) -> List[Label]:
        """Labels owned by `user_id`, ordered by name."""
        ...

    @abstractmethod
    async def create_label(self, name: str, user_id: str) -> Label:
        ...

    @abstractmethod
    async def update_label(self, label_id: str, name: str) -> Optional[Label]:
        ...

    @abstractmethod
    async def delete_label(self, label_id: str) -> bool:
        """Delete a label and detach it from every link."""
        ...

    # ── Link ↔ Label ──────────────────────────────────────────────────────

    @abstractmethod
    async def add_label_to_link(self, link_id: str, label_id: str) -> bool:
        """
        Attach a label to a link.

        Idempotent: attaching an already-attached label returns True without
        creating a second row. Returns False when either side is missing.
        """
        ...

    @abstractmethod
    async def remove_label_from_link(self, link_id: str, label_id: str) -> bool:
        """Returns False (and changes nothing) if the pair did not exist."""
        ...

    @abstractmethod
    async def get_labels_by_link(self, link_id: str) -> List[Label]:
        ...

    @abstractmethod
    async def get_links_by_label(self, label_id: str) -> List[Link]:
        ...

    # ── Users & Sessions ──────────────────────────────────────────────────

    @abstractmethod
    async def get_current_user(self) -> User:
        """
        The identity used when a request carries no login session.

        Both backends resolve this to the demo user, creating it in the
        store on first use if necessary.
        """
        ...

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_or_create_user(self, user_id: str, email: str) -> User:
        """
        Return the user with `user_id`, creating it with `email` if absent.

        Existing users are returned unchanged; users are immutable here.
        """
        ...

    @abstractmethod
    async def create_session(self, session: AuthSession) -> AuthSession:
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[AuthSession]:
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        ...

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def ping(self) -> bool:
        """
        Check whether the store is reachable.

        Who:     Called by the health check endpoint.
        Returns: True if the store answers, False otherwise.
        """
        return True

    async def close(self) -> None:
        """Release connections or other resources held by the backend."""
        return None
