"""
Tests for the BookmarkBackend implementations.

What we test:
    ✅ Link CRUD round-trips identically in MockBackend and SqlBackend
    ✅ updated_at strictly increases; partial updates touch only given fields
    ✅ Cascading deletes (link → notes + associations, label → associations)
    ✅ Idempotent label attachment; removing a missing pair is a no-op
    ✅ Orderings: links newest first, notes oldest first, labels by name
    ✅ Returned objects are copies, never backend-owned state
    ✅ Users and durable sessions
    ✅ Links and labels need an existing owner; emails are unique
    ✅ The seeded demo collection (mock only)
    ✅ SQL failures surface as DatabaseError with the cause chained
    ✅ A cascade that fails part-way leaves every row in place

Most tests take the parametrized `backend` fixture (see conftest.py) and
therefore run twice: once in memory, once against SQLite.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from linkshelf.backends.base import DEFAULT_USER_EMAIL, DEFAULT_USER_ID
from linkshelf.exceptions import DatabaseError, ValidationError
from linkshelf.schemas.bookmark import AuthSession
from linkshelf.utils import utcnow


async def _link(backend, title="Example", url="https://example.com", **extra):
    return await backend.create_link({"url": url, "title": title, **extra}, user_id=DEFAULT_USER_ID)


# ══════════════════════════════════════════════════════════════════════════
# Links
# ══════════════════════════════════════════════════════════════════════════

class TestLinks:

    @pytest.mark.asyncio
    async def test_create_assigns_identity_and_timestamps(self, backend):
        """Server-owned fields are filled in; flags default to False."""
        link = await _link(backend)

        assert link.id
        assert link.user_id == DEFAULT_USER_ID
        assert link.description is None
        assert link.is_permanent is False
        assert link.is_public is False
        assert link.created_at == link.updated_at
        assert link.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_create_then_get_returns_equal_link(self, backend):
        created = await _link(backend, description="notes on it", is_public=True)

        fetched = await backend.get_link_by_id(created.id)

        assert fetched == created

    @pytest.mark.asyncio
    async def test_get_missing_link_returns_none(self, backend):
        assert await backend.get_link_by_id("does-not-exist") is None
        assert await backend.get_full_link("does-not-exist") is None
        assert await backend.get_link_with_notes("does-not-exist") is None
        assert await backend.get_link_with_labels("does-not-exist") is None

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, backend):
        """A title-only update leaves url, description and flags alone."""
        link = await _link(backend, description="keep me", is_permanent=True)

        updated = await backend.update_link(link.id, {"title": "Renamed"})

        assert updated.title == "Renamed"
        assert updated.url == link.url
        assert updated.description == "keep me"
        assert updated.is_permanent is True
        assert updated.created_at == link.created_at

    @pytest.mark.asyncio
    async def test_update_strictly_increases_updated_at(self, backend):
        """Back-to-back updates never reuse a timestamp."""
        link = await _link(backend)

        first = await backend.update_link(link.id, {"title": "One"})
        second = await backend.update_link(link.id, {"title": "Two"})

        assert first.updated_at > link.updated_at
        assert second.updated_at > first.updated_at

    @pytest.mark.asyncio
    async def test_update_can_clear_description(self, backend):
        link = await _link(backend, description="temporary")

        updated = await backend.update_link(link.id, {"description": None})

        assert updated.description is None

    @pytest.mark.asyncio
    async def test_update_ignores_server_owned_fields(self, backend):
        link = await _link(backend)

        updated = await backend.update_link(link.id, {"user_id": "someone-else", "id": "x"})

        assert updated.id == link.id
        assert updated.user_id == DEFAULT_USER_ID

    @pytest.mark.asyncio
    async def test_update_missing_link_returns_none(self, backend):
        assert await backend.update_link("does-not-exist", {"title": "X"}) is None

    @pytest.mark.asyncio
    async def test_get_links_newest_first(self, backend):
        created = [await _link(backend, title=f"Link {i}") for i in range(3)]

        links = await backend.get_links()

        assert {link.id for link in links} == {link.id for link in created}
        timestamps = [link.created_at for link in links]
        assert timestamps == sorted(timestamps, reverse=True)

    @pytest.mark.asyncio
    async def test_get_links_by_user_filters_owner(self, backend):
        mine = await _link(backend)
        await backend.find_or_create_user("user-2", "other@example.com")
        await backend.create_link({"url": "https://other.com", "title": "Other"}, user_id="user-2")

        links = await backend.get_links_by_user(DEFAULT_USER_ID)

        assert [link.id for link in links] == [mine.id]

    @pytest.mark.asyncio
    async def test_returned_links_are_copies(self, backend):
        """Mutating a returned object never changes what the backend holds."""
        link = await _link(backend, title="Original")

        link.title = "Mutated"
        listed = await backend.get_links()
        listed[0].title = "Mutated again"

        fetched = await backend.get_link_by_id(link.id)
        assert fetched.title == "Original"


# ══════════════════════════════════════════════════════════════════════════
# Notes
# ══════════════════════════════════════════════════════════════════════════

class TestNotes:

    @pytest.mark.asyncio
    async def test_create_note_on_existing_link(self, backend):
        link = await _link(backend)

        note = await backend.create_note({"link_id": link.id, "content": "Worth reading"})

        assert note.link_id == link.id
        assert note.content == "Worth reading"
        assert note.is_published is False
        assert note.created_at == note.updated_at

    @pytest.mark.asyncio
    async def test_create_note_for_missing_link_raises(self, backend):
        """A note must always belong to an existing link."""
        with pytest.raises(ValidationError) as exc_info:
            await backend.create_note({"link_id": "does-not-exist", "content": "orphan"})

        assert exc_info.value.field == "linkId"
        assert await backend.get_notes_by_link("does-not-exist") == []

    @pytest.mark.asyncio
    async def test_notes_are_oldest_first(self, backend):
        link = await _link(backend)
        first = await backend.create_note({"link_id": link.id, "content": "first"})
        second = await backend.create_note({"link_id": link.id, "content": "second"})

        notes = await backend.get_notes_by_link(link.id)

        assert [note.id for note in notes] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_update_note(self, backend):
        link = await _link(backend)
        note = await backend.create_note({"link_id": link.id, "content": "draft"})

        updated = await backend.update_note(note.id, {"is_published": True})

        assert updated.content == "draft"
        assert updated.is_published is True
        assert updated.updated_at > note.updated_at

    @pytest.mark.asyncio
    async def test_update_and_delete_missing_note(self, backend):
        assert await backend.update_note("does-not-exist", {"content": "x"}) is None
        assert await backend.delete_note("does-not-exist") is False

    @pytest.mark.asyncio
    async def test_delete_note(self, backend):
        link = await _link(backend)
        note = await backend.create_note({"link_id": link.id, "content": "bye"})

        assert await backend.delete_note(note.id) is True
        assert await backend.get_notes_by_link(link.id) == []


# ══════════════════════════════════════════════════════════════════════════
# Labels & Associations
# ══════════════════════════════════════════════════════════════════════════

class TestLabels:

    @pytest.mark.asyncio
    async def test_labels_sorted_by_name_per_user(self, backend):
        await backend.find_or_create_user("user-2", "other@example.com")
        await backend.create_label("Zeta", DEFAULT_USER_ID)
        await backend.create_label("Alpha", DEFAULT_USER_ID)
        await backend.create_label("Hidden", "user-2")

        labels = await backend.get_labels(DEFAULT_USER_ID)

        assert [label.name for label in labels] == ["Alpha", "Zeta"]

    @pytest.mark.asyncio
    async def test_update_label_renames(self, backend):
        label = await backend.create_label("Old", DEFAULT_USER_ID)

        updated = await backend.update_label(label.id, "New")

        assert updated.id == label.id
        assert updated.name == "New"
        assert await backend.update_label("does-not-exist", "X") is None

    @pytest.mark.asyncio
    async def test_add_label_is_idempotent(self, backend):
        """Attaching the same label twice leaves exactly one association."""
        link = await _link(backend)
        label = await backend.create_label("Work", DEFAULT_USER_ID)

        assert await backend.add_label_to_link(link.id, label.id) is True
        assert await backend.add_label_to_link(link.id, label.id) is True

        labels = await backend.get_labels_by_link(link.id)
        assert [lbl.id for lbl in labels] == [label.id]

    @pytest.mark.asyncio
    async def test_add_label_requires_both_sides(self, backend):
        link = await _link(backend)
        label = await backend.create_label("Work", DEFAULT_USER_ID)

        assert await backend.add_label_to_link("does-not-exist", label.id) is False
        assert await backend.add_label_to_link(link.id, "does-not-exist") is False
        assert await backend.get_links_by_label(label.id) == []

    @pytest.mark.asyncio
    async def test_remove_missing_pair_is_noop(self, backend):
        link = await _link(backend)
        attached = await backend.create_label("Attached", DEFAULT_USER_ID)
        other = await backend.create_label("Other", DEFAULT_USER_ID)
        await backend.add_label_to_link(link.id, attached.id)

        assert await backend.remove_label_from_link(link.id, other.id) is False
        assert [lbl.id for lbl in await backend.get_labels_by_link(link.id)] == [attached.id]

    @pytest.mark.asyncio
    async def test_label_round_trip(self, backend):
        """Create link + label, attach, read both directions, detach."""
        link = await _link(backend, title="Docs")
        label = await backend.create_label("Work", DEFAULT_USER_ID)

        await backend.add_label_to_link(link.id, label.id)
        assert [lbl.name for lbl in await backend.get_labels_by_link(link.id)] == ["Work"]
        assert [lnk.id for lnk in await backend.get_links_by_label(label.id)] == [link.id]

        assert await backend.remove_label_from_link(link.id, label.id) is True
        assert await backend.get_labels_by_link(link.id) == []
        assert await backend.get_links_by_label(label.id) == []

    @pytest.mark.asyncio
    async def test_delete_label_detaches_from_links(self, backend):
        link = await _link(backend)
        label = await backend.create_label("Temp", DEFAULT_USER_ID)
        await backend.add_label_to_link(link.id, label.id)

        assert await backend.delete_label(label.id) is True

        assert await backend.get_labels_by_link(link.id) == []
        assert await backend.get_links_by_label(label.id) == []
        assert await backend.get_link_by_id(link.id) is not None
        assert await backend.delete_label(label.id) is False


# ══════════════════════════════════════════════════════════════════════════
# Composite Views & Cascades
# ══════════════════════════════════════════════════════════════════════════

class TestFullLinkAndCascade:

    @pytest.mark.asyncio
    async def test_full_link_contains_notes_and_labels(self, backend):
        link = await _link(backend)
        note = await backend.create_note({"link_id": link.id, "content": "hello"})
        b = await backend.create_label("B", DEFAULT_USER_ID)
        a = await backend.create_label("A", DEFAULT_USER_ID)
        await backend.add_label_to_link(link.id, b.id)
        await backend.add_label_to_link(link.id, a.id)

        full = await backend.get_full_link(link.id)

        assert full.id == link.id
        assert [n.id for n in full.notes] == [note.id]
        assert [lbl.name for lbl in full.labels] == ["A", "B"]

        with_notes = await backend.get_link_with_notes(link.id)
        with_labels = await backend.get_link_with_labels(link.id)
        assert [n.id for n in with_notes.notes] == [note.id]
        assert [lbl.id for lbl in with_labels.labels] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_delete_link_cascades(self, backend):
        """Deleting a link removes its notes and associations, nothing else."""
        doomed = await _link(backend, title="Doomed")
        survivor = await _link(backend, title="Survivor")
        label = await backend.create_label("Shared", DEFAULT_USER_ID)
        await backend.create_note({"link_id": doomed.id, "content": "one"})
        await backend.create_note({"link_id": doomed.id, "content": "two"})
        kept = await backend.create_note({"link_id": survivor.id, "content": "kept"})
        await backend.add_label_to_link(doomed.id, label.id)
        await backend.add_label_to_link(survivor.id, label.id)

        assert await backend.delete_link(doomed.id) is True

        assert await backend.get_link_by_id(doomed.id) is None
        assert await backend.get_full_link(doomed.id) is None
        assert await backend.get_notes_by_link(doomed.id) == []
        assert await backend.get_labels_by_link(doomed.id) == []
        assert [lnk.id for lnk in await backend.get_links_by_label(label.id)] == [survivor.id]
        assert [n.id for n in await backend.get_notes_by_link(survivor.id)] == [kept.id]

    @pytest.mark.asyncio
    async def test_delete_missing_link_returns_false(self, backend):
        assert await backend.delete_link("does-not-exist") is False


# ══════════════════════════════════════════════════════════════════════════
# Users & Sessions
# ══════════════════════════════════════════════════════════════════════════

class TestUsersAndSessions:

    @pytest.mark.asyncio
    async def test_current_user_is_demo_user(self, backend):
        user = await backend.get_current_user()

        assert user.id == DEFAULT_USER_ID
        assert user.email == DEFAULT_USER_EMAIL
        assert await backend.get_user_by_id(DEFAULT_USER_ID) == user

    @pytest.mark.asyncio
    async def test_find_or_create_user_is_idempotent(self, backend):
        """The first email sticks; later logins do not overwrite it."""
        created = await backend.find_or_create_user("github-7", "first@example.com")
        again = await backend.find_or_create_user("github-7", "second@example.com")

        assert again.id == created.id
        assert again.email == "first@example.com"

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, backend):
        await backend.find_or_create_user("github-7", "octo@example.com")
        session = AuthSession(id="a" * 64, user_id="github-7", expires_at=utcnow() + timedelta(days=1))

        await backend.create_session(session)
        stored = await backend.get_session(session.id)

        assert stored == session
        assert await backend.delete_session(session.id) is True
        assert await backend.get_session(session.id) is None
        assert await backend.delete_session(session.id) is False

    @pytest.mark.asyncio
    async def test_ping(self, backend):
        assert await backend.ping() is True


# ══════════════════════════════════════════════════════════════════════════
# Referential rules
# ══════════════════════════════════════════════════════════════════════════

class TestReferentialRules:
    """Both backends reject the same dangling references."""

    @pytest.mark.asyncio
    async def test_create_link_for_unknown_owner_raises(self, backend):
        with pytest.raises(ValidationError) as exc_info:
            await backend.create_link({"url": "https://example.com", "title": "Orphan"}, user_id="nobody")

        assert exc_info.value.field == "userId"
        assert await backend.get_links() == []

    @pytest.mark.asyncio
    async def test_create_label_for_unknown_owner_raises(self, backend):
        with pytest.raises(ValidationError) as exc_info:
            await backend.create_label("Orphan", "nobody")

        assert exc_info.value.field == "userId"
        assert await backend.get_labels("nobody") == []

    @pytest.mark.asyncio
    async def test_email_belongs_to_one_user(self, backend):
        """A second account cannot claim an email that is already registered."""
        with pytest.raises(ValidationError) as exc_info:
            await backend.find_or_create_user("github-8", DEFAULT_USER_EMAIL)

        assert exc_info.value.field == "email"
        assert await backend.get_user_by_id("github-8") is None


# ══════════════════════════════════════════════════════════════════════════
# Backend-specific behaviour
# ══════════════════════════════════════════════════════════════════════════

class TestSeededMockBackend:
    """The demo collection every fresh development server starts with."""

    @pytest.mark.asyncio
    async def test_seed_contents(self, seeded_backend):
        links = await seeded_backend.get_links()

        assert [link.id for link in links] == ["link-3", "link-2", "link-1"]
        assert len(seeded_backend.notes) == 4
        assert len(seeded_backend.labels) == 4
        assert len(seeded_backend.link_labels) == 6

    @pytest.mark.asyncio
    async def test_seeded_full_link(self, seeded_backend):
        full = await seeded_backend.get_full_link("link-1")

        assert [note.id for note in full.notes] == ["note-1", "note-2"]
        assert [label.name for label in full.labels] == ["Favorites", "Framework", "Svelte"]

    @pytest.mark.asyncio
    async def test_links_by_seeded_label(self, seeded_backend):
        links = await seeded_backend.get_links_by_label("label-1")

        assert [link.id for link in links] == ["link-2", "link-1"]

    @pytest.mark.asyncio
    async def test_mock_ids_are_prefixed(self, mock_backend):
        await mock_backend.get_current_user()
        link = await _link(mock_backend)
        label = await mock_backend.create_label("X", DEFAULT_USER_ID)
        note = await mock_backend.create_note({"link_id": link.id, "content": "n"})

        assert link.id.startswith("link-")
        assert label.id.startswith("label-")
        assert note.id.startswith("note-")


class TestSqlBackendErrors:

    @pytest.mark.asyncio
    async def test_driver_failure_becomes_database_error(self, sql_backend):
        """Unexpected SQL errors are wrapped, with the cause chained."""
        async with sql_backend.engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE note")

        link = await _link(sql_backend)
        with pytest.raises(DatabaseError) as exc_info:
            await sql_backend.create_note({"link_id": link.id, "content": "lost"})

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert exc_info.value.context["operation"] == "create_note"

    @pytest.mark.asyncio
    async def test_sql_ids_are_uuids(self, sql_backend):
        link = await _link(sql_backend)

        assert len(link.id) == 36
        assert link.id.count("-") == 4

    @pytest.mark.asyncio
    async def test_close_disposes_engine(self, sql_backend):
        with patch("linkshelf.backends.sql_backend.dispose_engine", AsyncMock()) as dispose:
            await sql_backend.close()

        dispose.assert_awaited_once_with(sql_backend.engine)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation, failing_statement", [("delete_link", 3), ("delete_label", 2)])
    async def test_failed_cascade_leaves_everything_in_place(
        self, sql_backend, operation, failing_statement
    ):
        """When the last DELETE fails, the earlier ones are rolled back too."""
        link = await _link(sql_backend)
        label = await sql_backend.create_label("Reading", DEFAULT_USER_ID)
        note = await sql_backend.create_note({"link_id": link.id, "content": "keep"})
        await sql_backend.add_label_to_link(link.id, label.id)
        target = link.id if operation == "delete_link" else label.id

        original_execute = AsyncSession.execute
        executed = 0

        async def failing_execute(session, statement, *args, **kwargs):
            nonlocal executed
            executed += 1
            if executed == failing_statement:
                raise OperationalError("DELETE", {}, Exception("disk I/O error"))
            return await original_execute(session, statement, *args, **kwargs)

        with patch.object(AsyncSession, "execute", failing_execute):
            with pytest.raises(DatabaseError) as exc_info:
                await getattr(sql_backend, operation)(target)

        assert exc_info.value.context["operation"] == operation
        assert await sql_backend.get_link_by_id(link.id) == link
        assert [n.id for n in await sql_backend.get_notes_by_link(link.id)] == [note.id]
        assert [lbl.id for lbl in await sql_backend.get_labels_by_link(link.id)] == [label.id]
        assert [lbl.id for lbl in await sql_backend.get_labels(DEFAULT_USER_ID)] == [label.id]
