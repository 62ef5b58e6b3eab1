"""
Demo collection loaded into MockBackend.

Three links owned by the demo user, four notes, four labels and six
link-label associations. `seed()` builds fresh model instances on every
call so each backend gets its own copy.
"""

from datetime import datetime, timezone
from typing import Dict, List

from linkshelf.backends.base import DEFAULT_USER_EMAIL, DEFAULT_USER_ID
from linkshelf.schemas.bookmark import Label, Link, LinkLabel, Note, User


def _at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def seed() -> Dict[str, List]:
    """Return the demo dataset keyed by collection name."""
    users = [
        User(id=DEFAULT_USER_ID, email=DEFAULT_USER_EMAIL, created_at=_at(2025, 1, 1)),
    ]

    links = [
        Link(
            id="link-1",
            user_id=DEFAULT_USER_ID,
            url="https://svelte.dev",
            title="Svelte - Cybernetically enhanced web apps",
            description="Svelte is a radical new approach to building user interfaces",
            is_permanent=True,
            is_public=True,
            created_at=_at(2025, 2, 1),
            updated_at=_at(2025, 2, 1),
        ),
        Link(
            id="link-2",
            user_id=DEFAULT_USER_ID,
            url="https://kit.svelte.dev",
            title="SvelteKit",
            description="The fastest way to build Svelte apps",
            is_permanent=True,
            is_public=True,
            created_at=_at(2025, 2, 2),
            updated_at=_at(2025, 2, 2),
        ),
        Link(
            id="link-3",
            user_id=DEFAULT_USER_ID,
            url="https://tailwindcss.com",
            title="Tailwind CSS",
            description="A utility-first CSS framework",
            is_permanent=False,
            is_public=False,
            created_at=_at(2025, 2, 3),
            updated_at=_at(2025, 2, 3),
        ),
    ]

    notes = [
        Note(
            id="note-1",
            link_id="link-1",
            content="Svelte is really easy to use compared to other frameworks",
            is_published=True,
            created_at=_at(2025, 2, 1, 10, 0),
            updated_at=_at(2025, 2, 1, 10, 0),
        ),
        Note(
            id="note-2",
            link_id="link-1",
            content="The reactivity system in Svelte is amazing, very intuitive",
            is_published=False,
            created_at=_at(2025, 2, 1, 11, 30),
            updated_at=_at(2025, 2, 1, 11, 30),
        ),
        Note(
            id="note-3",
            link_id="link-2",
            content="SvelteKit makes building full-stack applications much simpler",
            is_published=True,
            created_at=_at(2025, 2, 2, 9, 15),
            updated_at=_at(2025, 2, 2, 9, 15),
        ),
        Note(
            id="note-4",
            link_id="link-3",
            content="Tailwind makes styling so much faster once you learn the utility classes",
            is_published=False,
            created_at=_at(2025, 2, 3, 14, 20),
            updated_at=_at(2025, 2, 3, 14, 20),
        ),
    ]

    labels = [
        Label(id="label-1", user_id=DEFAULT_USER_ID, name="Svelte", created_at=_at(2025, 1, 15)),
        Label(id="label-2", user_id=DEFAULT_USER_ID, name="Framework", created_at=_at(2025, 1, 15)),
        Label(id="label-3", user_id=DEFAULT_USER_ID, name="CSS", created_at=_at(2025, 1, 16)),
        Label(id="label-4", user_id=DEFAULT_USER_ID, name="Favorites", created_at=_at(2025, 1, 17)),
    ]

    link_labels = [
        LinkLabel(link_id="link-1", label_id="label-1"),
        LinkLabel(link_id="link-1", label_id="label-2"),
        LinkLabel(link_id="link-1", label_id="label-4"),
        LinkLabel(link_id="link-2", label_id="label-1"),
        LinkLabel(link_id="link-2", label_id="label-2"),
        LinkLabel(link_id="link-3", label_id="label-3"),
    ]

    return {
        "users": users,
        "links": links,
        "notes": notes,
        "labels": labels,
        "link_labels": link_labels,
    }
