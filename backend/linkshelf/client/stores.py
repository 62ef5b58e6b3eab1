"""
LinkShelf Client — Reactive Stores
====================================

What:  Observer-pattern state containers for UIs and scripts built on the
       client library: the link list, the link being viewed, the label
       list, the label selection, the label-filtered link list and the
       auth status.
How:   `Store[T]` holds a value and a set of subscriber callbacks. Every
       replacement (`set` / `update`) calls each subscriber synchronously
       with the new value; subscribing calls the new subscriber once
       immediately with the current value.

       Mutating store methods always call the API first and patch local
       state second (append on create, replace on update, filter on
       delete), so subscribers only ever see server-confirmed data.

Derived state:
    FilteredLinksStore listens to LinksStore and the selected label ids.
    With no selection it mirrors the links synchronously; otherwise it
    schedules a recomputation on the running event loop that unions
    `get_links_by_label` for every selected id, de-duplicated by id in
    first-seen order. A newer recomputation supersedes an older one that
    is still in flight.
"""

import asyncio
import logging
from typing import Callable, Generic, List, Optional, TypeVar

import httpx
from pydantic import BaseModel

from linkshelf.client.api import ApiError, LinkShelfClient, Payload
from linkshelf.schemas.bookmark import Label, Link, LinkFull, Note
from linkshelf.schemas.common import AuthUser

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Store(Generic[T]):
    """
    A value plus the callbacks interested in it.

    Example:
        selected = Store([])
        unsubscribe = selected.subscribe(print)   # prints []
        selected.set(["label-1"])                 # prints ['label-1']
        unsubscribe()
    """

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: List[Subscriber] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        self._subscribers.append(callback)
        callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set(self, value: T) -> None:
        self._value = value
        # Copy: a callback may unsubscribe itself while being notified
        for callback in list(self._subscribers):
            callback(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))


def union_links(groups: List[List[Link]]) -> List[Link]:
    """Concatenate link lists, keeping the first occurrence of each id."""
    seen = set()
    merged: List[Link] = []
    for group in groups:
        for link in group:
            if link.id not in seen:
                seen.add(link.id)
                merged.append(link)
    return merged


# ══════════════════════════════════════════════════════════════════════════
# Collection Stores
# ══════════════════════════════════════════════════════════════════════════


class LinksStore(Store[List[Link]]):
    """All links, as last fetched plus confirmed local changes."""

    def __init__(self, api: LinkShelfClient):
        super().__init__([])
        self.api = api

    async def refresh(self) -> List[Link]:
        links = await self.api.get_links()
        self.set(links)
        return links

    async def add(self, data: Payload) -> Link:
        link = await self.api.create_link(data)
        self.update(lambda links: [*links, link])
        return link

    async def update_link(self, link_id: str, data: Payload) -> Link:
        updated = await self.api.update_link(link_id, data)
        self.update(lambda links: [updated if link.id == link_id else link for link in links])
        return updated

    async def remove(self, link_id: str) -> bool:
        success = await self.api.delete_link(link_id)
        if success:
            self.update(lambda links: [link for link in links if link.id != link_id])
        return success


class LabelsStore(Store[List[Label]]):
    """The current user's labels."""

    def __init__(self, api: LinkShelfClient):
        super().__init__([])
        self.api = api

    async def refresh(self) -> List[Label]:
        labels = await self.api.get_labels()
        self.set(labels)
        return labels

    async def add(self, name: str) -> Label:
        label = await self.api.create_label(name)
        self.update(lambda labels: [*labels, label])
        return label

    async def update_label(self, label_id: str, name: str) -> Label:
        updated = await self.api.update_label(label_id, name)
        self.update(lambda labels: [updated if label.id == label_id else label for label in labels])
        return updated

    async def remove(self, label_id: str) -> bool:
        success = await self.api.delete_label(label_id)
        if success:
            self.update(lambda labels: [label for label in labels if label.id != label_id])
        return success


class ActiveLinkStore(Store[Optional[LinkFull]]):
    """
    The link currently open in a detail view, with notes and labels.

    Note and label operations act on the loaded link; with nothing loaded
    they return None / False without calling the API.
    """

    def __init__(self, api: LinkShelfClient):
        super().__init__(None)
        self.api = api

    def _patch(self, **changes) -> None:
        self.update(lambda link: link.model_copy(update=changes) if link else None)

    async def load(self, link_id: str) -> LinkFull:
        link = await self.api.get_full_link(link_id)
        self.set(link)
        return link

    def clear(self) -> None:
        self.set(None)

    async def add_note(self, content: str, is_published: bool = False) -> Optional[Note]:
        link = self.value
        if link is None:
            return None
        note = await self.api.create_note(
            {"link_id": link.id, "content": content, "is_published": is_published}
        )
        current = self.value
        if current is not None and current.id == link.id:
            self._patch(notes=[*current.notes, note])
        return note

    async def update_note(self, note_id: str, content: str) -> Optional[Note]:
        if self.value is None:
            return None
        updated = await self.api.update_note(note_id, {"content": content})
        current = self.value
        if current is not None:
            self._patch(notes=[updated if note.id == note_id else note for note in current.notes])
        return updated

    async def delete_note(self, note_id: str) -> bool:
        if self.value is None:
            return False
        success = await self.api.delete_note(note_id)
        current = self.value
        if success and current is not None:
            self._patch(notes=[note for note in current.notes if note.id != note_id])
        return success

    async def add_label(self, label_id: str) -> bool:
        link = self.value
        if link is None:
            return False
        success = await self.api.add_label_to_link(link.id, label_id)
        if success:
            # Label details live server-side; re-fetch rather than guess
            self.set(await self.api.get_full_link(link.id))
        return success

    async def remove_label(self, label_id: str) -> bool:
        link = self.value
        if link is None:
            return False
        success = await self.api.remove_label_from_link(link.id, label_id)
        current = self.value
        if success and current is not None:
            self._patch(labels=[label for label in current.labels if label.id != label_id])
        return success


# ══════════════════════════════════════════════════════════════════════════
# Derived Store
# ══════════════════════════════════════════════════════════════════════════


class FilteredLinksStore(Store[List[Link]]):
    """
    Links carrying any of the selected labels; all links when none selected.

    Subscribes to both inputs on construction. Changes to either input
    trigger a recomputation; `refresh()` runs one and waits for it.
    """

    def __init__(self, api: LinkShelfClient, links: LinksStore, selected: Store[List[str]]):
        super().__init__([])
        self.api = api
        self._links = links
        self._selected = selected
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

        links.subscribe(lambda _: self._schedule())
        selected.subscribe(lambda _: self._schedule())

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _schedule(self) -> None:
        self._generation += 1
        self._cancel_pending()
        label_ids = list(self._selected.value)

        if not label_ids:
            self.set(list(self._links.value))
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet (store built outside async code); refresh() catches up
            return
        self._pending = loop.create_task(self._recompute(self._generation, label_ids))

    async def _recompute(self, generation: int, label_ids: List[str]) -> None:
        try:
            groups = await asyncio.gather(
                *(self.api.get_links_by_label(label_id) for label_id in label_ids)
            )
            result = union_links(list(groups))
        except (ApiError, httpx.HTTPError) as e:
            logger.error("Error filtering links by labels: %s", e)
            result = list(self._links.value)

        if generation == self._generation:
            self.set(result)

    async def refresh(self) -> List[Link]:
        """Recompute now and return the result."""
        self._generation += 1
        self._cancel_pending()
        label_ids = list(self._selected.value)
        if label_ids:
            await self._recompute(self._generation, label_ids)
        else:
            self.set(list(self._links.value))
        return self.value


# ══════════════════════════════════════════════════════════════════════════
# Auth Store
# ══════════════════════════════════════════════════════════════════════════


class AuthState(BaseModel):
    is_authenticated: bool = False
    is_loading: bool = False
    user: Optional[AuthUser] = None


class AuthStore(Store[AuthState]):
    """Login status as reported by GET /api/auth/me."""

    def __init__(self, api: LinkShelfClient):
        super().__init__(AuthState())
        self.api = api

    async def refresh(self) -> AuthState:
        self.set(self.value.model_copy(update={"is_loading": True}))
        try:
            me = await self.api.get_me()
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Could not load auth status: %s", e)
            state = AuthState()
        else:
            state = AuthState(is_authenticated=me.authenticated, user=me.user)
        self.set(state)
        return state


class Stores:
    """
    Every store wired to one client.

    Example:
        async with LinkShelfClient(url) as api:
            stores = Stores(api)
            await stores.links.refresh()
            stores.selected_label_ids.set(["label-1"])
            await stores.filtered_links.refresh()
    """

    def __init__(self, api: LinkShelfClient):
        self.api = api
        self.links = LinksStore(api)
        self.active_link = ActiveLinkStore(api)
        self.labels = LabelsStore(api)
        self.selected_label_ids: Store[List[str]] = Store([])
        self.filtered_links = FilteredLinksStore(api, self.links, self.selected_label_ids)
        self.auth = AuthStore(api)
