"""
LinkShelf Client — HTTP API Wrapper
=====================================

What:  One coroutine per REST route, returning the same Pydantic domain
       models the server uses.
How:   Wraps an httpx.AsyncClient. Every non-2xx response raises ApiError
       carrying the status code, reason phrase and parsed error body;
       callers never have to inspect responses themselves.
Who:   Used by the stores in `linkshelf.client.stores`, scripts, and the
       test suite (through httpx.ASGITransport, without a running server).

Example:
    async with LinkShelfClient("http://localhost:8000") as api:
        link = await api.create_link({"url": "https://a.test", "title": "A"})
        await api.add_label_to_link(link.id, label.id)
"""

import logging
from typing import Any, Dict, List, Optional, Type, Union

import httpx
from pydantic import BaseModel, TypeAdapter

from linkshelf.schemas.bookmark import (
    Label,
    LabelCreate,
    LabelUpdate,
    Link,
    LinkCreate,
    LinkFull,
    LinkUpdate,
    Note,
    NoteCreate,
    NoteUpdate,
)
from linkshelf.schemas.common import AuthMeResponse

logger = logging.getLogger(__name__)

Payload = Union[BaseModel, Dict[str, Any]]

_links_adapter = TypeAdapter(List[Link])
_labels_adapter = TypeAdapter(List[Label])


class ApiError(Exception):
    """
    A non-2xx response from the LinkShelf API.

    Attributes:
        status_code:  HTTP status (e.g. 404)
        status_text:  Reason phrase (e.g. "Not Found")
        body:         Parsed JSON error body, or None if it was not JSON
    """

    def __init__(self, status_code: int, status_text: str, body: Any = None):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"API error: {status_code} {status_text} {body!r}")

    @property
    def message(self) -> Optional[str]:
        if isinstance(self.body, dict):
            return self.body.get("error")
        return None


def _to_body(payload: Payload, model: Type[BaseModel], partial: bool = False) -> Dict[str, Any]:
    """
    Serialize a request payload to camelCase JSON.

    Plain dicts are validated through `model` first, so snake_case and
    camelCase keys are both accepted. Partial (PATCH) bodies keep only the
    fields the caller set.
    """
    if not isinstance(payload, BaseModel):
        payload = model.model_validate(payload)
    return payload.model_dump(mode="json", by_alias=True, exclude_unset=partial)


class LinkShelfClient:
    """
    Async client for the LinkShelf REST API.

    Args:
        base_url:   Server root, e.g. "http://localhost:8000"
        transport:  Optional httpx transport (tests pass ASGITransport)
        cookies:    Initial cookies, e.g. {"auth-session": token}
        timeout:    Per-request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cookies: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            cookies=cookies,
            timeout=timeout,
        )

    async def __aenter__(self) -> "LinkShelfClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        response = await self._http.request(method, path, json=json)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            logger.warning("API request failed: %s %s → %d", method, path, response.status_code)
            raise ApiError(response.status_code, response.reason_phrase, body)
        return response.json()

    async def _success(self, method: str, path: str) -> bool:
        data = await self._request(method, path)
        return bool(data.get("success"))

    # ── Links ─────────────────────────────────────────────────────────────

    async def get_links(self) -> List[Link]:
        return _links_adapter.validate_python(await self._request("GET", "/api/links"))

    async def get_link_by_id(self, link_id: str) -> Link:
        return Link.model_validate(await self._request("GET", f"/api/links/{link_id}"))

    async def get_full_link(self, link_id: str) -> LinkFull:
        return LinkFull.model_validate(await self._request("GET", f"/api/links/{link_id}/full"))

    async def create_link(self, data: Payload) -> Link:
        body = _to_body(data, LinkCreate)
        return Link.model_validate(await self._request("POST", "/api/links", json=body))

    async def update_link(self, link_id: str, data: Payload) -> Link:
        body = _to_body(data, LinkUpdate, partial=True)
        return Link.model_validate(
            await self._request("PATCH", f"/api/links/{link_id}", json=body)
        )

    async def delete_link(self, link_id: str) -> bool:
        return await self._success("DELETE", f"/api/links/{link_id}")

    # ── Notes ─────────────────────────────────────────────────────────────

    async def create_note(self, data: Payload) -> Note:
        body = _to_body(data, NoteCreate)
        return Note.model_validate(await self._request("POST", "/api/notes", json=body))

    async def update_note(self, note_id: str, data: Payload) -> Note:
        body = _to_body(data, NoteUpdate, partial=True)
        return Note.model_validate(
            await self._request("PATCH", f"/api/notes/{note_id}", json=body)
        )

    async def delete_note(self, note_id: str) -> bool:
        return await self._success("DELETE", f"/api/notes/{note_id}")

    # ── Labels ────────────────────────────────────────────────────────────

    async def get_labels(self) -> List[Label]:
        return _labels_adapter.validate_python(await self._request("GET", "/api/labels"))

    async def create_label(self, name: str) -> Label:
        body = _to_body({"name": name}, LabelCreate)
        return Label.model_validate(await self._request("POST", "/api/labels", json=body))

    async def update_label(self, label_id: str, name: str) -> Label:
        body = _to_body({"name": name}, LabelUpdate)
        return Label.model_validate(
            await self._request("PATCH", f"/api/labels/{label_id}", json=body)
        )

    async def delete_label(self, label_id: str) -> bool:
        return await self._success("DELETE", f"/api/labels/{label_id}")

    # ── Link ↔ Label ──────────────────────────────────────────────────────

    async def add_label_to_link(self, link_id: str, label_id: str) -> bool:
        return await self._success("PUT", f"/api/links/{link_id}/labels/{label_id}")

    async def remove_label_from_link(self, link_id: str, label_id: str) -> bool:
        return await self._success("DELETE", f"/api/links/{link_id}/labels/{label_id}")

    async def get_links_by_label(self, label_id: str) -> List[Link]:
        return _links_adapter.validate_python(
            await self._request("GET", f"/api/labels/{label_id}/links")
        )

    # ── Auth ──────────────────────────────────────────────────────────────

    async def get_me(self) -> AuthMeResponse:
        return AuthMeResponse.model_validate(await self._request("GET", "/api/auth/me"))
