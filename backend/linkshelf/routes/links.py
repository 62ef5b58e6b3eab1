"""
LinkShelf Backend — Link Route Handlers
=========================================

What:  CRUD for links, the full-link view and label attachment.
How:   Each handler makes one backend call and maps "absent" results onto
       NotFoundError (404) or MutationFailedError (400). Backend failures
       arrive as DatabaseError and become 500s in the global handlers.

Routes:
    GET    /api/links                          → all links, newest first
    POST   /api/links                          → create, owned by the current user
    GET    /api/links/{id}                     → one link
    PATCH  /api/links/{id}                     → partial update
    DELETE /api/links/{id}                     → delete with notes and associations
    GET    /api/links/{id}/full                → link + notes + labels
    PUT    /api/links/{id}/labels/{label_id}   → attach label (idempotent)
    DELETE /api/links/{id}/labels/{label_id}   → detach label
"""

from typing import List

from fastapi import APIRouter, Depends

from linkshelf.backends.base import BookmarkBackend
from linkshelf.dependencies import get_backend, get_current_user
from linkshelf.exceptions import MutationFailedError, NotFoundError
from linkshelf.schemas.bookmark import Link, LinkCreate, LinkFull, LinkUpdate, User, changed_fields
from linkshelf.schemas.common import ErrorResponse, SuccessResponse

router = APIRouter(prefix="/api", tags=["Links"])

NOT_FOUND = {404: {"description": "Link not found", "model": ErrorResponse}}
FAILED = {400: {"description": "Mutation failed", "model": ErrorResponse}}


@router.get("/links", response_model=List[Link], summary="List all links")
async def list_links(backend: BookmarkBackend = Depends(get_backend)) -> List[Link]:
    return await backend.get_links()


@router.post("/links", response_model=Link, summary="Save a new link")
async def create_link(
    payload: LinkCreate,
    backend: BookmarkBackend = Depends(get_backend),
    user: User = Depends(get_current_user),
) -> Link:
    """
    Create a link owned by the current user.

    Identity, ownership and timestamps are server-assigned; the body only
    carries url, title, description and the two flags.
    """
    return await backend.create_link(payload.model_dump(), user_id=user.id)


@router.get("/links/{link_id}", response_model=Link, responses=NOT_FOUND)
async def get_link(link_id: str, backend: BookmarkBackend = Depends(get_backend)) -> Link:
    link = await backend.get_link_by_id(link_id)
    if link is None:
        raise NotFoundError(resource="Link", resource_id=link_id)
    return link


@router.patch("/links/{link_id}", response_model=Link, responses=NOT_FOUND)
async def update_link(
    link_id: str,
    payload: LinkUpdate,
    backend: BookmarkBackend = Depends(get_backend),
) -> Link:
    link = await backend.update_link(link_id, changed_fields(payload))
    if link is None:
        raise NotFoundError(resource="Link", resource_id=link_id)
    return link


@router.delete("/links/{link_id}", response_model=SuccessResponse, responses=FAILED)
async def delete_link(
    link_id: str, backend: BookmarkBackend = Depends(get_backend)
) -> SuccessResponse:
    if not await backend.delete_link(link_id):
        raise MutationFailedError("Failed to delete link", context={"link_id": link_id})
    return SuccessResponse()


@router.get(
    "/links/{link_id}/full",
    response_model=LinkFull,
    responses=NOT_FOUND,
    summary="Link with its notes and labels",
)
async def get_full_link(
    link_id: str, backend: BookmarkBackend = Depends(get_backend)
) -> LinkFull:
    link = await backend.get_full_link(link_id)
    if link is None:
        raise NotFoundError(resource="Link", resource_id=link_id)
    return link


@router.put(
    "/links/{link_id}/labels/{label_id}",
    response_model=SuccessResponse,
    responses=FAILED,
    summary="Attach a label to a link",
)
async def add_label_to_link(
    link_id: str,
    label_id: str,
    backend: BookmarkBackend = Depends(get_backend),
) -> SuccessResponse:
    if not await backend.add_label_to_link(link_id, label_id):
        raise MutationFailedError(
            "Failed to add label to link",
            context={"link_id": link_id, "label_id": label_id},
        )
    return SuccessResponse()


@router.delete(
    "/links/{link_id}/labels/{label_id}",
    response_model=SuccessResponse,
    responses=FAILED,
    summary="Detach a label from a link",
)
async def remove_label_from_link(
    link_id: str,
    label_id: str,
    backend: BookmarkBackend = Depends(get_backend),
) -> SuccessResponse:
    if not await backend.remove_label_from_link(link_id, label_id):
        raise MutationFailedError(
            "Failed to remove label from link",
            context={"link_id": link_id, "label_id": label_id},
        )
    return SuccessResponse()
