"""
LinkShelf Backend — Label Route Handlers
==========================================

Routes:
    GET    /api/labels              → current user's labels, by name
    POST   /api/labels              → create for the current user
    PATCH  /api/labels/{id}         → rename
    DELETE /api/labels/{id}         → delete and detach from every link
    GET    /api/labels/{id}/links   → links carrying the label, newest first
"""

from typing import List

from fastapi import APIRouter, Depends

from linkshelf.backends.base import BookmarkBackend
from linkshelf.dependencies import get_backend, get_current_user
from linkshelf.exceptions import MutationFailedError, NotFoundError
from linkshelf.schemas.bookmark import Label, LabelCreate, LabelUpdate, Link, User
from linkshelf.schemas.common import ErrorResponse, SuccessResponse

router = APIRouter(prefix="/api", tags=["Labels"])


@router.get("/labels", response_model=List[Label])
async def list_labels(
    backend: BookmarkBackend = Depends(get_backend),
    user: User = Depends(get_current_user),
) -> List[Label]:
    return await backend.get_labels(user.id)


@router.post("/labels", response_model=Label)
async def create_label(
    payload: LabelCreate,
    backend: BookmarkBackend = Depends(get_backend),
    user: User = Depends(get_current_user),
) -> Label:
    return await backend.create_label(payload.name, user.id)


@router.patch(
    "/labels/{label_id}",
    response_model=Label,
    responses={404: {"description": "Label not found", "model": ErrorResponse}},
)
async def update_label(
    label_id: str,
    payload: LabelUpdate,
    backend: BookmarkBackend = Depends(get_backend),
) -> Label:
    label = await backend.update_label(label_id, payload.name)
    if label is None:
        raise NotFoundError(resource="Label", resource_id=label_id)
    return label


@router.delete(
    "/labels/{label_id}",
    response_model=SuccessResponse,
    responses={400: {"description": "Delete failed", "model": ErrorResponse}},
)
async def delete_label(
    label_id: str, backend: BookmarkBackend = Depends(get_backend)
) -> SuccessResponse:
    if not await backend.delete_label(label_id):
        raise MutationFailedError("Failed to delete label", context={"label_id": label_id})
    return SuccessResponse()


@router.get("/labels/{label_id}/links", response_model=List[Link])
async def list_links_by_label(
    label_id: str, backend: BookmarkBackend = Depends(get_backend)
) -> List[Link]:
    return await backend.get_links_by_label(label_id)
