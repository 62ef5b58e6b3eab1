"""
LinkShelf Backend — Note Route Handlers
=========================================

Routes:
    POST   /api/notes        → create a note on an existing link (400 if the link is missing)
    PATCH  /api/notes/{id}   → partial update (404 if absent)
    DELETE /api/notes/{id}   → delete (400 if absent)

Notes are read through GET /api/links/{id}/full; there is no note listing.
"""

from fastapi import APIRouter, Depends

from linkshelf.backends.base import BookmarkBackend
from linkshelf.dependencies import get_backend
from linkshelf.exceptions import MutationFailedError, NotFoundError
from linkshelf.schemas.bookmark import Note, NoteCreate, NoteUpdate, changed_fields
from linkshelf.schemas.common import ErrorResponse, SuccessResponse

router = APIRouter(prefix="/api", tags=["Notes"])


@router.post(
    "/notes",
    response_model=Note,
    responses={400: {"description": "Unknown link", "model": ErrorResponse}},
)
async def create_note(
    payload: NoteCreate, backend: BookmarkBackend = Depends(get_backend)
) -> Note:
    return await backend.create_note(payload.model_dump())


@router.patch(
    "/notes/{note_id}",
    response_model=Note,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    backend: BookmarkBackend = Depends(get_backend),
) -> Note:
    note = await backend.update_note(note_id, changed_fields(payload))
    if note is None:
        raise NotFoundError(resource="Note", resource_id=note_id)
    return note


@router.delete(
    "/notes/{note_id}",
    response_model=SuccessResponse,
    responses={400: {"description": "Delete failed", "model": ErrorResponse}},
)
async def delete_note(
    note_id: str, backend: BookmarkBackend = Depends(get_backend)
) -> SuccessResponse:
    if not await backend.delete_note(note_id):
        raise MutationFailedError("Failed to delete note", context={"note_id": note_id})
    return SuccessResponse()
