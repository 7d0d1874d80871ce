"""
IdeaNote Backend: Notes Route Handlers
========================================

What:  CRUD endpoints over stored notes, checklist toggling, image attach,
       and serving stored image bytes.
How:   Extracts path/query/body data, delegates to NoteService, returns JSON.
Who:   The note list view, and any client that already holds encoded content.

Routes:
    GET    /api/notes                         list (filters: category, progress)
    GET    /api/notes/{id}                    detail
    POST   /api/notes                         create (encoded content)
    PUT    /api/notes/{id}                    update (encoded content)
    DELETE /api/notes/{id}                    delete
    POST   /api/notes/{id}/checklist/toggle   flip one checklist entry
    POST   /api/notes/{id}/images             upload + attach an image
    GET    /api/files/{path}                  stored image bytes
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Header, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ideanote.config import settings
from ideanote.database import get_db_session
from ideanote.exceptions import ActionUnavailableError, NotFoundError
from ideanote.schemas.note import (
    Category,
    ChecklistToggleRequest,
    ErrorResponse,
    ImageRef,
    NoteIdResponse,
    NoteListResponse,
    NoteResponse,
    NoteWriteRequest,
    Progress,
)
from ideanote.services.file_service import file_service
from ideanote.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])


def get_owner(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity: the X-Owner-Id header, else DEFAULT_OWNER (may be empty)."""
    return (x_owner_id or settings.default_owner).strip()


def require_owner(owner: str = Depends(get_owner)) -> str:
    """Writes need an identity; without one the action is unavailable."""
    if not owner:
        raise ActionUnavailableError()
    return owner


@router.get(
    "/notes",
    response_model=NoteListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List notes",
    description="Returns note summaries newest first, optionally filtered by category and progress.",
)
async def list_notes(
    response: Response,
    category: Optional[Category] = Query(default=None, description="Only notes in this category"),
    progress: Optional[Progress] = Query(default=None, description="Only notes with this progress"),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes(db=db, category=category, progress=progress)
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.get_note(db=db, note_id=note_id)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteIdResponse,
    responses={409: {"description": "No owner identity", "model": ErrorResponse}},
    summary="Create a note from encoded content",
)
async def create_note(
    body: NoteWriteRequest,
    owner: str = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteIdResponse:
    note_id = await note_service.create_note(
        db,
        owner=owner,
        title=body.title,
        content=body.content,
        images=body.images,
        progress=body.progress,
        category=body.category,
        target=body.target,
        due_date=body.due_date,
    )
    return NoteIdResponse(id=note_id)


@router.put(
    "/notes/{note_id}",
    response_model=NoteIdResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Replace a note's content and metadata",
)
async def update_note(
    note_id: UUID,
    body: NoteWriteRequest,
    owner: str = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteIdResponse:
    await note_service.update_note(
        db,
        note_id,
        title=body.title,
        content=body.content,
        images=body.images,
        progress=body.progress,
        category=body.category,
        target=body.target,
        due_date=body.due_date,
    )
    return NoteIdResponse(id=note_id)


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    owner: str = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db, note_id)
    return Response(status_code=204)


@router.post(
    "/notes/{note_id}/checklist/toggle",
    status_code=204,
    responses={404: {"description": "Note or item not found", "model": ErrorResponse}},
    summary="Flip a checklist entry",
    description="Toggles the first checklist entry whose text matches, directly on the stored note.",
)
async def toggle_checklist_item(
    note_id: UUID,
    body: ChecklistToggleRequest,
    owner: str = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.toggle_checklist_item(db, note_id, body.item_text)
    return Response(status_code=204)


@router.post(
    "/notes/{note_id}/images",
    status_code=201,
    response_model=ImageRef,
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Attach an image to a note",
)
async def add_image(
    note_id: UUID,
    file: UploadFile = File(..., description="Image file"),
    owner: str = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ImageRef:
    content = await file.read()
    logger.info(
        "Received image for note %s: filename=%s, size=%d bytes",
        note_id, file.filename or "unknown", len(content),
    )
    try:
        return await note_service.add_image_to_note(
            db,
            note_id,
            filename=file.filename or "upload.png",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()


@router.get(
    "/files/{file_path:path}",
    summary="Serve stored image files",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    """
    Serve a stored image by storage key.

    The key is resolved inside STORAGE_ROOT; keys that escape it are
    rejected with 400.
    """
    full_path = file_service.resolve(file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    return FileResponse(
        path=str(full_path),
        media_type=file_service.media_type(file_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
