"""
IdeaNote Backend: Editor Route Handlers
=========================================

What:  Block-level editing endpoints. The transcoder runs server-side here.
How:   Each request builds an EditorSession on a DatabaseNoteStore bound to
       the request's DB session and the caller's identity.

Routes:
    GET  /api/editor/new                a fresh buffer (one empty paragraph)
    GET  /api/notes/{id}/editor         stored note decoded into blocks
    POST /api/editor                    save a new note from blocks
    PUT  /api/notes/{id}/editor         save an existing note from blocks

Save semantics:
    A malformed target or due date returns 400 and writes nothing.
    A caller with no identity gets 409 action_unavailable and writes nothing.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ideanote.config import settings
from ideanote.database import get_db_session
from ideanote.exceptions import ActionUnavailableError
from ideanote.routes.notes import get_owner
from ideanote.schemas.blocks import EditorSaveRequest, EditorStateResponse
from ideanote.schemas.note import ErrorResponse, NoteIdResponse
from ideanote.services import scalar_codec
from ideanote.services.editor_session import EditorSession
from ideanote.services.note_store import DatabaseNoteStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Editor"])

_SAVE_RESPONSES = {
    400: {"description": "Malformed target or due date", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
    409: {"description": "Saving unavailable (no identity)", "model": ErrorResponse},
}


def _display_tz():
    return scalar_codec.resolve_timezone(settings.display_timezone)


async def _save(session: EditorSession, body: EditorSaveRequest) -> NoteIdResponse:
    session.apply(
        title=body.title,
        progress=body.progress,
        category=body.category,
        target=body.target,
        due_date=body.due_date,
        blocks=body.blocks,
    )
    note_id: Optional[str] = await session.save()
    if note_id is None:
        raise ActionUnavailableError()
    return NoteIdResponse(id=UUID(note_id))


@router.get(
    "/editor/new",
    response_model=EditorStateResponse,
    summary="Start composing a new note",
)
async def new_editor_state(owner: str = Depends(get_owner)) -> EditorStateResponse:
    return EditorSession.new(store=None, identity=owner, tz=_display_tz()).state()


@router.get(
    "/notes/{note_id}/editor",
    response_model=EditorStateResponse,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Open a note for editing",
    description="Decodes the stored note into an ordered list of editable blocks.",
)
async def open_editor(
    note_id: UUID,
    owner: str = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> EditorStateResponse:
    store = DatabaseNoteStore(db, owner)
    session = await EditorSession.open(store, owner, str(note_id), tz=_display_tz())
    return session.state()


@router.post(
    "/editor",
    status_code=201,
    response_model=NoteIdResponse,
    responses=_SAVE_RESPONSES,
    summary="Create a note from editor blocks",
)
async def create_from_editor(
    body: EditorSaveRequest,
    owner: str = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteIdResponse:
    session = EditorSession.new(DatabaseNoteStore(db, owner), owner, tz=_display_tz())
    return await _save(session, body)


@router.put(
    "/notes/{note_id}/editor",
    response_model=NoteIdResponse,
    responses=_SAVE_RESPONSES,
    summary="Save an existing note from editor blocks",
)
async def save_from_editor(
    note_id: UUID,
    body: EditorSaveRequest,
    owner: str = Depends(get_owner),
    db: AsyncSession = Depends(get_db_session),
) -> NoteIdResponse:
    session = EditorSession(
        DatabaseNoteStore(db, owner), owner, note_id=str(note_id), tz=_display_tz()
    )
    return await _save(session, body)
