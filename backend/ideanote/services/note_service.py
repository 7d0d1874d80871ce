"""
IdeaNote Backend: Note Service (Persistence Operations)
=========================================================

What:  CRUD and in-place operations on stored notes.
How:   Async SQLAlchemy queries; converts ORM rows to the Pydantic note shape.
Who:   DatabaseNoteStore (editor saves), route handlers.
When:  For every note read, write, delete, checklist toggle and image attach.

Operation Map:
    fetch_notes           → full notes, newest first, optional category/progress filter
    list_notes            → list-view summaries built from fetch_notes
    get_note              → one note by id
    create_note           → insert, returns the new id
    update_note           → replace title/content/images/metadata
    delete_note           → remove
    toggle_checklist_item → flip one checklist entry in stored content
    add_image_to_note     → validate + store an upload, append its ImageRef

NoteService never runs the content transcoder on writes: it receives
already-encoded content. toggle_checklist_item works on the stored JSON
directly and does not go through an editing buffer.

Error Handling Strategy:
    NotFoundError and other application errors propagate unchanged.
    Anything else raised while talking to the database is logged and
    wrapped in DatabaseError (generic message, details in context).
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ideanote.config import settings
from ideanote.exceptions import DatabaseError, IdeaNoteError, NotFoundError
from ideanote.models.note import Note
from ideanote.schemas.note import (
    Category,
    ContentUnit,
    ImageRef,
    NoteListItem,
    NoteListResponse,
    NoteResponse,
    Progress,
)
from ideanote.services import scalar_codec
from ideanote.services.file_service import file_service
from ideanote.services.transcoder import build_preview

logger = logging.getLogger(__name__)


def _to_response(note: Note) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        title=note.title,
        owner=note.owner,
        content=[ContentUnit.model_validate(unit) for unit in note.content or []],
        images=[ImageRef(path=path) for path in note.images or []],
        progress=Progress(note.progress),
        category=Category(note.category),
        target=int(note.target) if note.target is not None else None,
        due_date=note.due_date,
        timestamp=scalar_codec.datetime_to_nanos(note.created_at),
    )


def _to_list_item(note: NoteResponse, now: datetime) -> NoteListItem:
    tz = scalar_codec.resolve_timezone(settings.display_timezone)
    due = None
    if note.due_date is not None:
        due = scalar_codec.decode_due_date_for_display(note.due_date, now, tz)
    return NoteListItem(
        id=note.id,
        title=note.title,
        text_preview=build_preview(note.content, settings.preview_length),
        progress=note.progress,
        progress_label=note.progress.label,
        category=note.category,
        category_label=note.category.label,
        target=note.target,
        due_date=due,
        image_count=len(note.images),
        timestamp=note.timestamp,
        created_display=scalar_codec.format_timestamp(note.timestamp, tz),
    )


def _dump_content(content: List[ContentUnit]) -> List[dict]:
    return [unit.model_dump(mode="json") for unit in content]


class NoteService:
    """
    Stateless persistence layer for notes.

    Every method receives the request's AsyncSession. Writes only flush;
    the commit happens once in get_db_session, so a request either stores
    everything it wrote or nothing.
    """

    async def _load(self, db: AsyncSession, note_id: UUID) -> Note:
        result = await db.execute(select(Note).where(Note.id == note_id))
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def fetch_notes(
        self,
        db: AsyncSession,
        category: Optional[Category] = None,
        progress: Optional[Progress] = None,
    ) -> List[NoteResponse]:
        """Full notes, newest first, optionally filtered by category and/or progress."""
        try:
            query = select(Note)
            if category is not None:
                query = query.where(Note.category == category.value)
            if progress is not None:
                query = query.where(Note.progress == progress.value)
            query = query.order_by(desc(Note.created_at))

            result = await db.execute(query)
            return [_to_response(row) for row in result.scalars().all()]
        except Exception as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def list_notes(
        self,
        db: AsyncSession,
        category: Optional[Category] = None,
        progress: Optional[Progress] = None,
        now: Optional[datetime] = None,
    ) -> NoteListResponse:
        """
        List note summaries for list views.

        Args:
            category: Only notes in this category
            progress: Only notes with this progress
            now: Reference time for the overdue flag (defaults to the current time)
        """
        notes = await self.fetch_notes(db, category=category, progress=progress)
        now = now or datetime.now(timezone.utc)
        items = [_to_list_item(note, now) for note in notes]
        return NoteListResponse(notes=items, total_count=len(items))

    async def get_note(self, db: AsyncSession, note_id: UUID) -> NoteResponse:
        """
        Retrieve a single note by ID.

        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            return _to_response(await self._load(db, note_id))
        except IdeaNoteError:
            raise
        except Exception as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            )

    async def create_note(
        self,
        db: AsyncSession,
        owner: str,
        title: str,
        content: List[ContentUnit],
        images: List[ImageRef],
        progress: Progress,
        category: Category,
        target: Optional[int] = None,
        due_date: Optional[int] = None,
    ) -> UUID:
        """Insert a note and return its id."""
        try:
            note = Note(
                owner=owner,
                title=title,
                content=_dump_content(content),
                images=[image.path for image in images],
                progress=progress.value,
                category=category.value,
                target=str(target) if target is not None else None,
                due_date=due_date,
            )
            db.add(note)
            await db.flush()
            logger.info(
                "Note created: %s (%d units, %d images)", note.id, len(content), len(images)
            )
            return note.id
        except Exception as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update_note(
        self,
        db: AsyncSession,
        note_id: UUID,
        title: str,
        content: List[ContentUnit],
        images: List[ImageRef],
        progress: Progress,
        category: Category,
        target: Optional[int] = None,
        due_date: Optional[int] = None,
    ) -> None:
        """Replace a note's title, content, images and metadata."""
        try:
            note = await self._load(db, note_id)
            note.title = title
            note.content = _dump_content(content)
            note.images = [image.path for image in images]
            note.progress = progress.value
            note.category = category.value
            note.target = str(target) if target is not None else None
            note.due_date = due_date
            await db.flush()
            logger.info("Note updated: %s", note_id)
        except IdeaNoteError:
            raise
        except Exception as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"note_id": str(note_id)},
            )

    async def delete_note(self, db: AsyncSession, note_id: UUID) -> None:
        try:
            note = await self._load(db, note_id)
            await db.delete(note)
            await db.flush()
            logger.info("Note deleted: %s", note_id)
        except IdeaNoteError:
            raise
        except Exception as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )

    async def toggle_checklist_item(
        self, db: AsyncSession, note_id: UUID, item_text: str
    ) -> bool:
        """
        Flip the first checklist entry whose text equals `item_text`.

        Returns:
            The entry's new checked state.

        Raises:
            NotFoundError: unknown note, or no checklist entry with that text
        """
        try:
            note = await self._load(db, note_id)
            content = [ContentUnit.model_validate(unit) for unit in note.content or []]

            for unit in content:
                for entry in unit.checklist_items or []:
                    if entry.text == item_text:
                        entry.checked = not entry.checked
                        # Reassign so SQLAlchemy sees the JSON column change
                        note.content = _dump_content(content)
                        await db.flush()
                        logger.info(
                            "Checklist item toggled on note %s: %r → %s",
                            note_id, item_text, entry.checked,
                        )
                        return entry.checked

            raise NotFoundError(
                resource="checklist item",
                context={"note_id": str(note_id), "item_text": item_text},
            )
        except IdeaNoteError:
            raise
        except Exception as e:
            logger.error("Database error toggling checklist on %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not update the checklist. Please try again.",
                context={"note_id": str(note_id)},
            )

    async def add_image_to_note(
        self,
        db: AsyncSession,
        note_id: UUID,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> ImageRef:
        """
        Store an uploaded image and append its reference to the note.

        The note is checked first so nothing is written to disk for an
        unknown id. If the database update fails, the stored file is removed.
        """
        note = await self._load(db, note_id)
        absolute_path, storage_key = await file_service.validate_and_store(
            filename=filename,
            content=content,
            content_length=content_length,
        )
        try:
            note.images = [*(note.images or []), storage_key]
            await db.flush()
        except Exception as e:
            await file_service.cleanup_file(absolute_path)
            logger.error("Database error attaching image to %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not attach the image. Please try again.",
                context={"note_id": str(note_id)},
            )
        logger.info("Image %s attached to note %s", storage_key, note_id)
        return ImageRef(path=storage_key)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
