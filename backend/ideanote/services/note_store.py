"""
IdeaNote Backend: Note Store Boundary
=======================================

What:  The remote-store contract an editing session saves through, and its
       database-backed implementation.
Who:   EditorSession depends on NoteStore; routes build a DatabaseNoteStore
       per request from the request's DB session and owner identity.

    EditorSession ──▶ NoteStore (protocol)
                         ▲
                         └── DatabaseNoteStore ──▶ NoteService ──▶ AsyncSession

Ids cross this boundary as strings so stores that do not use UUIDs can
implement the same protocol.
"""

from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ideanote.exceptions import NotFoundError
from ideanote.schemas.note import Category, ContentUnit, ImageRef, NoteResponse, Progress
from ideanote.services.note_service import NoteService, note_service


class NoteStore(Protocol):
    async def fetch_all(self) -> List[NoteResponse]:
        ...

    async def fetch_by_id(self, note_id: str) -> NoteResponse:
        ...

    async def create(
        self,
        title: str,
        content: List[ContentUnit],
        images: List[ImageRef],
        progress: Progress,
        category: Category,
        target: Optional[int],
        due_date: Optional[int],
    ) -> str:
        ...

    async def update(
        self,
        note_id: str,
        title: str,
        content: List[ContentUnit],
        images: List[ImageRef],
        progress: Progress,
        category: Category,
        target: Optional[int],
        due_date: Optional[int],
    ) -> None:
        ...

    async def delete(self, note_id: str) -> None:
        ...

    async def toggle_checklist_item(self, note_id: str, item_text: str) -> None:
        ...


def _parse_id(note_id: str) -> UUID:
    try:
        return UUID(note_id)
    except ValueError:
        # A malformed id cannot name a stored note
        raise NotFoundError(resource="note", resource_id=note_id)


class DatabaseNoteStore:
    """NoteStore backed by NoteService on one request's database session."""

    def __init__(self, db: AsyncSession, owner: str, service: Optional[NoteService] = None):
        self.db = db
        self.owner = owner
        self.service = service or note_service

    async def fetch_all(self) -> List[NoteResponse]:
        return await self.service.fetch_notes(self.db)

    async def fetch_by_id(self, note_id: str) -> NoteResponse:
        return await self.service.get_note(self.db, _parse_id(note_id))

    async def create(self, title, content, images, progress, category, target, due_date) -> str:
        new_id = await self.service.create_note(
            self.db,
            owner=self.owner,
            title=title,
            content=content,
            images=images,
            progress=progress,
            category=category,
            target=target,
            due_date=due_date,
        )
        return str(new_id)

    async def update(
        self, note_id, title, content, images, progress, category, target, due_date
    ) -> None:
        await self.service.update_note(
            self.db,
            _parse_id(note_id),
            title=title,
            content=content,
            images=images,
            progress=progress,
            category=category,
            target=target,
            due_date=due_date,
        )

    async def delete(self, note_id: str) -> None:
        await self.service.delete_note(self.db, _parse_id(note_id))

    async def toggle_checklist_item(self, note_id: str, item_text: str) -> None:
        await self.service.toggle_checklist_item(self.db, _parse_id(note_id), item_text)
