"""
IdeaNote Backend: Editor Session
==================================

What:  One editing session over one note: its form fields and its block buffer.
How:   Opening a note runs the transcoder's decode path; saving runs the
       encode path plus the scalar codec, then makes a single create/update
       call on the note store.
Who:   Editor routes; any in-process client that edits notes.

Save Flow:
    ┌────────────┐   ┌──────────────┐   ┌──────────────┐   ┌──────────────────┐
    │ can_save?  │──▶│ encode blocks│──▶│ parse target │──▶│ store.create  or │
    │ (else skip)│   │ (transcoder) │   │ + due date   │   │ store.update     │
    └────────────┘   └──────────────┘   └──────────────┘   └──────────────────┘

    A ValidationError from the codec stops the flow before the store is
    called, so a rejected save writes nothing. A session without a store or
    an identity does not raise: save() logs and returns None.
"""

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import List, Optional

from ideanote.schemas.blocks import EditorBlock, EditorStateResponse
from ideanote.schemas.note import Category, ContentUnit, ImageRef, NoteResponse, Progress
from ideanote.services import scalar_codec
from ideanote.services.block_buffer import BlockBuffer, BlockIdGenerator
from ideanote.services.note_store import NoteStore
from ideanote.services.transcoder import decode_note, encode_blocks

logger = logging.getLogger(__name__)


@dataclass
class NotePayload:
    """Everything a create/update call needs, fully parsed."""

    title: str
    content: List[ContentUnit]
    images: List[ImageRef]
    progress: Progress
    category: Category
    target: Optional[int]
    due_date: Optional[int]


class EditorSession:
    """
    Editing state for a new or existing note.

    Attributes:
        note_id:  id of the note being edited, None while composing a new one
        title, progress, category:  form fields
        target, due_date:  raw form strings ("" when absent)
        blocks:  the never-empty BlockBuffer
    """

    def __init__(
        self,
        store: Optional[NoteStore],
        identity: Optional[str],
        note_id: Optional[str] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.store = store
        self.identity = identity
        self.note_id = note_id
        self.tz = tz

        self.title = ""
        self.progress = Progress.NOT_STARTED
        self.category = Category.MEDIUM
        self.target = ""
        self.due_date = ""
        self._ids = BlockIdGenerator()
        self.blocks = BlockBuffer(id_generator=self._ids)

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def new(
        cls,
        store: Optional[NoteStore],
        identity: Optional[str],
        tz: Optional[tzinfo] = None,
    ) -> "EditorSession":
        """Compose a new note: one empty paragraph, default metadata."""
        return cls(store, identity, tz=tz)

    @classmethod
    async def open(
        cls,
        store: NoteStore,
        identity: Optional[str],
        note_id: str,
        tz: Optional[tzinfo] = None,
    ) -> "EditorSession":
        """Fetch a stored note and load it for editing."""
        session = cls(store, identity, note_id=note_id, tz=tz)
        session.load(await store.fetch_by_id(note_id))
        return session

    def load(self, note: NoteResponse) -> None:
        """Replace the session state with a decoded copy of `note`."""
        self.note_id = str(note.id)
        self.title = note.title
        self.progress = note.progress
        self.category = note.category
        self.target = str(note.target) if note.target is not None else ""
        self.due_date = (
            scalar_codec.decode_due_date_for_edit(note.due_date, self.tz)
            if note.due_date is not None
            else ""
        )
        self._ids = BlockIdGenerator()
        self.blocks = BlockBuffer(decode_note(note, self._ids), id_generator=self._ids)

    def apply(
        self,
        title: str,
        progress: Progress,
        category: Category,
        target: str,
        due_date: str,
        blocks: List[EditorBlock],
    ) -> None:
        """Overwrite the form fields and buffer with client-side edits."""
        self.title = title
        self.progress = progress
        self.category = category
        self.target = target
        self.due_date = due_date
        self.blocks = BlockBuffer(blocks, id_generator=self._ids)

    # ── Saving ───────────────────────────────────────────────────────────

    @property
    def can_save(self) -> bool:
        return self.store is not None and bool(self.identity)

    def build_payload(self) -> NotePayload:
        """
        Encode the buffer and parse the scalar fields.

        Raises:
            ValidationError: malformed target or due date
        """
        encoded = encode_blocks(self.blocks)
        return NotePayload(
            title=self.title,
            content=encoded.content,
            images=encoded.images,
            progress=self.progress,
            category=self.category,
            target=scalar_codec.encode_target(self.target),
            due_date=scalar_codec.encode_due_date(self.due_date, self.tz),
        )

    async def save(self) -> Optional[str]:
        """
        Persist the session through the note store.

        Returns:
            The note id, or None when saving is unavailable (no store or no
            identity); nothing is written in that case.

        Raises:
            ValidationError: malformed target or due date; the store is not called
        """
        if not self.can_save:
            logger.info("Save skipped: no store or identity for note %s", self.note_id or "<new>")
            return None

        payload = self.build_payload()

        if self.note_id is None:
            self.note_id = await self.store.create(
                payload.title,
                payload.content,
                payload.images,
                payload.progress,
                payload.category,
                payload.target,
                payload.due_date,
            )
            logger.info("Editor created note %s", self.note_id)
        else:
            await self.store.update(
                self.note_id,
                payload.title,
                payload.content,
                payload.images,
                payload.progress,
                payload.category,
                payload.target,
                payload.due_date,
            )
            logger.info("Editor updated note %s", self.note_id)

        return self.note_id

    # ── Views ────────────────────────────────────────────────────────────

    def state(self) -> EditorStateResponse:
        return EditorStateResponse(
            note_id=self.note_id,
            title=self.title,
            progress=self.progress,
            category=self.category,
            target=self.target,
            due_date=self.due_date,
            blocks=self.blocks.snapshot(),
        )
