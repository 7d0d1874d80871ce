"""
IdeaNote Backend: Editing Block Buffer
========================================

What:  The ordered, never-empty sequence of blocks an editing session mutates.
How:   Every mutation goes through BlockBuffer; deletion refuses to drop the
       last block, and a buffer created without blocks starts with one empty
       paragraph.
Who:   EditorSession owns exactly one buffer per editing session.
"""

import itertools
import logging
from typing import Iterable, Iterator, List, Optional

from ideanote.exceptions import EmptyBufferError, NotFoundError, ValidationError
from ideanote.schemas.blocks import BlockKind, EditorBlock
from ideanote.schemas.note import ImageRef

logger = logging.getLogger(__name__)

_FORMAT_FIELDS = {"bold": "is_bold", "italic": "is_italic"}


class BlockIdGenerator:
    """Hands out "1", "2", "3", ... for one editing session."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return str(next(self._counter))


def empty_paragraph(block_id: str) -> EditorBlock:
    return EditorBlock(id=block_id, kind=BlockKind.PARAGRAPH, text="")


class BlockBuffer:
    """
    Mutable block sequence with a length-at-least-one invariant.

    Ids of blocks added through the buffer come from its generator. Blocks
    passed in at construction keep the ids they already have; the generator
    is expected to be the one that produced them (see decode_note).
    """

    def __init__(
        self,
        blocks: Optional[Iterable[EditorBlock]] = None,
        id_generator: Optional[BlockIdGenerator] = None,
    ):
        self._ids = id_generator or BlockIdGenerator()
        self._blocks: List[EditorBlock] = list(blocks or [])
        if not self._blocks:
            self._blocks.append(empty_paragraph(self._ids.next_id()))

    # ── Read access ──────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[EditorBlock]:
        return iter(self._blocks)

    def __getitem__(self, index: int) -> EditorBlock:
        return self._blocks[index]

    def snapshot(self) -> List[EditorBlock]:
        """Copy of the current block list, safe to hand to the transcoder."""
        return list(self._blocks)

    def get(self, block_id: str) -> EditorBlock:
        return self._blocks[self._index_of(block_id)]

    def _index_of(self, block_id: str) -> int:
        for index, block in enumerate(self._blocks):
            if block.id == block_id:
                return index
        raise NotFoundError(resource="block", resource_id=block_id)

    # ── Mutations ────────────────────────────────────────────────────────

    def add(
        self,
        kind: BlockKind,
        text: str = "",
        image_ref: Optional[ImageRef] = None,
    ) -> EditorBlock:
        """Append a new block at the end (toolbar action)."""
        block = EditorBlock(
            id=self._ids.next_id(), kind=kind, text=text, image_ref=image_ref
        )
        self._blocks.append(block)
        return block

    def insert(self, index: int, block: EditorBlock) -> None:
        self._blocks.insert(index, block)

    def update_text(self, block_id: str, text: str) -> EditorBlock:
        block = self.get(block_id)
        block.text = text
        return block

    def toggle_format(self, block_id: str, fmt: str) -> EditorBlock:
        """Flip bold or italic on a block."""
        field = _FORMAT_FIELDS.get(fmt)
        if field is None:
            raise ValidationError(
                message=f"Unknown format '{fmt}'. Use 'bold' or 'italic'.",
                field="format",
            )
        block = self.get(block_id)
        setattr(block, field, not getattr(block, field))
        return block

    def toggle_checked(self, block_id: str) -> EditorBlock:
        block = self.get(block_id)
        if block.kind is not BlockKind.CHECKLIST_ITEM:
            raise ValidationError(
                message="Only checklist items can be checked",
                field="kind",
                context={"block_id": block_id, "kind": block.kind.value},
            )
        block.checked = not block.checked
        return block

    def delete(self, block_id: str) -> None:
        index = self._index_of(block_id)
        if len(self._blocks) == 1:
            logger.debug("Refusing to delete last block %s", block_id)
            raise EmptyBufferError(block_id)
        del self._blocks[index]
