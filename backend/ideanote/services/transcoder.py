"""
IdeaNote Backend: Content Transcoder
======================================

What:  Converts between the editor's flat block sequence and the persisted
       note content (content units + images).
Who:   EditorSession (save and open), NoteService (list previews).
When:  encode on every save, decode on every open of an existing note.

Encode (blocks → content, images):
    One left-to-right pass with a pending checklist accumulator.

        blocks:  [☐ Buy milk] [¶ Note] [☑ Buy eggs] [🖼 img]
                      │          │          │          │
        units:        │       [Note]        │          │
        pending:  [Buy milk] ───────── [Buy eggs]      │
        images:                                      [img]

        after pass: units = [Note, {checklist: [Buy milk, Buy eggs]}]

    Checklist items always collapse into ONE unit appended after every other
    unit, wherever the checklist blocks sat. Blank text blocks are dropped.
    Both are lossy on purpose; decode(encode(blocks)) is not the identity.

Decode (note → blocks):
    Content units in order (a checklist unit expands to one block per entry),
    then one image block per image, then an empty paragraph if nothing was
    produced. Block ids are fresh sequential values, never persisted ids.

Both directions are pure and synchronous; they never touch storage.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ideanote.schemas.blocks import BlockKind, EditorBlock
from ideanote.schemas.note import ChecklistEntry, ContentUnit, ImageRef, NoteResponse
from ideanote.services.block_buffer import BlockIdGenerator, empty_paragraph


@dataclass
class EncodedContent:
    """Encode output: the two persisted lists a create/update call needs."""

    content: List[ContentUnit] = field(default_factory=list)
    images: List[ImageRef] = field(default_factory=list)


def encode_blocks(blocks: Iterable[EditorBlock]) -> EncodedContent:
    """
    Turn an ordered block sequence into persisted content units and images.

    Result ordering:
        content = [non-checklist units in original relative order]
                  + [the single checklist group unit, if any checklist block exists]
    """
    encoded = EncodedContent()
    checklist_group: List[ChecklistEntry] = []

    for block in blocks:
        if block.kind is BlockKind.IMAGE:
            encoded.images.append(block.image_ref)
        elif block.kind is BlockKind.CHECKLIST_ITEM:
            checklist_group.append(ChecklistEntry(text=block.text, checked=block.checked))
        elif block.text.strip():
            encoded.content.append(
                ContentUnit(
                    text=block.text,
                    is_bold=block.is_bold,
                    is_italic=block.is_italic,
                    is_heading=block.kind is BlockKind.HEADING,
                    is_bullet_point=block.kind is BlockKind.BULLET_ITEM,
                )
            )

    # Emit the accumulated group last
    if checklist_group:
        encoded.content.append(ContentUnit(checklist_items=checklist_group))

    return encoded


def resolve_kind(unit: ContentUnit) -> BlockKind:
    """Kind of a non-checklist unit: heading beats bullet, bullet beats paragraph."""
    if unit.is_heading:
        return BlockKind.HEADING
    if unit.is_bullet_point:
        return BlockKind.BULLET_ITEM
    return BlockKind.PARAGRAPH


def decode_note(
    note: NoteResponse,
    id_generator: Optional[BlockIdGenerator] = None,
) -> List[EditorBlock]:
    """
    Expand a stored note into an editable block sequence.

    Pass the session's id generator so blocks added later in the session
    continue the same sequence; a fresh generator starting at "1" is used
    otherwise.
    """
    ids = id_generator or BlockIdGenerator()
    blocks: List[EditorBlock] = []

    for unit in note.content:
        if unit.checklist_items is not None:
            for entry in unit.checklist_items:
                blocks.append(
                    EditorBlock(
                        id=ids.next_id(),
                        kind=BlockKind.CHECKLIST_ITEM,
                        text=entry.text,
                        checked=entry.checked,
                    )
                )
        else:
            blocks.append(
                EditorBlock(
                    id=ids.next_id(),
                    kind=resolve_kind(unit),
                    text=unit.text,
                    is_bold=unit.is_bold,
                    is_italic=unit.is_italic,
                )
            )

    for image in note.images:
        blocks.append(EditorBlock(id=ids.next_id(), kind=BlockKind.IMAGE, image_ref=image))

    if not blocks:
        blocks.append(empty_paragraph(ids.next_id()))

    return blocks


def build_preview(content: Iterable[ContentUnit], limit: int = 150) -> str:
    """Plain-text preview of a note's text units for list views."""
    text = " ".join(
        unit.text for unit in content if unit.text and unit.checklist_items is None
    )
    if len(text) > limit:
        return text[:limit] + "..."
    return text
