"""
IdeaNote Backend: Editor Block Schemas
========================================

What:  The in-memory unit of editing and the editor request/response shapes.
Who:   BlockBuffer, the content transcoder, the editor session and the
       editor routes.

An EditorBlock only exists for the duration of one editing session. Its `id`
is a session-local synthetic value and is never written to the database.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ideanote.schemas.note import Category, ImageRef, Progress


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BULLET_ITEM = "bullet_item"
    CHECKLIST_ITEM = "checklist_item"
    IMAGE = "image"


class EditorBlock(BaseModel):
    """
    One editable block.

    Constraints:
        - image blocks carry an `image_ref`; no other kind may carry one
        - `checked` only means something for checklist items
        - `is_bold` / `is_italic` are kept on every text kind, even where the
          editor only exposes them for paragraphs
    """

    id: str = Field(description="Session-local block id")
    kind: BlockKind = Field(default=BlockKind.PARAGRAPH)
    text: str = Field(default="")
    is_bold: bool = Field(default=False)
    is_italic: bool = Field(default=False)
    checked: bool = Field(default=False)
    image_ref: Optional[ImageRef] = Field(default=None)

    @model_validator(mode="after")
    def check_image_ref(self) -> "EditorBlock":
        if self.kind is BlockKind.IMAGE and self.image_ref is None:
            raise ValueError("image blocks require an image_ref")
        if self.kind is not BlockKind.IMAGE and self.image_ref is not None:
            raise ValueError(f"{self.kind.value} blocks cannot carry an image_ref")
        return self


class EditorStateResponse(BaseModel):
    """
    What:  A stored note opened for editing.
    How:   `target` and `due_date` are the strings an edit form shows
           ("10", "2024-06-01T10:00"); empty strings mean absent.
    """

    note_id: Optional[str] = None
    title: str = ""
    progress: Progress = Progress.NOT_STARTED
    category: Category = Category.MEDIUM
    target: str = ""
    due_date: str = ""
    blocks: List[EditorBlock]


class EditorSaveRequest(BaseModel):
    """
    What:  Body of POST /api/editor and PUT /api/notes/{id}/editor.
    How:   The block list mirrors the client's editing buffer, so it is
           never empty. Target and due date arrive as raw form strings and
           are parsed by the scalar codec before anything is written.
    """

    title: str = Field(default="", max_length=500)
    progress: Progress = Field(default=Progress.NOT_STARTED)
    category: Category = Field(default=Category.MEDIUM)
    target: str = Field(default="", description="Raw target input; blank for none")
    due_date: str = Field(default="", description="Local date-time input; blank for none")
    blocks: List[EditorBlock] = Field(min_length=1)
