"""
IdeaNote Backend: Pydantic Note Schemas
=========================================

What:  Pydantic models for the persisted note shape and the API contract.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate OpenAPI documentation. The transcoder and the editor
       session use the same models as their vocabulary.
Who:   Route handlers, NoteService, the content transcoder, the editor session.

Persisted shape:
    Note
    ├── content: [ContentUnit]        ← text pieces, then ≤ 1 checklist group
    │   └── checklist_items: [ChecklistEntry] | None
    ├── images:  [ImageRef]           ← disjoint from content
    ├── target:   int | None          ← ≥ 0, at most MAX_TARGET_DIGITS digits
    └── due_date: int | None          ← nanoseconds since epoch, signed 64-bit

Schemas are separate from SQLAlchemy models: the database stores image
storage keys and a decimal-text target, the API exposes ImageRef objects
and integers.
"""

import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

# Longest accepted target, in decimal digits. Python refuses int<->str
# conversions past 4300 digits, so the bound stays below that.
MAX_TARGET_DIGITS = 4000
MAX_TARGET = 10**MAX_TARGET_DIGITS - 1

# Due dates are stored in a BIGINT column (years 1677 to 2262)
MIN_DUE_DATE_NS = -(2**63)
MAX_DUE_DATE_NS = 2**63 - 1


# ══════════════════════════════════════════════════════════════════════════
# Enumerations
# ══════════════════════════════════════════════════════════════════════════


class Progress(str, Enum):
    """Task progress of a note. Values are the persisted wire strings."""

    NOT_STARTED = "belumMulai"
    IN_PROGRESS = "sedangDikerjakan"
    DONE = "selesai"

    @property
    def label(self) -> str:
        return _PROGRESS_LABELS[self]


class Category(str, Enum):
    """Priority bucket of a note. Values are the persisted wire strings."""

    PRIORITY = "prioritas"
    RELAXED = "santai"
    MEDIUM = "medium"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_PROGRESS_LABELS = {
    Progress.NOT_STARTED: "Belum Mulai",
    Progress.IN_PROGRESS: "Sedang Dikerjakan",
    Progress.DONE: "Selesai",
}

_CATEGORY_LABELS = {
    Category.PRIORITY: "Prioritas",
    Category.RELAXED: "Santai",
    Category.MEDIUM: "Medium",
}


# ══════════════════════════════════════════════════════════════════════════
# Persisted Content
# ══════════════════════════════════════════════════════════════════════════


class ChecklistEntry(BaseModel):
    """One item of the note's checklist group."""

    text: str = Field(description="Checklist item text")
    checked: bool = Field(default=False, description="Whether the item is ticked")


class ContentUnit(BaseModel):
    """
    What:  One persisted piece of non-image note content.

    A unit with `checklist_items` set is the note's checklist group; its text
    is empty and its flags are false. A unit without it is a single
    paragraph, heading, or bullet piece. Bold/italic are stored for every
    text unit, whatever its kind.
    """

    text: str = Field(default="", description="Text of a plain/heading/bullet unit")
    is_bold: bool = Field(default=False)
    is_italic: bool = Field(default=False)
    is_heading: bool = Field(default=False)
    is_bullet_point: bool = Field(default=False)
    checklist_items: Optional[List[ChecklistEntry]] = Field(
        default=None,
        description="Present only on the checklist group unit",
    )

    @property
    def is_checklist_group(self) -> bool:
        return self.checklist_items is not None


class ImageRef(BaseModel):
    """
    What:  Opaque reference to a stored note image.
    How:   `path` is the storage key relative to STORAGE_ROOT. The display URL
           is derived from it, and the bytes are only read when asked for.

    Usage:
        ref = ImageRef(path="2024/06/01/abc.png")
        ref.display_url          # "/api/files/2024/06/01/abc.png"
        data = await ref.get_bytes()
    """

    path: str = Field(description="Storage key of the image, relative to the storage root")

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_url(self) -> str:
        return f"/api/files/{self.path}"

    async def get_bytes(self) -> bytes:
        """Read the referenced image from storage."""
        from ideanote.services.file_service import file_service

        return await file_service.read_file(self.path)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Full representation of a stored note.
    Who:   Returned by GET /api/notes/{id}; consumed by the editor session's decode path.
    """

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str = Field(description="Note title")
    owner: str = Field(description="Identity that created the note")
    content: List[ContentUnit] = Field(default_factory=list)
    images: List[ImageRef] = Field(default_factory=list)
    progress: Progress = Field(default=Progress.NOT_STARTED)
    category: Category = Field(default=Category.MEDIUM)
    target: Optional[int] = Field(default=None, ge=0, description="Optional numeric target")
    due_date: Optional[int] = Field(
        default=None, description="Optional due date in nanoseconds since epoch"
    )
    timestamp: int = Field(description="Creation time in nanoseconds since epoch")


class DueDateDisplay(BaseModel):
    """Rendered due date for list views; `overdue` is computed at render time."""

    formatted: str
    overdue: bool


class NoteListItem(BaseModel):
    """
    What:  Compact note representation for list/grid views.

    Preview:
        Text of the non-checklist units joined by spaces, truncated to
        PREVIEW_LENGTH characters with a trailing "...".
    """

    id: uuid.UUID
    title: str
    text_preview: str
    progress: Progress
    progress_label: str
    category: Category
    category_label: str
    target: Optional[int] = None
    due_date: Optional[DueDateDisplay] = None
    image_count: int = 0
    timestamp: int
    created_display: str


class NoteListResponse(BaseModel):
    """Response wrapper for the notes list endpoint."""

    notes: List[NoteListItem] = Field(description="Note summaries, newest first")
    total_count: int = Field(description="Number of notes matching the filters")


class NoteIdResponse(BaseModel):
    """Returned by create/update/editor-save endpoints."""

    id: uuid.UUID


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWriteRequest(BaseModel):
    """
    What:  Body of POST /api/notes and PUT /api/notes/{id}.
    How:   Carries already-encoded content; clients that edit blocks use the
           editor endpoints instead, which run the transcoder server-side.
    """

    title: str = Field(default="", max_length=500)
    content: List[ContentUnit] = Field(default_factory=list)
    images: List[ImageRef] = Field(default_factory=list)
    progress: Progress = Field(default=Progress.NOT_STARTED)
    category: Category = Field(default=Category.MEDIUM)
    target: Optional[int] = Field(default=None, ge=0)
    due_date: Optional[int] = Field(default=None, ge=MIN_DUE_DATE_NS, le=MAX_DUE_DATE_NS)

    @field_validator("target")
    @classmethod
    def check_target_digits(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > MAX_TARGET:
            raise ValueError(f"target must have at most {MAX_TARGET_DIGITS} digits")
        return v


class ChecklistToggleRequest(BaseModel):
    """Body of POST /api/notes/{id}/checklist/toggle."""

    item_text: str = Field(description="Text of the checklist entry to flip")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Target must be a whole number, got 'abc'",
            "details": {"field": "target"},
            "request_id": "550e8400"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
