"""
IdeaNote Backend: Note SQLAlchemy Model
=========================================

What:  ORM model representing the `notes` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - UUID primary key, generated in Python so SQLite and PostgreSQL behave alike
    - content: JSON array of persisted content units, in order. Non-checklist
      units come first; at most one trailing unit carries `checklist_items`.
    - images: JSON array of image storage keys (relative to STORAGE_ROOT),
      disjoint from content
    - progress / category: short enum-like strings ("belumMulai", "prioritas", ...)
    - target: decimal digits as TEXT; the value is an arbitrary-precision
      non-negative integer and must not pass through a float or int64 column
    - due_date: nanoseconds since the Unix epoch (BIGINT covers up to year 2262)
    - created_at: UTC with timezone; exposed to clients as nanoseconds

    Index on created_at DESC:
        The list endpoint returns notes newest first.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ideanote.database import Base


class Note(Base):
    """
    Represents a persisted note.

    Lifecycle:
        1. Created from the encode output of an editor session (or a raw write)
        2. Replaced wholesale by update (content, images, metadata)
        3. Checklist entries can be toggled in place without an editor session
        4. Deleted on request
    """

    __tablename__ = "notes"

    # ── Primary Key ───────────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique note identifier",
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
        comment="Note title as typed by the user",
    )

    owner: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity that created the note",
    )

    # ── Content ───────────────────────────────────────────────────────────
    # What: Ordered list of {text, is_bold, is_italic, is_heading,
    #       is_bullet_point, checklist_items?} dicts
    content: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered persisted content units",
    )

    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered image storage keys relative to the storage root",
    )

    # ── Metadata ──────────────────────────────────────────────────────────
    progress: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="belumMulai",
        comment="Progress: belumMulai, sedangDikerjakan, selesai",
    )

    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="medium",
        comment="Category: prioritas, santai, medium",
    )

    target: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Non-negative integer target as decimal digits; NULL when absent",
    )

    due_date: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        default=None,
        comment="Due date in nanoseconds since epoch; NULL when absent",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this note was created (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return (
            f"<Note(id={self.id}, title='{self.title}', "
            f"created_at='{self.created_at}')>"
        )
