"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Creates the `notes` table holding encoded note content.
How:   Generic column types (Uuid, JSON, DateTime with timezone) so the same
       migration applies to PostgreSQL and SQLite.

Rollback: downgrade() drops the table (all notes are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the notes table and its created_at index."""
    op.create_table(
        "notes",
        sa.Column(
            "id",
            sa.Uuid(as_uuid=True),
            nullable=False,
            comment="Unique note identifier",
        ),
        sa.Column(
            "title",
            sa.String(500),
            nullable=False,
            server_default=sa.text("''"),
            comment="Note title as typed by the user",
        ),
        sa.Column(
            "owner",
            sa.String(255),
            nullable=False,
            comment="Identity that created the note",
        ),

        # Ordered content units; checklist group, if any, is the last element
        sa.Column(
            "content",
            sa.JSON(),
            nullable=False,
            comment="Ordered persisted content units",
        ),
        sa.Column(
            "images",
            sa.JSON(),
            nullable=False,
            comment="Ordered image storage keys relative to the storage root",
        ),

        sa.Column(
            "progress",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'belumMulai'"),
            comment="Progress: belumMulai, sedangDikerjakan, selesai",
        ),
        sa.Column(
            "category",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'medium'"),
            comment="Category: prioritas, santai, medium",
        ),

        # Decimal digits; arbitrary precision
        sa.Column(
            "target",
            sa.Text(),
            nullable=True,
            comment="Non-negative integer target as decimal digits; NULL when absent",
        ),
        sa.Column(
            "due_date",
            sa.BigInteger(),
            nullable=True,
            comment="Due date in nanoseconds since epoch; NULL when absent",
        ),

        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),

        sa.PrimaryKeyConstraint("id"),
    )

    # The list endpoint orders by created_at DESC
    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop the notes table. Destructive: all notes are lost."""
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
