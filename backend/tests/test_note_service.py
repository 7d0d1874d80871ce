"""
IdeaNote Backend: Note Service Tests
======================================

What:  Tests for NoteService persistence operations.
How:   Runs against the in-memory SQLite `db_session` fixture, so the real
       JSON/Text column round-trips are exercised. The database-error path
       uses a mock session.

What we test:
    ✅ Create then get returns the same content, images and scalars
    ✅ Targets beyond 64 bits survive storage
    ✅ Update replaces everything; delete removes
    ✅ Unknown ids raise NotFoundError
    ✅ Checklist toggle flips the first matching entry
    ✅ List filters and newest-first ordering
    ✅ Unexpected driver errors are wrapped in DatabaseError
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ideanote.exceptions import DatabaseError, NotFoundError, ValidationError
from ideanote.models.note import Note
from ideanote.schemas.note import (
    Category,
    ChecklistEntry,
    ContentUnit,
    ImageRef,
    Progress,
)
from ideanote.services.note_service import NoteService


def _content():
    return [
        ContentUnit(text="Intro", is_bold=True),
        ContentUnit(
            checklist_items=[
                ChecklistEntry(text="Buy milk"),
                ChecklistEntry(text="Buy milk"),
                ChecklistEntry(text="Buy eggs", checked=True),
            ]
        ),
    ]


async def _create(service, db, **overrides):
    fields = dict(
        owner="tester",
        title="Groceries",
        content=_content(),
        images=[ImageRef(path="2024/06/01/a.png")],
        progress=Progress.NOT_STARTED,
        category=Category.MEDIUM,
        target=None,
        due_date=None,
    )
    fields.update(overrides)
    return await service.create_note(db, **fields)


class TestNoteServiceCrud:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session):
        note_id = await _create(
            self.service, db_session, target=5, due_date=1717210800000000000
        )

        note = await self.service.get_note(db_session, note_id)

        assert note.id == note_id
        assert note.title == "Groceries"
        assert note.owner == "tester"
        assert note.content == _content()
        assert note.images == [ImageRef(path="2024/06/01/a.png")]
        assert note.target == 5
        assert note.due_date == 1717210800000000000
        assert note.timestamp > 0

    @pytest.mark.asyncio
    async def test_absent_scalars_stay_absent(self, db_session):
        note_id = await _create(self.service, db_session)

        note = await self.service.get_note(db_session, note_id)

        assert note.target is None
        assert note.due_date is None

    @pytest.mark.asyncio
    async def test_large_target_keeps_precision(self, db_session):
        big = 2**80 + 1
        note_id = await _create(self.service, db_session, target=big)

        assert (await self.service.get_note(db_session, note_id)).target == big

    @pytest.mark.asyncio
    async def test_update_replaces_note(self, db_session):
        note_id = await _create(self.service, db_session, target=1)

        await self.service.update_note(
            db_session,
            note_id,
            title="Renamed",
            content=[ContentUnit(text="Only", is_heading=True)],
            images=[],
            progress=Progress.DONE,
            category=Category.PRIORITY,
            target=None,
            due_date=None,
        )

        note = await self.service.get_note(db_session, note_id)
        assert note.title == "Renamed"
        assert [u.text for u in note.content] == ["Only"]
        assert note.images == []
        assert note.progress is Progress.DONE
        assert note.category is Category.PRIORITY
        assert note.target is None

    @pytest.mark.asyncio
    async def test_delete(self, db_session):
        note_id = await _create(self.service, db_session)

        await self.service.delete_note(db_session, note_id)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, note_id)

    @pytest.mark.asyncio
    async def test_unknown_id(self, db_session):
        missing = uuid.uuid4()

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, missing)
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, missing)
        with pytest.raises(NotFoundError):
            await self.service.update_note(
                db_session, missing, "t", [], [], Progress.DONE, Category.MEDIUM
            )


class TestChecklistToggle:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_flips_first_match_only(self, db_session):
        note_id = await _create(self.service, db_session)

        new_state = await self.service.toggle_checklist_item(db_session, note_id, "Buy milk")

        assert new_state is True
        entries = (await self.service.get_note(db_session, note_id)).content[-1].checklist_items
        assert [e.checked for e in entries] == [True, False, True]

    @pytest.mark.asyncio
    async def test_toggle_back(self, db_session):
        note_id = await _create(self.service, db_session)

        assert await self.service.toggle_checklist_item(db_session, note_id, "Buy eggs") is False

    @pytest.mark.asyncio
    async def test_unknown_item(self, db_session):
        note_id = await _create(self.service, db_session)

        with pytest.raises(NotFoundError, match="checklist item"):
            await self.service.toggle_checklist_item(db_session, note_id, "Buy bread")


class TestNoteServiceList:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_empty(self, db_session):
        result = await self.service.list_notes(db_session)

        assert result.notes == []
        assert result.total_count == 0

    @pytest.mark.asyncio
    async def test_newest_first_and_filters(self, db_session):
        older = await _create(self.service, db_session, title="older", category=Category.RELAXED)
        newer = await _create(
            self.service, db_session, title="newer", progress=Progress.DONE
        )
        # Spread creation times so ordering does not depend on clock resolution
        (await db_session.get(Note, older)).created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        (await db_session.get(Note, newer)).created_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
        await db_session.flush()

        everything = await self.service.list_notes(db_session)
        relaxed = await self.service.list_notes(db_session, category=Category.RELAXED)
        done = await self.service.list_notes(db_session, progress=Progress.DONE)

        assert [n.title for n in everything.notes] == ["newer", "older"]
        assert [n.id for n in relaxed.notes] == [older]
        assert [n.id for n in done.notes] == [newer]

    @pytest.mark.asyncio
    async def test_list_item_rendering(self, db_session):
        due = int(datetime(2024, 6, 1, 3, tzinfo=timezone.utc).timestamp()) * 1_000_000_000
        await _create(self.service, db_session, target=9, due_date=due)

        later = datetime(2024, 6, 2, tzinfo=timezone.utc)
        item = (await self.service.list_notes(db_session, now=later)).notes[0]

        assert item.text_preview == "Intro"
        assert item.progress_label == "Belum Mulai"
        assert item.category_label == "Medium"
        assert item.target == 9
        assert item.image_count == 1
        assert item.due_date.overdue is True
        assert item.created_display

    @pytest.mark.asyncio
    async def test_not_overdue_before_due(self, db_session):
        due_at = datetime.now(timezone.utc) + timedelta(days=1)
        due = int(due_at.timestamp()) * 1_000_000_000
        await _create(self.service, db_session, due_date=due)

        item = (await self.service.list_notes(db_session)).notes[0]

        assert item.due_date.overdue is False

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self):
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(DatabaseError):
            await self.service.list_notes(session)


class TestAddImage:
    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_attaches_storage_key(self, db_session):
        note_id = await _create(self.service, db_session, images=[])

        with patch("ideanote.services.note_service.file_service") as mock_file:
            mock_file.validate_and_store = AsyncMock(
                return_value=("/abs/2024/06/01/x.png", "2024/06/01/x.png")
            )
            ref = await self.service.add_image_to_note(
                db_session, note_id, "photo.png", b"data", 4
            )

        assert ref == ImageRef(path="2024/06/01/x.png")
        note = await self.service.get_note(db_session, note_id)
        assert note.images == [ref]

    @pytest.mark.asyncio
    async def test_unknown_note_stores_nothing(self, db_session):
        with patch("ideanote.services.note_service.file_service") as mock_file:
            mock_file.validate_and_store = AsyncMock()

            with pytest.raises(NotFoundError):
                await self.service.add_image_to_note(
                    db_session, uuid.uuid4(), "photo.png", b"data"
                )

            mock_file.validate_and_store.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_upload_propagates(self, db_session):
        note_id = await _create(self.service, db_session, images=[])

        with pytest.raises(ValidationError, match="not supported"):
            await self.service.add_image_to_note(db_session, note_id, "doc.pdf", b"data")

    @pytest.mark.asyncio
    async def test_flush_failure_cleans_up_file(self):
        note = MagicMock()
        note.images = []
        result = MagicMock()
        result.scalar_one_or_none.return_value = note
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)
        session.flush = AsyncMock(side_effect=RuntimeError("disk I/O error"))

        with patch("ideanote.services.note_service.file_service") as mock_file:
            mock_file.validate_and_store = AsyncMock(return_value=("/abs/x.png", "x.png"))
            mock_file.cleanup_file = AsyncMock()

            with pytest.raises(DatabaseError):
                await self.service.add_image_to_note(session, uuid.uuid4(), "x.png", b"d")

            mock_file.cleanup_file.assert_awaited_once_with("/abs/x.png")
