"""
IdeaNote Backend: Editor Session Unit Tests
=============================================

What:  Tests for the open/edit/save control flow of EditorSession.
How:   The note store is an AsyncMock, so every create/update call the
       session makes can be asserted on. No database involved.

What we test:
    ✅ Saving without a store or identity is inert (returns None, no calls)
    ✅ A malformed target or due date aborts before the store is called
    ✅ A new session issues exactly one create; an opened one exactly one update
    ✅ Opening decodes the stored note and formats the scalar fields
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from ideanote.exceptions import ValidationError
from ideanote.schemas.blocks import BlockKind, EditorBlock
from ideanote.schemas.note import (
    Category,
    ChecklistEntry,
    ContentUnit,
    ImageRef,
    NoteResponse,
    Progress,
)
from ideanote.services import scalar_codec
from ideanote.services.editor_session import EditorSession


@pytest.fixture
def store():
    fake = AsyncMock()
    fake.create = AsyncMock(return_value="new-note-id")
    fake.update = AsyncMock(return_value=None)
    return fake


@pytest.fixture
def stored_note(jakarta):
    return NoteResponse(
        id=uuid.uuid4(),
        title="Weekly",
        owner="tester",
        content=[
            ContentUnit(text="Plan", is_heading=True),
            ContentUnit(checklist_items=[ChecklistEntry(text="Call Ana", checked=True)]),
        ],
        images=[ImageRef(path="2024/06/01/a.png")],
        progress=Progress.IN_PROGRESS,
        category=Category.PRIORITY,
        target=12,
        due_date=scalar_codec.encode_due_date("2024-06-01T10:00", jakarta),
        timestamp=0,
    )


class TestNewSession:
    def test_starts_with_one_empty_paragraph(self, store):
        session = EditorSession.new(store, "tester")

        state = session.state()
        assert state.note_id is None
        assert len(state.blocks) == 1
        assert state.blocks[0].kind is BlockKind.PARAGRAPH
        assert state.progress is Progress.NOT_STARTED
        assert state.category is Category.MEDIUM

    @pytest.mark.asyncio
    async def test_save_creates_once(self, store):
        session = EditorSession.new(store, "tester")
        session.title = "Shopping"
        session.target = "3"
        session.blocks.update_text("1", "Remember bags")
        session.blocks.add(BlockKind.CHECKLIST_ITEM, text="Milk")

        note_id = await session.save()

        assert note_id == "new-note-id"
        assert session.note_id == "new-note-id"
        store.create.assert_awaited_once()
        store.update.assert_not_awaited()
        title, content, images, progress, category, target, due_date = store.create.await_args.args
        assert title == "Shopping"
        assert [u.text for u in content if not u.is_checklist_group] == ["Remember bags"]
        assert content[-1].checklist_items == [ChecklistEntry(text="Milk")]
        assert images == []
        assert target == 3
        assert due_date is None

    @pytest.mark.asyncio
    async def test_second_save_updates(self, store):
        session = EditorSession.new(store, "tester")

        await session.save()
        await session.save()

        store.create.assert_awaited_once()
        store.update.assert_awaited_once()
        assert store.update.await_args.args[0] == "new-note-id"


class TestInertSave:
    @pytest.mark.asyncio
    async def test_no_store(self):
        session = EditorSession.new(None, "tester")

        assert session.can_save is False
        assert await session.save() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("identity", [None, ""])
    async def test_no_identity(self, store, identity):
        session = EditorSession.new(store, identity)

        assert await session.save() is None
        store.create.assert_not_awaited()
        store.update.assert_not_awaited()


class TestValidationAbort:
    @pytest.mark.asyncio
    async def test_bad_target_writes_nothing(self, store):
        session = EditorSession.new(store, "tester")
        session.target = "abc"

        with pytest.raises(ValidationError):
            await session.save()

        store.create.assert_not_awaited()
        assert session.note_id is None

    @pytest.mark.asyncio
    async def test_bad_due_date_writes_nothing(self, store, stored_note):
        session = EditorSession(store, "tester", tz=None)
        session.load(stored_note)
        session.due_date = "next friday"

        with pytest.raises(ValidationError):
            await session.save()

        store.update.assert_not_awaited()


class TestOpen:
    @pytest.mark.asyncio
    async def test_open_decodes_note(self, store, stored_note, jakarta):
        store.fetch_by_id = AsyncMock(return_value=stored_note)

        session = await EditorSession.open(store, "tester", str(stored_note.id), tz=jakarta)

        store.fetch_by_id.assert_awaited_once_with(str(stored_note.id))
        state = session.state()
        assert state.note_id == str(stored_note.id)
        assert state.title == "Weekly"
        assert state.target == "12"
        assert state.due_date == "2024-06-01T10:00"
        assert [b.kind for b in state.blocks] == [
            BlockKind.HEADING,
            BlockKind.CHECKLIST_ITEM,
            BlockKind.IMAGE,
        ]
        assert [b.id for b in state.blocks] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_absent_scalars_open_as_blank(self, store, stored_note):
        blank = stored_note.model_copy(update={"target": None, "due_date": None})
        store.fetch_by_id = AsyncMock(return_value=blank)

        session = await EditorSession.open(store, "tester", str(blank.id))

        assert session.target == ""
        assert session.due_date == ""

    @pytest.mark.asyncio
    async def test_edit_then_save_updates_existing(self, store, stored_note, jakarta):
        store.fetch_by_id = AsyncMock(return_value=stored_note)
        session = await EditorSession.open(store, "tester", str(stored_note.id), tz=jakarta)

        added = session.blocks.add(BlockKind.PARAGRAPH, text="Added later")
        note_id = await session.save()

        assert added.id == "4"
        assert note_id == str(stored_note.id)
        store.create.assert_not_awaited()
        args = store.update.await_args.args
        assert args[0] == str(stored_note.id)
        content, images = args[2], args[3]
        assert [u.text for u in content[:-1]] == ["Plan", "Added later"]
        assert content[-1].checklist_items == [ChecklistEntry(text="Call Ana", checked=True)]
        assert images == stored_note.images
        assert args[6] == 12
        assert args[7] == stored_note.due_date

    def test_apply_replaces_fields_and_blocks(self, store):
        session = EditorSession.new(store, "tester")

        session.apply(
            title="T",
            progress=Progress.DONE,
            category=Category.RELAXED,
            target="",
            due_date="",
            blocks=[EditorBlock(id="a", text="x"), EditorBlock(id="b", text="y")],
        )

        assert session.title == "T"
        assert [b.id for b in session.blocks] == ["a", "b"]
        assert session.build_payload().progress is Progress.DONE
