"""NoteService against an in-memory SQLite session."""

import uuid

import pytest
from fastapi import HTTPException

from marknote.core.schemas.notes import NoteCreate, NoteUpdate
from marknote.core.services.note_service import NoteService


async def _seed(service, user_id, *rows):
    notes = []
    for title, tags in rows:
        notes.append(await service.create_note(user_id, NoteCreate(title=title, tags=tags)))
    return notes


@pytest.mark.asyncio
async def test_create_note_returns_response(test_session, test_user):
    service = NoteService(test_session)

    note = await service.create_note(
        test_user.id, NoteCreate(title="Hello", content="# Hi there", tags=["greet"], pinned=True)
    )

    assert note.owner_id == test_user.id
    assert note.tags == ["greet"]
    assert note.pinned is True
    assert note.word_count == 3


@pytest.mark.asyncio
async def test_get_note_of_another_user_is_404(test_session, test_user, test_note):
    service = NoteService(test_session)

    with pytest.raises(HTTPException) as exc:
        await service.get_note(test_note.id, uuid.uuid4())
    assert exc.value.status_code == 404

    found = await service.get_note(test_note.id, test_user.id)
    assert found.id == test_note.id


@pytest.mark.asyncio
async def test_update_keeps_unset_fields(test_session, test_user, test_note):
    service = NoteService(test_session)

    updated = await service.update_note(test_note.id, test_user.id, NoteUpdate(title="Renamed"))

    assert updated.title == "Renamed"
    assert updated.content == "This is a test note content"
    assert updated.tags == ["test", "example"]


@pytest.mark.asyncio
async def test_update_and_delete_missing_note_are_404(test_session, test_user):
    service = NoteService(test_session)
    missing = uuid.uuid4()

    with pytest.raises(HTTPException) as exc:
        await service.update_note(missing, test_user.id, NoteUpdate(pinned=True))
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        await service.delete_note(missing, test_user.id)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_tag_filter_requires_every_tag(test_session, test_user):
    service = NoteService(test_session)
    await _seed(
        service,
        test_user.id,
        ("both", ["work", "urgent"]),
        ("work only", ["work"]),
        ("urgent only", ["urgent"]),
    )

    result = await service.list_user_notes(test_user.id, tags=["Work", "urgent"])

    assert [item.title for item in result.items] == ["both"]
    assert result.total == 1
    assert result.available_tags == ["urgent", "work"]


@pytest.mark.asyncio
async def test_pagination(test_session, test_user):
    service = NoteService(test_session)
    await _seed(service, test_user.id, *[(f"n{i}", []) for i in range(5)])

    first = await service.list_user_notes(test_user.id, page=1, per_page=2)
    last = await service.list_user_notes(test_user.id, page=3, per_page=2)

    assert first.total == 5
    assert first.pages == 3
    assert len(first.items) == 2
    assert first.has_next is True and first.has_prev is False
    assert len(last.items) == 1
    assert last.has_next is False and last.has_prev is True


@pytest.mark.asyncio
async def test_out_of_range_page_size_falls_back_to_default(test_session, test_user):
    service = NoteService(test_session)

    result = await service.list_user_notes(test_user.id, page=0, per_page=10_000)

    assert result.page == 1
    assert result.per_page == service.settings.default_page_size


@pytest.mark.asyncio
async def test_list_items_carry_preview(test_session, test_user):
    service = NoteService(test_session)
    await service.create_note(test_user.id, NoteCreate(title="long", content="x" * 250))

    result = await service.list_user_notes(test_user.id)

    assert result.items[0].content_preview == "x" * 200 + "..."
