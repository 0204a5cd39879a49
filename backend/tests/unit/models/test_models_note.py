"""Note model helpers."""

import uuid

from marknote.core.models import Note


def _note(**kwargs):
    defaults = {"title": "t", "content": "", "tags": [], "owner_id": uuid.uuid4()}
    defaults.update(kwargs)
    return Note(**defaults)


def test_word_count_splits_on_any_whitespace():
    assert _note(content="one  two\nthree\tfour").word_count == 4
    assert _note(content="").word_count == 0
    assert _note(content="   ").word_count == 0


def test_preview_truncates_long_content():
    assert _note(content="short").preview == "short"
    assert _note(content="a" * 200).preview == "a" * 200
    assert _note(content="a" * 201).preview == "a" * 200 + "..."


def test_ownership_and_repr():
    owner = uuid.uuid4()
    note = _note(title="x" * 40, owner_id=owner)

    assert note.is_owned_by(owner)
    assert not note.is_owned_by(uuid.uuid4())
    assert "x" * 30 + "..." in repr(note)
