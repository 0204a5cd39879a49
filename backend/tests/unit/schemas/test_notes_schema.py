"""Validation rules of note and auth schemas."""

import pytest
from pydantic import ValidationError

from marknote.core.schemas.auth import LoginRequest, RegisterRequest
from marknote.core.schemas.notes import NoteCreate, NoteUpdate


def test_tags_are_normalized():
    note = NoteCreate(title="t", tags=[" Work ", "to-do", "a_b"])
    assert note.tags == ["work", "to-do", "a_b"]


@pytest.mark.parametrize(
    "tags",
    [["has space"], ["x" * 31], [""], ["dup", "Dup"], [f"t{i}" for i in range(21)]],
)
def test_invalid_tags(tags):
    with pytest.raises(ValidationError):
        NoteCreate(title="t", tags=tags)


def test_title_bounds():
    with pytest.raises(ValidationError):
        NoteCreate(title="")
    with pytest.raises(ValidationError):
        NoteCreate(title="x" * 201)
    assert NoteCreate(title="x" * 200).content == ""


def test_update_only_reports_set_fields():
    update = NoteUpdate(pinned=True)
    assert update.model_dump(exclude_unset=True) == {"pinned": True}
    assert NoteUpdate(tags=["A"]).tags == ["a"]


def test_register_email_is_lowercased():
    req = RegisterRequest(name="Ada", email="Ada@Example.COM", password="Secret123!")
    assert req.email == "ada@example.com"


def test_register_rejects_bad_email():
    with pytest.raises(ValidationError):
        RegisterRequest(name="Ada", email="not-an-email", password="Secret123!")


def test_login_email_is_lowercased():
    assert LoginRequest(email="ADA@example.com", password="x").email == "ada@example.com"
