"""
Note management schemas.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import PaginationResponse

TAG_PATTERN = re.compile(r"^[a-z0-9_-]{1,30}$")


def _normalize_tags(tags: List[str]) -> List[str]:
    normalized = [tag.strip().lower() for tag in tags]
    for tag in normalized:
        if not TAG_PATTERN.match(tag):
            raise ValueError(
                "Tags must be 1-30 characters of letters, numbers, hyphens and underscores"
            )
    if len(normalized) != len(set(normalized)):
        raise ValueError("Duplicate tags are not allowed")
    return normalized


class NoteCreate(BaseModel):
    """Note creation request schema."""

    title: str = Field(min_length=1, max_length=200, description="Note title")
    content: str = Field(default="", description="Note content (Markdown)")
    tags: List[str] = Field(default_factory=list, max_length=20, description="Note tags")
    pinned: bool = Field(default=False, description="Keep the note at the top of the list")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        return _normalize_tags(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Sprint retro",
                "content": "## Went well\n\n- shipped co-editing",
                "tags": ["work", "retro"],
                "pinned": False,
            }
        }
    )


class NoteUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None)
    tags: Optional[List[str]] = Field(default=None, max_length=20)
    pinned: Optional[bool] = Field(default=None)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        if v is None:
            return v
        return _normalize_tags(v)


class NoteResponse(BaseModel):
    """Note response schema."""

    id: uuid.UUID
    title: str
    content: str
    tags: List[str]
    pinned: bool
    word_count: int = Field(description="Whitespace-separated words in content")
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteListItem(BaseModel):
    """Simplified note schema for list views."""

    id: uuid.UUID
    title: str
    content_preview: str = Field(description="First 200 characters of content")
    tags: List[str]
    pinned: bool
    word_count: int
    created_at: datetime
    updated_at: datetime


class NoteListResponse(PaginationResponse[NoteListItem]):
    """Paginated note list response."""

    available_tags: Optional[List[str]] = Field(
        default=None, description="Tags available for filtering"
    )
