# Markdown note owned by a single user
import re
import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID, StringListType

if TYPE_CHECKING:
    from .user import User

_WORD_RE = re.compile(r"\S+")


class Note(BaseModel):
    """Note with markdown content, tags and a pinned flag."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[List[str]] = mapped_column(StringListType, nullable=False, default=list)
    pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    owner: Mapped["User"] = relationship("User", back_populates="notes", lazy="noload")

    __table_args__ = (
        Index("idx_notes_owner_id", "owner_id"),
        Index("idx_notes_owner_pinned_updated", "owner_id", "pinned", "updated_at"),
        CheckConstraint("length(title) <= 200", name="ck_notes_title_len"),
    )

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', owner_id={self.owner_id})>"

    @property
    def word_count(self) -> int:
        return len(_WORD_RE.findall(self.content or ""))

    @property
    def preview(self) -> str:
        content = self.content or ""
        if len(content) <= 200:
            return content
        return content[:200] + "..."

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.owner_id == user_id
