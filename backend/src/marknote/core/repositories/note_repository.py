"""Note repository for database operations."""

import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note

logger = logging.getLogger(__name__)


def _coerce_uuid(value: Union[str, UUID]) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class NoteRepository:
    """Repository for note database operations, always scoped by owner."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(self, note_data: dict) -> Note:
        note = Note(**note_data)
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def get_by_id(self, note_id: UUID) -> Optional[Note]:
        stmt = select(Note).where(Note.id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id_and_user(self, note_id: UUID, user_id: UUID) -> Optional[Note]:
        """Get note by ID if owned by user."""
        stmt = select(Note).where(and_(Note.id == note_id, Note.owner_id == user_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_note(self, note_id: UUID, user_id: UUID, update_data: dict) -> Optional[Note]:
        """Apply ``update_data`` if the note is owned by user."""
        note = await self.get_by_id_and_user(note_id, user_id)
        if not note:
            return None

        for key, value in update_data.items():
            setattr(note, key, value)

        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def delete_note(self, note_id: UUID, user_id: UUID) -> bool:
        note = await self.get_by_id_and_user(note_id, user_id)
        if not note:
            logger.warning(f"Note {note_id} not found or not owned by user {user_id}")
            return False

        await self.session.delete(note)
        await self.session.commit()
        logger.info(f"Deleted note {note_id}")
        return True

    async def list_user_notes(self, user_id: UUID) -> List[Note]:
        """All notes of a user, pinned first, then most recently updated."""
        stmt = (
            select(Note)
            .where(Note.owner_id == user_id)
            .order_by(desc(Note.pinned), desc(Note.updated_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_user_tags(self, user_id: UUID) -> List[str]:
        """Sorted unique tags across the user's notes."""
        stmt = select(Note.tags).where(Note.owner_id == user_id)
        result = await self.session.execute(stmt)
        tags = set()
        for note_tags in result.scalars():
            tags.update(note_tags or [])
        return sorted(tags)

    async def exists(
        self, note_id: Union[str, UUID], owner_id: Optional[UUID] = None
    ) -> bool:
        """Whether a note with this id exists (and belongs to ``owner_id`` if given).

        Malformed ids never exist.
        """
        parsed = _coerce_uuid(note_id)
        if parsed is None:
            return False
        stmt = select(Note.id).where(Note.id == parsed)
        if owner_id is not None:
            stmt = stmt.where(Note.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
