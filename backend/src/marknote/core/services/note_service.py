"""Note service implementation."""

from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ..logging import get_logger
from ..models.note import Note
from ..repositories.note_repository import NoteRepository
from ..schemas.notes import NoteCreate, NoteListItem, NoteListResponse, NoteResponse, NoteUpdate
from .interfaces import INoteService

logger = get_logger("services.notes")


class NoteService(INoteService):
    """Note service implementation. Every lookup is scoped to the owner."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.settings = get_settings()

    async def create_note(self, user_id: UUID, request: NoteCreate) -> NoteResponse:
        """Create new note."""
        note = await self.note_repo.create_note(
            {
                "title": request.title,
                "content": request.content,
                "tags": request.tags,
                "pinned": request.pinned,
                "owner_id": user_id,
            }
        )
        logger.info("Note created", extra={"note_id": str(note.id), "user_id": str(user_id)})
        return NoteResponse.model_validate(note)

    async def get_note(self, note_id: UUID, user_id: UUID) -> NoteResponse:
        """Get note by ID; notes of other users look absent."""
        note = await self.note_repo.get_by_id_and_user(note_id, user_id)
        if not note:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        return NoteResponse.model_validate(note)

    async def update_note(self, note_id: UUID, user_id: UUID, request: NoteUpdate) -> NoteResponse:
        """Update existing note."""
        update_data = request.model_dump(exclude_unset=True, exclude_none=True)
        note = await self.note_repo.update_note(note_id, user_id, update_data)
        if not note:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        return NoteResponse.model_validate(note)

    async def delete_note(self, note_id: UUID, user_id: UUID) -> bool:
        """Delete note."""
        if not await self.note_repo.delete_note(note_id, user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        return True

    async def list_user_notes(
        self,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
        tags: Optional[List[str]] = None,
    ) -> NoteListResponse:
        """List user notes with pagination.

        Notes come back pinned first, then most recently updated. With
        ``tags`` only notes carrying every one of them are listed.
        """
        if page < 1:
            page = 1
        if per_page < 1 or per_page > self.settings.max_page_size:
            per_page = self.settings.default_page_size

        notes = await self.note_repo.list_user_notes(user_id)
        wanted = {tag.strip().lower() for tag in tags or [] if tag.strip()}
        if wanted:
            notes = [note for note in notes if wanted.issubset(note.tags or [])]

        start = (page - 1) * per_page
        items = [self._to_list_item(note) for note in notes[start : start + per_page]]

        response = NoteListResponse.create(
            items=items, total=len(notes), page=page, per_page=per_page
        )
        response.available_tags = await self.note_repo.get_user_tags(user_id)
        return response

    async def get_available_tags(self, user_id: UUID) -> List[str]:
        """Get all user tags."""
        return await self.note_repo.get_user_tags(user_id)

    def _to_list_item(self, note: Note) -> NoteListItem:
        return NoteListItem(
            id=note.id,
            title=note.title,
            content_preview=note.preview,
            tags=list(note.tags or []),
            pinned=note.pinned,
            word_count=note.word_count,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )
