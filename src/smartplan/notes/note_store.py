# src/smartplan/notes/note_store.py

from __future__ import annotations

import logging

from ..core.clock import system_now
from ..core.ports import Clock, DocumentBackend
from ..errors import NotFoundError, ValidationError
from .note_models import Note, new_note_id

logger = logging.getLogger(__name__)


class NoteRepository:
    """Per-user freeform notes. Nothing is ever deleted implicitly."""

    def __init__(self, backend: DocumentBackend, *, now: Clock | None = None) -> None:
        self._backend = backend
        self._now: Clock = now or system_now

    @staticmethod
    def _clean_content(content: str) -> str:
        text = (content or "").strip()
        if not text:
            raise ValidationError("content is required")
        return text

    def create_note(self, user_id: str, content: str) -> str:
        if not user_id or not user_id.strip():
            raise ValidationError("user_id is required")
        text = self._clean_content(content)

        now = self._now()
        note = Note(id=new_note_id(), user_id=user_id, content=text, created_at=now, updated_at=now)
        self._backend.insert(note.to_doc())
        logger.debug("Note added id=%s user=%s", note.id, user_id)
        return note.id

    def get_notes(self, user_id: str) -> list[Note]:
        """Newest edit first."""
        notes = [Note.from_doc(d) for d in self._backend.list_by_owner(user_id)]
        notes = [n for n in notes if n.user_id == user_id]
        notes.sort(key=lambda n: n.updated_at, reverse=True)
        return notes

    def update_note(self, note_id: str, content: str) -> Note:
        text = self._clean_content(content)
        doc = self._backend.get(note_id)
        if doc is None:
            raise NotFoundError(f"Note not found: {note_id}")

        note = Note.from_doc(doc)
        note.content = text
        note.updated_at = self._now()
        if not self._backend.replace(note.id, note.to_doc()):
            raise NotFoundError(f"Note not found: {note_id}")
        logger.debug("Note updated id=%s", note.id)
        return note

    def delete_note(self, note_id: str) -> None:
        """Idempotent: deleting an unknown id is a no-op."""
        if self._backend.delete(note_id):
            logger.debug("Note deleted id=%s", note_id)
