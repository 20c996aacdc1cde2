# src/smartplan/notes/note_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.clock import from_iso, to_iso
from ..core.ports import Document
from ..errors import StoreError


def new_note_id() -> str:
    return f"note_{uuid.uuid4().hex}"


@dataclass(slots=True)
class Note:
    id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime

    def to_doc(self) -> Document:
        return {
            "id": self.id,
            "userId": self.user_id,
            "content": self.content,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> Note:
        try:
            return cls(
                id=str(doc["id"]),
                user_id=str(doc["userId"]),
                content=str(doc.get("content") or ""),
                created_at=from_iso(str(doc["createdAt"])),
                updated_at=from_iso(str(doc["updatedAt"])),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed note record: {doc.get('id')!r}") from e


def describe_age(ts: datetime, now: datetime) -> str:
    """Short relative age used by the notes list ("5m ago", "2d ago", ...)."""
    diff_s = (now - ts).total_seconds()
    mins = int(diff_s // 60)
    hours = int(diff_s // 3600)
    days = int(diff_s // 86400)

    if mins < 1:
        return "Just now"
    if mins < 60:
        return f"{mins}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    return ts.date().isoformat()
