# src/smartplan/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..core.clock import from_iso, parse_when, to_iso
from ..core.ports import Document
from ..errors import StoreError, ValidationError


class Priority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        """Case-insensitive; there is no implicit default."""
        if isinstance(raw, Priority):
            return raw
        key = str(raw or "").strip().lower()
        for p in cls:
            if p.value.lower() == key:
                return p
        raise ValidationError(f"priority must be one of High, Medium, Low (got {raw!r})")


class TaskEventKind(StrEnum):
    CREATED = "created"
    COMPLETED = "completed"
    REOPENED = "reopened"
    RESCHEDULED = "rescheduled"
    DELETED = "deleted"


def new_task_id() -> str:
    return f"task_{uuid.uuid4().hex}"


@dataclass(slots=True)
class Task:
    id: str
    user_id: str
    title: str
    priority: Priority
    estimated_time: str
    scheduled_for: datetime
    completed: bool
    created_at: datetime
    notes: str | None = None

    def to_doc(self) -> Document:
        doc: Document = {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "priority": self.priority.value,
            "estimatedTime": self.estimated_time,
            "scheduledFor": to_iso(self.scheduled_for),
            "completed": bool(self.completed),
            "createdAt": to_iso(self.created_at),
        }
        if self.notes is not None:
            doc["notes"] = self.notes
        return doc

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> Task:
        try:
            return cls(
                id=str(doc["id"]),
                user_id=str(doc["userId"]),
                title=str(doc.get("title") or ""),
                priority=Priority.parse(doc.get("priority")),
                estimated_time=str(doc.get("estimatedTime") or ""),
                scheduled_for=from_iso(str(doc["scheduledFor"])),
                completed=bool(doc.get("completed", False)),
                created_at=from_iso(str(doc["createdAt"])),
                notes=doc.get("notes"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed task record: {doc.get('id')!r}") from e


_TRUE_WORDS = {"1", "true", "yes", "y", "on"}
_FALSE_WORDS = {"0", "false", "no", "n", "off", ""}


def parse_completed(raw: Any) -> bool:
    """Real bools pass through; strings and 0/1 are read the way env switches are."""
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(f"completed must be true or false (got {raw!r})")


_DRAFT_ALIASES = {
    "estimatedTime": "estimated_time",
    "scheduledFor": "scheduled_for",
}


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """Input shape for task creation: a Task minus identity and ownership."""

    title: str
    priority: Priority
    estimated_time: str
    scheduled_for: datetime
    completed: bool = False
    notes: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TaskDraft:
        """Accepts camelCase (record shape) or snake_case keys."""
        norm = {_DRAFT_ALIASES.get(k, k): v for k, v in data.items()}
        missing = [k for k in ("title", "priority", "estimated_time", "scheduled_for") if k not in norm]
        if missing:
            raise ValidationError(f"missing required field(s): {', '.join(missing)}")
        try:
            scheduled_for = parse_when(norm["scheduled_for"])
        except ValueError as e:
            raise ValidationError(str(e)) from e
        notes = norm.get("notes")
        return cls(
            title=str(norm["title"] or ""),
            priority=Priority.parse(norm["priority"]),
            estimated_time=str(norm["estimated_time"] or ""),
            scheduled_for=scheduled_for,
            completed=parse_completed(norm.get("completed")),
            notes=None if notes is None else str(notes),
        )


@dataclass(slots=True, frozen=True)
class TaskEvent:
    """Lifecycle notification emitted by TaskRepository after a write."""

    kind: TaskEventKind
    task_id: str
    user_id: str
    title: str
    scheduled_for: datetime
    completed: bool

    @classmethod
    def of(cls, kind: TaskEventKind, task: Task) -> TaskEvent:
        return cls(
            kind=kind,
            task_id=task.id,
            user_id=task.user_id,
            title=task.title,
            scheduled_for=task.scheduled_for,
            completed=task.completed,
        )
