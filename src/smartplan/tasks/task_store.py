# src/smartplan/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.clock import parse_when, system_now
from ..core.ports import Clock, DocumentBackend, TaskEventListener
from ..errors import NotFoundError, StoreError, ValidationError
from .retention import retention_cutoff, select_expired
from .task_models import Priority, Task, TaskDraft, TaskEvent, TaskEventKind, new_task_id

logger = logging.getLogger(__name__)

# Fields a caller may change after creation (camelCase aliases accepted).
_UPDATABLE = {
    "title": "title",
    "priority": "priority",
    "estimated_time": "estimated_time",
    "estimatedTime": "estimated_time",
    "scheduled_for": "scheduled_for",
    "scheduledFor": "scheduled_for",
    "notes": "notes",
}


class TaskRepository:
    """
    Per-user task CRUD on top of a DocumentBackend.

    Contracts:
    - every read and write is scoped by the caller-supplied user id or task id;
      the backend itself performs no authentication
    - get_tasks() sweeps expired completed tasks first, so reading may delete
    - lifecycle events go to subscribers after the write; a failing subscriber
      is logged and never fails the operation
    - no locking: concurrent updates of one record are last-writer-wins
    """

    def __init__(
        self,
        backend: DocumentBackend,
        *,
        now: Clock | None = None,
        listeners: Iterable[TaskEventListener] = (),
    ) -> None:
        self._backend = backend
        self._now: Clock = now or system_now
        self._listeners: list[TaskEventListener] = list(listeners)

    def subscribe(self, listener: TaskEventListener) -> None:
        self._listeners.append(listener)

    # ---- low-level helpers ----

    def _emit(self, kind: TaskEventKind, task: Task) -> None:
        event = TaskEvent.of(kind, task)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Task listener failed event=%s task_id=%s", kind.value, task.id)

    def _load(self, task_id: str) -> Task:
        if not task_id:
            raise ValidationError("task_id is required")
        doc = self._backend.get(task_id)
        if doc is None:
            raise NotFoundError(f"Task not found: {task_id}")
        return Task.from_doc(doc)

    @staticmethod
    def _coerce_draft(data: TaskDraft | Mapping[str, Any]) -> TaskDraft:
        draft = data if isinstance(data, TaskDraft) else TaskDraft.from_mapping(data)
        if not draft.title or not draft.title.strip():
            raise ValidationError("title is required")
        if not draft.estimated_time or not draft.estimated_time.strip():
            raise ValidationError("estimated_time is required")
        try:
            parse_when(draft.scheduled_for)
        except ValueError as e:
            raise ValidationError(f"scheduled_for: {e}") from e
        Priority.parse(draft.priority)
        return draft

    @staticmethod
    def _require_user(user_id: str) -> None:
        if not user_id or not str(user_id).strip():
            raise ValidationError("user_id is required")

    def _build(self, user_id: str, draft: TaskDraft) -> Task:
        return Task(
            id=new_task_id(),
            user_id=user_id,
            title=draft.title,
            priority=Priority.parse(draft.priority),
            estimated_time=draft.estimated_time,
            scheduled_for=parse_when(draft.scheduled_for),
            completed=bool(draft.completed),
            created_at=self._now(),
            notes=draft.notes,
        )

    def _insert(self, task: Task) -> None:
        self._backend.insert(task.to_doc())
        logger.debug(
            "Task added id=%s user=%s scheduled_for=%s completed=%s",
            task.id,
            task.user_id,
            task.scheduled_for,
            task.completed,
        )
        # Only pending work gets a reminder.
        if not task.completed:
            self._emit(TaskEventKind.CREATED, task)

    # ---- public API ----

    def create_task(self, user_id: str, data: TaskDraft | Mapping[str, Any]) -> str:
        self._require_user(user_id)
        task = self._build(user_id, self._coerce_draft(data))
        self._insert(task)
        return task.id

    def create_tasks(self, user_id: str, data_list: Iterable[TaskDraft | Mapping[str, Any]]) -> list[str]:
        """
        Create several tasks.

        All drafts are validated before the first write, so a validation error
        persists nothing. Writes are not transactional: if the store fails
        midway, the tasks written so far stay and the error propagates.
        """
        self._require_user(user_id)
        drafts = [self._coerce_draft(d) for d in data_list]

        ids: list[str] = []
        for draft in drafts:
            task = self._build(user_id, draft)
            try:
                self._insert(task)
            except StoreError:
                logger.error(
                    "Bulk create stopped after %d/%d tasks user=%s", len(ids), len(drafts), user_id
                )
                raise
            ids.append(task.id)
        logger.info("Created %d tasks user=%s", len(ids), user_id)
        return ids

    def get_task(self, task_id: str) -> Task | None:
        doc = self._backend.get(task_id)
        return Task.from_doc(doc) if doc is not None else None

    def get_tasks(self, user_id: str) -> list[Task]:
        """
        All tasks owned by user_id, ascending by scheduled time.

        Runs the retention sweep first. A sweep failure is logged and the
        read continues.
        """
        self._require_user(user_id)
        try:
            self.sweep_completed(user_id)
        except Exception:
            logger.exception("Retention sweep failed user=%s", user_id)

        tasks = [Task.from_doc(d) for d in self._backend.list_by_owner(user_id)]
        tasks = [t for t in tasks if t.user_id == user_id]
        tasks.sort(key=lambda t: (t.scheduled_for, t.created_at))
        return tasks

    def sweep_completed(self, user_id: str) -> int:
        """
        Delete this user's completed tasks scheduled before today's local midnight.

        Returns the number of deleted records.
        """
        self._require_user(user_id)
        cutoff = retention_cutoff(self._now())
        owned = [Task.from_doc(d) for d in self._backend.list_by_owner(user_id)]
        expired = select_expired((t for t in owned if t.user_id == user_id), cutoff)
        if not expired:
            return 0

        deleted = self._backend.delete_many(t.id for t in expired)
        for t in expired:
            self._emit(TaskEventKind.DELETED, t)
        logger.info("Cleaned up %d old completed tasks user=%s", deleted, user_id)
        return deleted

    def toggle_task_completion(self, task_id: str, completed: bool) -> None:
        task = self._load(task_id)
        task.completed = bool(completed)
        if not self._backend.replace(task.id, task.to_doc()):
            raise NotFoundError(f"Task not found: {task_id}")

        logger.debug("Task %s completed=%s", task.id, task.completed)
        self._emit(TaskEventKind.COMPLETED if task.completed else TaskEventKind.REOPENED, task)

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        """
        Merge updates into the stored record and return the result.

        Identity, owner, creation time and completion are not updatable here.
        """
        changes = self._validate_updates(updates)
        task = self._load(task_id)

        for field_name, value in changes.items():
            setattr(task, field_name, value)

        if not self._backend.replace(task.id, task.to_doc()):
            raise NotFoundError(f"Task not found: {task_id}")

        logger.debug("Task %s updated fields=%s", task.id, sorted(changes))
        if not task.completed and ("title" in changes or "scheduled_for" in changes):
            self._emit(TaskEventKind.RESCHEDULED, task)
        return task

    def delete_task(self, task_id: str) -> None:
        """Idempotent: deleting an unknown id is a no-op."""
        doc = self._backend.get(task_id)
        if doc is None:
            logger.debug("delete_task: no task id=%s", task_id)
            return

        self._emit(TaskEventKind.DELETED, Task.from_doc(doc))
        self._backend.delete(task_id)
        logger.debug("Task deleted id=%s", task_id)

    # ---- validation ----

    @staticmethod
    def _validate_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
        unknown = sorted(k for k in updates if k not in _UPDATABLE)
        if unknown:
            raise ValidationError(f"field(s) not updatable: {', '.join(unknown)}")

        out: dict[str, Any] = {}
        for key, value in updates.items():
            name = _UPDATABLE[key]
            if name in ("title", "estimated_time"):
                if value is None or not str(value).strip():
                    raise ValidationError(f"{name} must not be empty")
                out[name] = str(value)
            elif name == "priority":
                out[name] = Priority.parse(value)
            elif name == "scheduled_for":
                try:
                    out[name] = parse_when(value)
                except ValueError as e:
                    raise ValidationError(str(e)) from e
            else:
                out[name] = None if value is None else str(value)
        return out
