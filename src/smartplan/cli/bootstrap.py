# src/smartplan/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the storage layout (key-value blob vs. document rows),
- wires repositories, reminders and the planner into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import DocumentBackend, KeyValueStore, LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..notes.note_store import NoteRepository
from ..planning.planner import TaskPlanner
from ..reminders.reminder_scheduler import ReminderScheduler
from ..storage.backends import BlobCollectionBackend, SqliteDocumentBackend
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskRepository

logger = logging.getLogger(__name__)

TASKS_KEY = "smartplan:tasks"
NOTES_KEY = "smartplan:notes"


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.documents_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_backends(settings, kv: KeyValueStore) -> tuple[DocumentBackend, DocumentBackend]:
    """(tasks, notes) backends for the configured storage layout."""
    if settings.storage_backend == "documents":
        return (
            SqliteDocumentBackend(settings.documents_db_path, "tasks"),
            SqliteDocumentBackend(settings.documents_db_path, "notes"),
        )
    return BlobCollectionBackend(kv, TASKS_KEY), BlobCollectionBackend(kv, NOTES_KEY)


def create_initial_state(*, settings=None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if llm is None:
        try:
            llm = OpenRouterLLMClient(settings)
        except Exception:
            # Fallback for demos / local runs without external services.
            logger.info("No LLM configured; planner runs in offline demo mode.")
            llm = OfflineLLMClient()

    kv = SqliteKeyValueStore(settings.kv_db_path)
    task_backend, note_backend = build_backends(settings, kv)

    reminders = ReminderScheduler(kv, lead_minutes=settings.reminder_lead_minutes)
    tasks = TaskRepository(task_backend)
    if settings.reminders_enabled:
        tasks.subscribe(reminders.handle_task_event)

    state = AppState(
        settings=settings,
        user_id=settings.user_id,
        llm=llm,
        tasks=tasks,
        notes=NoteRepository(note_backend),
        reminders=reminders,
        planner=TaskPlanner(llm),
    )
    logger.info("State ready user=%s storage=%s", state.user_id, settings.storage_backend)
    return state
