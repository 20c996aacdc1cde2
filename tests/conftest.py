# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from smartplan.core.state import AppState
from smartplan.notes.note_store import NoteRepository
from smartplan.planning.planner import TaskPlanner
from smartplan.reminders.reminder_scheduler import ReminderScheduler
from smartplan.storage.backends import BlobCollectionBackend, SqliteDocumentBackend
from smartplan.storage.kv_store import InMemoryKeyValueStore, SqliteKeyValueStore
from smartplan.tasks.task_store import TaskRepository

from .fakes import FakeLLMClient, FixedClock

# Monday, mid-morning: "today" for every repository test.
NOW = datetime(2026, 10, 19, 10, 30)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture(params=["kv", "documents"])
def task_backend(request, tmp_path: Path):
    """
    Both storage layouts; repository rules must not depend on the choice.
    """
    if request.param == "kv":
        return BlobCollectionBackend(SqliteKeyValueStore(tmp_path / "kv.sqlite3"), "smartplan:tasks")
    return SqliteDocumentBackend(tmp_path / "documents.sqlite3", "tasks")


@pytest.fixture()
def repo(task_backend, clock: FixedClock) -> TaskRepository:
    return TaskRepository(task_backend, now=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the command layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        user_id="u1",
        storage_backend="kv",
        data_dir=tmp_path,
        kv_db_path=tmp_path / "kv.sqlite3",
        documents_db_path=tmp_path / "documents.sqlite3",
        reminders_enabled=True,
        reminder_lead_minutes=5,
        reminder_poll_seconds=0.01,
        llm_models=["fake/model"],
    )


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FixedClock) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep a real in-memory blob store here because repository and
    reminder correctness is part of what we want to test.
    """
    kv = InMemoryKeyValueStore()
    reminders = ReminderScheduler(kv, lead_minutes=5, now=clock)
    tasks = TaskRepository(BlobCollectionBackend(kv, "smartplan:tasks"), now=clock)
    tasks.subscribe(reminders.handle_task_event)
    llm = FakeLLMClient()
    return AppState(
        settings=settings,
        user_id=settings.user_id,
        llm=llm,
        tasks=tasks,
        notes=NoteRepository(BlobCollectionBackend(kv, "smartplan:notes"), now=clock),
        reminders=reminders,
        planner=TaskPlanner(llm, today=lambda: NOW.date()),
    )
