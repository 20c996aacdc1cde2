# src/smartplan/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..notes.note_store import NoteRepository
from ..planning.planner import AITaskPlan, TaskPlanner
from ..reminders.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskRepository
from .ports import LLMClient


@dataclass
class AppState:
    """Everything a connector needs, wired once in cli.bootstrap."""

    settings: Any
    user_id: str

    llm: LLMClient
    tasks: TaskRepository
    notes: NoteRepository
    reminders: ReminderScheduler
    planner: TaskPlanner

    # Plan shown to the user but not yet confirmed.
    pending_plan: AITaskPlan | None = None

    lock: threading.RLock = field(default_factory=threading.RLock)
