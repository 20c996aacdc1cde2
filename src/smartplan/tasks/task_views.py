# src/smartplan/tasks/task_views.py

"""Derived views over an already-loaded task list (no storage access)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from enum import StrEnum

from ..core.clock import next_day
from .task_models import Task


class TaskFilter(StrEnum):
    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: str | None) -> TaskFilter:
        if not raw:
            return cls.ALL
        return cls(raw.strip().lower())


def filter_tasks(tasks: Iterable[Task], which: TaskFilter, *, now: datetime) -> list[Task]:
    """
    - today: scheduled on today's date, not completed
    - upcoming: scheduled tomorrow or later, not completed
    - completed: completed, any date
    """
    today = now.date()
    tomorrow = next_day(today)

    if which == TaskFilter.TODAY:
        return [t for t in tasks if t.scheduled_for.date() == today and not t.completed]
    if which == TaskFilter.UPCOMING:
        return [t for t in tasks if t.scheduled_for.date() >= tomorrow and not t.completed]
    if which == TaskFilter.COMPLETED:
        return [t for t in tasks if t.completed]
    return list(tasks)


def group_by_date(tasks: Iterable[Task]) -> dict[date, list[Task]]:
    """Group by scheduled date; groups and members keep input order."""
    grouped: dict[date, list[Task]] = {}
    for t in tasks:
        grouped.setdefault(t.scheduled_for.date(), []).append(t)
    return grouped
