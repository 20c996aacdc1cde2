# src/smartplan/tasks/retention.py

"""
Retention policy for finished work.

A task expires when it is completed AND scheduled strictly before the start
of the current local day. Pending tasks never expire, however old.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from ..core.clock import start_of_day
from .task_models import Task


def retention_cutoff(now: datetime) -> datetime:
    return start_of_day(now)


def is_expired(task: Task, cutoff: datetime) -> bool:
    # Strict: a completed task at exactly midnight today is kept.
    return task.completed and task.scheduled_for < cutoff


def select_expired(tasks: Iterable[Task], cutoff: datetime) -> list[Task]:
    return [t for t in tasks if is_expired(t, cutoff)]
