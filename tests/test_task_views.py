# tests/test_task_views.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from smartplan.tasks.retention import is_expired, retention_cutoff
from smartplan.tasks.task_models import Priority, Task
from smartplan.tasks.task_views import TaskFilter, filter_tasks, group_by_date

from .conftest import NOW


def _task(task_id: str, when: datetime, *, completed: bool = False) -> Task:
    return Task(
        id=task_id,
        user_id="u1",
        title=task_id,
        priority=Priority.MEDIUM,
        estimated_time="1 hour",
        scheduled_for=when,
        completed=completed,
        created_at=NOW,
    )


TASKS = [
    _task("yesterday-open", NOW - timedelta(days=1)),
    _task("today-open", NOW + timedelta(hours=2)),
    _task("today-done", NOW - timedelta(hours=1), completed=True),
    _task("tomorrow-open", NOW + timedelta(days=1)),
    _task("next-week-done", NOW + timedelta(days=7), completed=True),
]


@pytest.mark.parametrize(
    ("which", "expected"),
    [
        (TaskFilter.ALL, [t.id for t in TASKS]),
        (TaskFilter.TODAY, ["today-open"]),
        (TaskFilter.UPCOMING, ["tomorrow-open"]),
        (TaskFilter.COMPLETED, ["today-done", "next-week-done"]),
    ],
)
def test_filter_tasks(which: TaskFilter, expected: list[str]) -> None:
    assert [t.id for t in filter_tasks(TASKS, which, now=NOW)] == expected


def test_task_filter_parse() -> None:
    assert TaskFilter.parse(None) is TaskFilter.ALL
    assert TaskFilter.parse(" Today ") is TaskFilter.TODAY
    with pytest.raises(ValueError):
        TaskFilter.parse("someday")


def test_group_by_date_keeps_order() -> None:
    grouped = group_by_date(TASKS)
    assert list(grouped) == [
        date(2026, 10, 18),
        date(2026, 10, 19),
        date(2026, 10, 20),
        date(2026, 10, 26),
    ]
    assert [t.id for t in grouped[date(2026, 10, 19)]] == ["today-open", "today-done"]


def test_retention_cutoff_is_local_midnight() -> None:
    cutoff = retention_cutoff(NOW)
    assert cutoff == datetime(2026, 10, 19)

    assert is_expired(_task("a", cutoff - timedelta(microseconds=1), completed=True), cutoff)
    assert not is_expired(_task("b", cutoff, completed=True), cutoff)
    assert not is_expired(_task("c", cutoff - timedelta(days=3)), cutoff)
