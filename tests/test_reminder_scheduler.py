# tests/test_reminder_scheduler.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from smartplan.reminders.reminder_scheduler import REMINDERS_KEY, ReminderScheduler
from smartplan.storage.backends import BlobCollectionBackend
from smartplan.storage.kv_store import InMemoryKeyValueStore
from smartplan.tasks.task_store import TaskRepository

from .conftest import NOW
from .fakes import BrokenKeyValueStore, FixedClock


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def reminders(kv: InMemoryKeyValueStore, clock: FixedClock) -> ReminderScheduler:
    return ReminderScheduler(kv, lead_minutes=5, now=clock)


@pytest.fixture()
def wired(kv: InMemoryKeyValueStore, reminders: ReminderScheduler, clock: FixedClock) -> TaskRepository:
    repo = TaskRepository(BlobCollectionBackend(kv, "smartplan:tasks"), now=clock)
    repo.subscribe(reminders.handle_task_event)
    return repo


def _draft(title: str, when: datetime, **extra) -> dict:
    return {"title": title, "priority": "High", "estimated_time": "30 mins", "scheduled_for": when, **extra}


def test_reminder_fires_five_minutes_before(reminders: ReminderScheduler) -> None:
    start = NOW + timedelta(hours=2)
    notif_id = reminders.schedule_reminder("task_1", "Standup", start, user_id="u1")

    assert notif_id is not None
    [r] = reminders.pending()
    assert r.fire_at == start - timedelta(minutes=5)
    assert r.notification_id == notif_id
    assert reminders.message_for(r) == "Task Starting Soon! ⏰ Standup starts in 5 minutes"


def test_reminder_in_the_past_is_skipped(reminders: ReminderScheduler) -> None:
    # Reminder time is exactly now: nothing to schedule.
    assert reminders.schedule_reminder("task_1", "Late", NOW + timedelta(minutes=5)) is None
    assert reminders.pending() == []


def test_rescheduling_replaces_previous_entry(reminders: ReminderScheduler) -> None:
    first = reminders.schedule_reminder("task_1", "A", NOW + timedelta(hours=1))
    second = reminders.schedule_reminder("task_1", "A", NOW + timedelta(hours=3))

    assert first != second
    [r] = reminders.pending()
    assert r.notification_id == second


def test_rescheduling_into_the_past_drops_old_entry(reminders: ReminderScheduler) -> None:
    reminders.schedule_reminder("task_1", "A", NOW + timedelta(hours=1))
    assert reminders.schedule_reminder("task_1", "A", NOW - timedelta(hours=1)) is None
    assert reminders.pending() == []


def test_cancel_and_cancel_all(reminders: ReminderScheduler, kv: InMemoryKeyValueStore) -> None:
    reminders.schedule_reminder("task_1", "A", NOW + timedelta(hours=1))
    reminders.schedule_reminder("task_2", "B", NOW + timedelta(hours=2))

    reminders.cancel_reminder("task_1")
    reminders.cancel_reminder("task_unknown")
    assert [r.task_id for r in reminders.pending()] == ["task_2"]

    reminders.cancel_all()
    assert reminders.pending() == []
    assert kv.get_item(REMINDERS_KEY) is None


def test_due_and_claim(reminders: ReminderScheduler, clock: FixedClock) -> None:
    reminders.schedule_reminder("task_1", "A", NOW + timedelta(minutes=20))
    reminders.schedule_reminder("task_2", "B", NOW + timedelta(hours=2))

    assert reminders.due() == []
    clock.advance(minutes=15)
    [r] = reminders.due()
    assert r.task_id == "task_1"

    assert reminders.claim(r) is True
    assert reminders.claim(r) is False
    assert [p.task_id for p in reminders.pending()] == ["task_2"]


def test_claim_refuses_replaced_entry(reminders: ReminderScheduler) -> None:
    reminders.schedule_reminder("task_1", "A", NOW + timedelta(minutes=20))
    [stale] = reminders.pending()
    reminders.schedule_reminder("task_1", "A", NOW + timedelta(minutes=40))

    assert reminders.claim(stale) is False
    assert len(reminders.pending()) == 1


def test_task_lifecycle_drives_reminders(wired: TaskRepository, reminders: ReminderScheduler) -> None:
    later = NOW + timedelta(hours=4)
    task_id = wired.create_task("u1", _draft("Write report", later))
    [r] = reminders.pending()
    assert (r.task_id, r.title, r.user_id) == (task_id, "Write report", "u1")

    wired.toggle_task_completion(task_id, True)
    assert reminders.pending() == []

    wired.toggle_task_completion(task_id, False)
    assert [p.task_id for p in reminders.pending()] == [task_id]

    wired.update_task(task_id, {"scheduledFor": later + timedelta(hours=1), "title": "Write final report"})
    [r] = reminders.pending()
    assert r.fire_at == later + timedelta(hours=1) - timedelta(minutes=5)
    assert r.title == "Write final report"

    wired.delete_task(task_id)
    assert reminders.pending() == []


def test_completed_or_past_tasks_get_no_reminder(wired: TaskRepository, reminders: ReminderScheduler) -> None:
    wired.create_task("u1", _draft("Done already", NOW + timedelta(hours=1), completed=True))
    wired.create_task("u1", _draft("Earlier today", NOW - timedelta(hours=1)))
    assert reminders.pending() == []


def test_broken_storage_never_raises(clock: FixedClock) -> None:
    broken = ReminderScheduler(BrokenKeyValueStore(), now=clock)

    assert broken.schedule_reminder("task_1", "A", NOW + timedelta(hours=1)) is None
    broken.cancel_reminder("task_1")
    broken.cancel_all()
    assert broken.pending() == []
    assert broken.due() == []


def test_task_writes_survive_broken_reminders(clock: FixedClock) -> None:
    repo = TaskRepository(BlobCollectionBackend(InMemoryKeyValueStore(), "smartplan:tasks"), now=clock)
    repo.subscribe(ReminderScheduler(BrokenKeyValueStore(), now=clock).handle_task_event)

    task_id = repo.create_task("u1", _draft("Still saved", NOW + timedelta(hours=1)))
    repo.toggle_task_completion(task_id, True)
    assert repo.get_task(task_id).completed is True
