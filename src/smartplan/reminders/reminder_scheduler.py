# src/smartplan/reminders/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Turns a task's scheduled time into a one-shot local notification that fires
`lead_minutes` before the task starts. Bookkeeping is a keyed table
(task id -> pending notification) persisted as JSON in a KeyValueStore.

Every public method is fire-and-forget: failures are logged, never raised,
so a broken reminder never blocks the task operation that triggered it.
"""

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ..core.clock import from_iso, system_now, to_iso, to_local_naive
from ..core.ports import Clock, KeyValueStore
from ..tasks.task_models import TaskEvent, TaskEventKind

logger = logging.getLogger(__name__)

REMINDERS_KEY = "smartplan:notification_ids"


@dataclass(slots=True, frozen=True)
class Reminder:
    task_id: str
    notification_id: str
    title: str
    fire_at: datetime
    scheduled_for: datetime
    user_id: str | None = None

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.notification_id,
            "title": self.title,
            "fireAt": to_iso(self.fire_at),
            "scheduledFor": to_iso(self.scheduled_for),
            "userId": self.user_id,
        }

    @classmethod
    def from_doc(cls, task_id: str, doc: dict[str, Any]) -> Reminder:
        return cls(
            task_id=task_id,
            notification_id=str(doc["id"]),
            title=str(doc.get("title") or ""),
            fire_at=from_iso(str(doc["fireAt"])),
            scheduled_for=from_iso(str(doc["scheduledFor"])),
            user_id=doc.get("userId"),
        )


class ReminderScheduler:
    def __init__(
        self,
        kv: KeyValueStore,
        *,
        lead_minutes: int = 5,
        now: Clock | None = None,
        key: str = REMINDERS_KEY,
    ) -> None:
        self._kv = kv
        self._lead = timedelta(minutes=max(0, int(lead_minutes)))
        self._now: Clock = now or system_now
        self._key = key
        # The dispatcher thread and the console thread both touch the table.
        self._lock = threading.Lock()

    @property
    def lead_minutes(self) -> int:
        return int(self._lead.total_seconds() // 60)

    def now(self) -> datetime:
        return self._now()

    # ---- table persistence ----

    def _load_table(self) -> dict[str, dict[str, Any]]:
        raw = self._kv.get_item(self._key)
        if not raw:
            return {}
        data = json.loads(raw)
        return {str(k): v for k, v in data.items() if isinstance(v, dict)} if isinstance(data, dict) else {}

    def _save_table(self, table: dict[str, dict[str, Any]]) -> None:
        if table:
            self._kv.set_item(self._key, json.dumps(table, ensure_ascii=False))
        else:
            self._kv.remove_item(self._key)

    def _reminders(self) -> list[Reminder]:
        out: list[Reminder] = []
        for task_id, doc in self._load_table().items():
            try:
                out.append(Reminder.from_doc(task_id, doc))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping malformed reminder entry task_id=%s", task_id)
        return out

    # ---- public API ----

    def schedule_reminder(
        self,
        task_id: str,
        title: str,
        scheduled_for: datetime,
        *,
        user_id: str | None = None,
    ) -> str | None:
        """
        Replace any pending reminder for task_id with one at scheduled_for - lead.

        Returns the notification id, or None when the reminder time has
        already passed (or scheduling failed).
        """
        try:
            when = to_local_naive(scheduled_for)
            fire_at = when - self._lead
            with self._lock:
                table = self._load_table()
                had = table.pop(task_id, None)

                if fire_at <= self._now():
                    if had is not None:
                        self._save_table(table)
                    logger.info("Skipping reminder for %r - reminder time has passed", title)
                    return None

                reminder = Reminder(
                    task_id=task_id,
                    notification_id=f"notif_{uuid.uuid4().hex}",
                    title=title,
                    fire_at=fire_at,
                    scheduled_for=when,
                    user_id=user_id,
                )
                table[task_id] = reminder.to_doc()
                self._save_table(table)

            logger.info("Scheduled reminder for %r at %s", title, fire_at.strftime("%Y-%m-%d %H:%M"))
            return reminder.notification_id
        except Exception:
            logger.exception("Error scheduling reminder task_id=%s", task_id)
            return None

    def cancel_reminder(self, task_id: str) -> None:
        try:
            with self._lock:
                table = self._load_table()
                if table.pop(task_id, None) is None:
                    return
                self._save_table(table)
            logger.info("Cancelled reminder for task %s", task_id)
        except Exception:
            logger.exception("Error cancelling reminder task_id=%s", task_id)

    def cancel_all(self) -> None:
        try:
            with self._lock:
                self._kv.remove_item(self._key)
            logger.info("Cancelled all reminders")
        except Exception:
            logger.exception("Error cancelling all reminders")

    def pending(self) -> list[Reminder]:
        """All scheduled reminders, soonest first."""
        try:
            with self._lock:
                items = self._reminders()
        except Exception:
            logger.exception("Error reading reminders")
            return []
        items.sort(key=lambda r: r.fire_at)
        return items

    def due(self, now: datetime | None = None) -> list[Reminder]:
        cutoff = to_local_naive(now) if now is not None else self._now()
        return [r for r in self.pending() if r.fire_at <= cutoff]

    def claim(self, reminder: Reminder) -> bool:
        """
        Remove the entry if it still holds this notification.

        False means the reminder was cancelled or replaced in the meantime.
        """
        try:
            with self._lock:
                table = self._load_table()
                current = table.get(reminder.task_id)
                if current is None or current.get("id") != reminder.notification_id:
                    return False
                del table[reminder.task_id]
                self._save_table(table)
                return True
        except Exception:
            logger.exception("Error claiming reminder task_id=%s", reminder.task_id)
            return False

    def rearm(self, reminder: Reminder, fire_at: datetime) -> None:
        """Put a claimed reminder back (used after a failed delivery)."""
        try:
            with self._lock:
                table = self._load_table()
                if reminder.task_id in table:
                    # Rescheduled while we were sending; the newer entry wins.
                    return
                table[reminder.task_id] = Reminder(
                    task_id=reminder.task_id,
                    notification_id=reminder.notification_id,
                    title=reminder.title,
                    fire_at=to_local_naive(fire_at),
                    scheduled_for=reminder.scheduled_for,
                    user_id=reminder.user_id,
                ).to_doc()
                self._save_table(table)
        except Exception:
            logger.exception("Error re-arming reminder task_id=%s", reminder.task_id)

    def message_for(self, reminder: Reminder) -> str:
        return f"Task Starting Soon! ⏰ {reminder.title} starts in {self.lead_minutes} minutes"

    # ---- TaskRepository subscriber ----

    def handle_task_event(self, event: TaskEvent) -> None:
        if event.kind in (TaskEventKind.COMPLETED, TaskEventKind.DELETED):
            self.cancel_reminder(event.task_id)
            return

        if event.kind in (TaskEventKind.CREATED, TaskEventKind.REOPENED, TaskEventKind.RESCHEDULED):
            if event.completed:
                return
            self.schedule_reminder(
                event.task_id,
                event.title,
                event.scheduled_for,
                user_id=event.user_id,
            )
