# src/smartplan/reminders/reminder_dispatcher.py

from __future__ import annotations

"""
Reminder dispatcher.

A small polling loop that:
- fetches due reminders,
- claims them (an entry cancelled or replaced meanwhile is skipped),
- sends the text via an injected messenger port,
- re-arms the reminder after a delay if sending fails.
"""

import asyncio
import logging
from datetime import timedelta

from ..core.ports import OutboundMessenger
from .reminder_scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


async def dispatch_due_reminders(
    scheduler: ReminderScheduler,
    messenger: OutboundMessenger,
    *,
    retry_delay_seconds: float = 60.0,
) -> int:
    """Run one dispatch pass. Returns the number of reminders delivered."""
    sent = 0
    for reminder in scheduler.due():
        if not scheduler.claim(reminder):
            continue

        try:
            await messenger.send_text(text=scheduler.message_for(reminder), to_user_id=reminder.user_id)
            sent += 1
            logger.info("Reminder delivered task_id=%s", reminder.task_id)
        except Exception:
            logger.exception("Reminder send failed task_id=%s", reminder.task_id)
            retry_at = scheduler.now() + timedelta(seconds=max(1.0, float(retry_delay_seconds)))
            scheduler.rearm(reminder, retry_at)
    return sent


async def run_reminder_dispatcher(
    scheduler: ReminderScheduler,
    messenger: OutboundMessenger,
    *,
    interval_seconds: float = 15.0,
    retry_delay_seconds: float = 60.0,
) -> None:
    """
    Poll every interval_seconds and deliver due reminders.

    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            await dispatch_due_reminders(scheduler, messenger, retry_delay_seconds=retry_delay_seconds)
        except Exception:
            logger.exception("Reminder dispatch pass failed")
        await asyncio.sleep(sleep_s)
