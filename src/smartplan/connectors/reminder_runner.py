# src/smartplan/connectors/reminder_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..reminders.reminder_dispatcher import run_reminder_dispatcher

logger = logging.getLogger(__name__)


@dataclass
class ReminderBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Reminder loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_until_stopped(state: AppState, messenger: OutboundMessenger, stop_event: asyncio.Event) -> None:
    settings = state.settings
    dispatcher = asyncio.create_task(
        run_reminder_dispatcher(
            state.reminders,
            messenger,
            interval_seconds=float(getattr(settings, "reminder_poll_seconds", 15.0)),
        )
    )
    try:
        await stop_event.wait()
    finally:
        dispatcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await dispatcher
        logger.info("Reminder dispatcher stopped.")


def start_reminders_in_background(
    state: AppState,
    messenger: OutboundMessenger,
) -> ReminderBackgroundRunner | None:
    """
    Start the reminder dispatcher in a background thread.

    The console REPL blocks on input(), so the async dispatcher gets its own
    thread and event loop.
    """
    if not getattr(state.settings, "reminders_enabled", False):
        logger.info("Reminders disabled, not starting dispatcher.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_until_stopped(state, messenger, stop_event))
        except Exception:
            logger.exception("Reminder dispatcher thread crashed.")
        finally:
            loop.close()

    t = threading.Thread(target=runner, name="smartplan-reminders", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
