# src/smartplan/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..errors import NotFoundError, PlanningError, SmartPlanError, StoreError, ValidationError
from ..llm.client import friendly_llm_error_message
from ..notes.note_models import describe_age
from ..planning.planner import AITaskPlan
from ..tasks.task_api import discard_plan, plan_for_user, save_plan
from ..tasks.task_models import Task, TaskDraft
from ..tasks.task_views import TaskFilter, filter_tasks, group_by_date

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, str], str]
CommandHandler3 = Callable[[AppState, str, CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Application errors become user-visible replies; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        name, _, rest = line[1:].strip().partition(" ")
        name = name.lower()
        if not name:
            return "Empty command. Use /help to list available commands."

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                return cast(CommandHandler3, handler)(state, rest.strip(), emit)
            return cast(CommandHandler2, handler)(state, rest.strip())
        except ValidationError as e:
            return f"Invalid input: {e}"
        except NotFoundError as e:
            return str(e)
        except PlanningError as e:
            logger.info("Planning failed: %s", e)
            return f"[PLAN] {friendly_llm_error_message(e)}"
        except StoreError as e:
            logger.error("Storage failure in /%s: %s", name, e)
            return f"Storage error: {e}"
        except SmartPlanError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def short_id(record_id: str) -> str:
    _, _, tail = record_id.partition("_")
    return (tail or record_id)[:SHORT_ID_LEN]


def _now() -> datetime:
    return datetime.now()


def render_task(task: Task) -> str:
    box = "[x]" if task.completed else "[ ]"
    when = task.scheduled_for.strftime("%H:%M")
    line = f"  {box} {short_id(task.id)}  {when}  {task.title}  ({task.priority.value}, {task.estimated_time})"
    if task.notes:
        line += f"\n        {task.notes}"
    return line


def render_plan(plan: AITaskPlan) -> str:
    lines = [plan.title, plan.overview, ""]
    for i, t in enumerate(plan.tasks, start=1):
        lines.append(f"{i}. {t.task}  [{t.priority.value}]  {t.estimated_time}  on {t.scheduled_for.isoformat()}")
        if t.notes:
            lines.append(f"   {t.notes}")
    if plan.conflicts:
        lines.append("")
        lines.append("Scheduling conflicts:")
        lines.extend(f"  - {c}" for c in plan.conflicts)
    lines.append("")
    lines.append("Use /confirm to save these tasks or /discard to drop the plan.")
    return "\n".join(lines)


# ---- id lookup ----


def _resolve(token: str, ids: list[str], what: str) -> str:
    token = token.strip()
    if not token:
        raise ValidationError(f"{what} id is required")
    if token in ids:
        return token
    matches = [i for i in ids if short_id(i).startswith(token) or i.startswith(token)]
    if not matches:
        raise NotFoundError(f"{what.capitalize()} not found: {token}")
    if len(matches) > 1:
        raise ValidationError(f"{what} id {token!r} is ambiguous ({len(matches)} matches)")
    return matches[0]


def resolve_task_id(state: AppState, token: str) -> str:
    return _resolve(token, [t.id for t in state.tasks.get_tasks(state.user_id)], "task")


def resolve_note_id(state: AppState, token: str) -> str:
    return _resolve(token, [n.id for n in state.notes.get_notes(state.user_id)], "note")


# ---- commands ----


def cmd_help(state: AppState, args: str) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: str) -> str:
    s = state.settings
    models = ", ".join(list(getattr(s, "llm_models", []) or []))
    pending = len(state.reminders.pending())
    return (
        "Status:\n"
        f"  User: {state.user_id}\n"
        f"  Storage: {getattr(s, 'storage_backend', '?')}\n"
        f"  Reminders: {'ON' if getattr(s, 'reminders_enabled', False) else 'OFF'} ({pending} pending)\n"
        f"  Planner: {type(state.llm).__name__}\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_tasks(state: AppState, args: str) -> str:
    """
    /tasks                 -> all tasks grouped by date
    /tasks today|upcoming|completed
    """
    try:
        which = TaskFilter.parse(args or None)
    except ValueError:
        return "Usage: /tasks [all|today|upcoming|completed]"

    tasks = filter_tasks(state.tasks.get_tasks(state.user_id), which, now=_now())
    if not tasks:
        return "No completed tasks yet." if which == TaskFilter.COMPLETED else "No tasks."

    lines: list[str] = []
    for day, items in group_by_date(tasks).items():
        lines.append(day.strftime("%a %Y-%m-%d"))
        lines.extend(render_task(t) for t in items)
    return "\n".join(lines)


def cmd_add(state: AppState, args: str) -> str:
    """/add <title> | <High|Medium|Low> | <estimated time> | <YYYY-MM-DD[ HH:MM]> [| notes]"""
    parts = [p.strip() for p in args.split("|")]
    if len(parts) < 4:
        return "Usage: /add <title> | <High|Medium|Low> | <estimated time> | <YYYY-MM-DD[ HH:MM]> [| notes]"

    draft = TaskDraft.from_mapping(
        {
            "title": parts[0],
            "priority": parts[1],
            "estimated_time": parts[2],
            "scheduled_for": parts[3],
            "notes": parts[4] if len(parts) > 4 and parts[4] else None,
        }
    )
    task_id = state.tasks.create_task(state.user_id, draft)
    return f"Task added: {short_id(task_id)}"


def cmd_done(state: AppState, args: str) -> str:
    task_id = resolve_task_id(state, args)
    state.tasks.toggle_task_completion(task_id, True)
    return f"Completed {short_id(task_id)}."


def cmd_undo(state: AppState, args: str) -> str:
    task_id = resolve_task_id(state, args)
    state.tasks.toggle_task_completion(task_id, False)
    return f"Reopened {short_id(task_id)}."


_EDIT_KEYS = {
    "title": "title",
    "priority": "priority",
    "time": "estimated_time",
    "estimated": "estimated_time",
    "when": "scheduled_for",
    "date": "scheduled_for",
    "notes": "notes",
}


def cmd_edit(state: AppState, args: str) -> str:
    """/edit <id> title=... | priority=... | time=... | when=... | notes=..."""
    token, _, rest = args.partition(" ")
    if not token or not rest.strip():
        return "Usage: /edit <id> title=... | priority=... | time=... | when=YYYY-MM-DD HH:MM | notes=..."

    updates: dict[str, str] = {}
    for pair in rest.split("|"):
        key, sep, value = pair.partition("=")
        key = key.strip().lower()
        if not sep or key not in _EDIT_KEYS:
            return f"Unknown field in {pair.strip()!r}. Fields: {', '.join(sorted(_EDIT_KEYS))}"
        updates[_EDIT_KEYS[key]] = value.strip()

    task_id = resolve_task_id(state, token)
    task = state.tasks.update_task(task_id, updates)
    return "Updated:\n" + render_task(task)


def cmd_del(state: AppState, args: str) -> str:
    task_id = resolve_task_id(state, args)
    state.tasks.delete_task(task_id)
    return f"Deleted {short_id(task_id)}."


def cmd_sweep(state: AppState, args: str) -> str:
    n = state.tasks.sweep_completed(state.user_id)
    return f"Removed {n} completed task(s) from previous days."


def cmd_notes(state: AppState, args: str) -> str:
    notes = state.notes.get_notes(state.user_id)
    if not notes:
        return "No notes yet. Add one with /note <text>."
    now = _now()
    return "\n".join(f"  {short_id(n.id)}  ({describe_age(n.updated_at, now)})  {n.content}" for n in notes)


def cmd_note(state: AppState, args: str) -> str:
    note_id = state.notes.create_note(state.user_id, args)
    return f"Note saved: {short_id(note_id)}"


def cmd_note_edit(state: AppState, args: str) -> str:
    token, _, text = args.partition(" ")
    if not token:
        return "Usage: /note-edit <id> <new text>"
    note = state.notes.update_note(resolve_note_id(state, token), text)
    return f"Note updated: {short_id(note.id)}"


def cmd_note_del(state: AppState, args: str) -> str:
    note_id = resolve_note_id(state, args)
    state.notes.delete_note(note_id)
    return f"Note deleted: {short_id(note_id)}"


def cmd_plan(state: AppState, args: str, emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /plan <describe what you need to get done>"
    if emit is not None:
        emit("[PLAN] Thinking...")
    plan = plan_for_user(state, args)
    return render_plan(plan)


def cmd_confirm(state: AppState, args: str) -> str:
    if state.pending_plan is None:
        return "No plan to confirm. Use /plan first."
    ids = save_plan(state)
    return f"Saved {len(ids)} task(s)."


def cmd_discard(state: AppState, args: str) -> str:
    return "Plan discarded." if discard_plan(state) else "No plan to discard."


def cmd_reminders(state: AppState, args: str) -> str:
    items = state.reminders.pending()
    if not items:
        return "No reminders scheduled."
    return "\n".join(f"  {r.fire_at.strftime('%Y-%m-%d %H:%M')}  {r.title}" for r in items)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings (user/storage/planner).")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [all|today|upcoming|completed].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add title | priority | time | YYYY-MM-DD HH:MM [| notes].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("undo", cmd_undo, help_text="Mark a task not completed: /undo <id>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value | ...")
registry.register("del", cmd_del, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("sweep", cmd_sweep, help_text="Remove completed tasks from previous days.")
registry.register("notes", cmd_notes, help_text="List notes, newest first.")
registry.register("note", cmd_note, help_text="Save a note: /note <text>.")
registry.register("note-edit", cmd_note_edit, help_text="Edit a note: /note-edit <id> <text>.")
registry.register("note-del", cmd_note_del, help_text="Delete a note: /note-del <id>.")
registry.register("plan", cmd_plan, help_text="Turn free text into a task plan: /plan <text>.")
registry.register("confirm", cmd_confirm, help_text="Save the pending plan as tasks.")
registry.register("discard", cmd_discard, help_text="Drop the pending plan.")
registry.register("reminders", cmd_reminders, help_text="Show scheduled reminders.")
