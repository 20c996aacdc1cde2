# tests/test_commands.py

from __future__ import annotations

import json

from smartplan.cli.commands import CommandRegistry, registry, short_id


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    emitted: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return f"h2:{args}"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a  x y ") == "h2:x y"
    assert reg.handle(state, "/BEE", emit=emitted.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert emitted == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/tasks", "/add", "/plan", "/confirm", "/notes"):
        assert name in text


def test_add_list_done_delete(state) -> None:
    reply = registry.handle(state, "/add Pay rent | high | 10 mins | 2026-10-20 09:00 | via bank app") or ""
    assert reply.startswith("Task added: ")
    [task] = state.tasks.get_tasks("u1")
    assert task.notes == "via bank app"
    sid = short_id(task.id)

    listing = registry.handle(state, "/tasks") or ""
    assert "Tue 2026-10-20" in listing
    assert f"[ ] {sid}  09:00  Pay rent  (High, 10 mins)" in listing

    assert registry.handle(state, f"/done {sid[:4]}") == f"Completed {sid}."
    assert state.tasks.get_task(task.id).completed is True
    assert registry.handle(state, f"/undo {sid}") == f"Reopened {sid}."

    assert registry.handle(state, f"/rm {sid}") == f"Deleted {sid}."
    assert state.tasks.get_tasks("u1") == []


def test_add_reports_bad_input(state) -> None:
    assert (registry.handle(state, "/add only a title") or "").startswith("Usage:")
    assert (registry.handle(state, "/add X | urgent | 5 mins | 2026-10-20") or "").startswith("Invalid input:")
    assert state.tasks.get_tasks("u1") == []


def test_edit_task(state) -> None:
    registry.handle(state, "/add Pay rent | High | 10 mins | 2026-10-20 09:00")
    [task] = state.tasks.get_tasks("u1")

    reply = registry.handle(state, f"/edit {short_id(task.id)} title=Pay rent early | when=2026-10-20 08:00") or ""
    assert reply.startswith("Updated:")
    assert "08:00  Pay rent early" in reply

    assert "Unknown field" in (registry.handle(state, f"/edit {short_id(task.id)} owner=someone") or "")


def test_unknown_task_id(state) -> None:
    assert registry.handle(state, "/done deadbeef") == "Task not found: deadbeef"


def test_notes_commands(state) -> None:
    assert (registry.handle(state, "/note buy milk") or "").startswith("Note saved: ")
    [note] = state.notes.get_notes("u1")
    sid = short_id(note.id)

    assert "buy milk" in (registry.handle(state, "/notes") or "")
    assert registry.handle(state, f"/note-edit {sid} buy oat milk") == f"Note updated: {sid}"
    assert state.notes.get_notes("u1")[0].content == "buy oat milk"
    assert registry.handle(state, f"/note-del {sid}") == f"Note deleted: {sid}"
    assert registry.handle(state, "/notes") == "No notes yet. Add one with /note <text>."


def test_plan_then_confirm(state) -> None:
    state.llm.next_text = json.dumps(
        {
            "title": "Errands",
            "overview": "Saturday errands",
            "tasks": [
                {"task": "Groceries", "priority": "Medium", "estimatedTime": "1 hour", "scheduledFor": "2026-10-24"}
            ],
            "conflicts": ["Overlaps with football"],
        }
    )
    emitted: list[str] = []

    reply = registry.handle(state, "/plan errands on saturday", emit=emitted.append) or ""
    assert emitted == ["[PLAN] Thinking..."]
    assert "1. Groceries  [Medium]  1 hour  on 2026-10-24" in reply
    assert "Overlaps with football" in reply
    assert state.tasks.get_tasks("u1") == []

    assert registry.handle(state, "/confirm") == "Saved 1 task(s)."
    assert [t.title for t in state.tasks.get_tasks("u1")] == ["Groceries"]
    assert registry.handle(state, "/confirm") == "No plan to confirm. Use /plan first."


def test_plan_failure_is_reported(state) -> None:
    state.llm.next_text = "not json"
    reply = registry.handle(state, "/plan something") or ""
    assert reply.startswith("[PLAN] ")
    assert state.pending_plan is None


def test_reminders_command(state) -> None:
    assert registry.handle(state, "/reminders") == "No reminders scheduled."
    registry.handle(state, "/add Call mom | Low | 20 mins | 2026-10-19 18:00")
    assert registry.handle(state, "/reminders") == "  2026-10-19 17:55  Call mom"


def test_sweep_command_reports_count(state) -> None:
    registry.handle(state, "/add Old chore | Low | 5 mins | 2026-10-18 09:00")
    registry.handle(state, "/add Open chore | Low | 5 mins | 2026-10-18 10:00")
    [done, _] = state.tasks.get_tasks("u1")
    state.tasks.toggle_task_completion(done.id, True)

    assert registry.handle(state, "/sweep") == "Removed 1 completed task(s) from previous days."
    assert registry.handle(state, "/sweep") == "Removed 0 completed task(s) from previous days."
    assert [t.title for t in state.tasks.get_tasks("u1")] == ["Open chore"]
