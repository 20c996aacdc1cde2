# src/smartplan/planning/planner.py

"""
Natural-language task planning.

The hosted model does the understanding and conflict avoidance; this module
only builds the prompt, decodes the reply and checks its shape. Nothing here
touches storage: a plan becomes tasks only through an explicit confirmation
(see tasks.task_api.save_plan).
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

from ..core.ports import LLMClient
from ..errors import PlanDecodeError, PlanningError, PlanStructureError, ValidationError
from ..tasks.task_models import Priority, Task, TaskDraft

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = "You are a productivity AI assistant that answers with strict JSON only."

PLANNER_PROMPT_TEMPLATE = """
You are a productivity AI assistant. Analyze the following unstructured text and convert it into a structured task plan.

User Input:
{user_input}{existing}

IMPORTANT: Return ONLY valid JSON in this exact format (no markdown, no code blocks, no additional text):
{{
  "title": "Plan title",
  "overview": "Short explanation of what needs to be done",
  "tasks": [
    {{
      "task": "Task name/description",
      "priority": "High | Medium | Low",
      "estimatedTime": "e.g. 45 mins, 2 hours, 1 day",
      "scheduledFor": "YYYY-MM-DD",
      "notes": "Any additional context or notes"
    }}
  ],
  "conflicts": ["List any scheduling conflicts with existing tasks here"]
}}

Rules:
1. Break down the input into realistic, actionable tasks
2. Assign appropriate priority (High/Medium/Low)
3. Estimate realistic time for each task
4. Suggest a reasonable schedule starting from today ({today})
5. AVOID scheduling conflicts with existing tasks - choose different times/dates
6. If conflicts are unavoidable, list them in the "conflicts" array
7. Tasks should be specific and achievable
8. Return ONLY the JSON object, nothing else
""".strip()

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


@dataclass(slots=True, frozen=True)
class ExistingTaskSummary:
    """What the planner is told about a task that already exists."""

    title: str
    scheduled_for: date
    estimated_time: str
    priority: str

    @classmethod
    def from_task(cls, task: Task) -> ExistingTaskSummary:
        return cls(
            title=task.title,
            scheduled_for=task.scheduled_for.date(),
            estimated_time=task.estimated_time,
            priority=str(task.priority.value),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "scheduledFor": self.scheduled_for.isoformat(),
            "estimatedTime": self.estimated_time,
            "priority": self.priority,
        }


@dataclass(slots=True, frozen=True)
class PlannedTask:
    task: str
    priority: Priority
    estimated_time: str
    scheduled_for: date
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class AITaskPlan:
    """Transient planner output; it has no storage identity until confirmed."""

    title: str
    overview: str
    tasks: tuple[PlannedTask, ...]
    conflicts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def build_planning_prompt(
    user_input: str,
    existing: Iterable[ExistingTaskSummary] = (),
    *,
    today: date,
) -> str:
    lines = [
        f'- {t.scheduled_for.isoformat()}: "{t.title}" ({t.estimated_time}, Priority: {t.priority})'
        for t in existing
    ]
    existing_block = "\n\nEXISTING TASKS (avoid conflicts):\n" + "\n".join(lines) if lines else ""
    return PLANNER_PROMPT_TEMPLATE.format(
        user_input=user_input.strip(),
        existing=existing_block,
        today=today.isoformat(),
    )


def strip_code_fences(raw: str) -> str:
    """Remove a leading ``` / ```json line and a trailing ``` if present."""
    text = raw.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _parse_planned_task(idx: int, item: Any) -> PlannedTask:
    if not isinstance(item, dict):
        raise PlanStructureError(f"Invalid AI response structure: task #{idx + 1} is not an object")

    name = str(item.get("task") or "").strip()
    if not name:
        raise PlanStructureError(f"Invalid AI response structure: task #{idx + 1} has no name")

    try:
        priority = Priority.parse(item.get("priority"))
    except ValidationError as e:
        raise PlanStructureError(f"Invalid AI response structure: task #{idx + 1}: {e}") from e

    raw_date = str(item.get("scheduledFor") or "").strip()
    try:
        scheduled_for = date.fromisoformat(raw_date[:10])
    except ValueError as e:
        raise PlanStructureError(
            f"Invalid AI response structure: task #{idx + 1} has bad scheduledFor {raw_date!r}"
        ) from e

    estimated_time = str(item.get("estimatedTime") or "").strip()
    if not estimated_time:
        raise PlanStructureError(f"Invalid AI response structure: task #{idx + 1} has no estimatedTime")

    notes = item.get("notes")
    return PlannedTask(
        task=name,
        priority=priority,
        estimated_time=estimated_time,
        scheduled_for=scheduled_for,
        notes=None if notes is None else str(notes),
    )


def parse_plan_response(raw: str) -> AITaskPlan:
    """
    Decode a planner reply into an AITaskPlan.

    Raises PlanDecodeError for non-JSON and PlanStructureError when title,
    overview or the tasks array is missing. No partial plan is returned.
    """
    cleaned = strip_code_fences(raw or "")
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise PlanDecodeError("AI returned invalid JSON. Please try again.") from e

    if not isinstance(data, dict):
        raise PlanStructureError("Invalid AI response structure")

    title = data.get("title")
    overview = data.get("overview")
    tasks = data.get("tasks")
    if not title or not overview or not isinstance(tasks, list):
        raise PlanStructureError("Invalid AI response structure")

    raw_conflicts = data.get("conflicts") or []
    conflicts = tuple(str(c) for c in raw_conflicts if str(c).strip()) if isinstance(raw_conflicts, list) else ()

    return AITaskPlan(
        title=str(title),
        overview=str(overview),
        tasks=tuple(_parse_planned_task(i, t) for i, t in enumerate(tasks)),
        conflicts=conflicts,
    )


def plan_to_drafts(plan: AITaskPlan) -> list[TaskDraft]:
    """Confirmed plan items become pending tasks at local midnight of their date."""
    return [
        TaskDraft(
            title=t.task,
            priority=t.priority,
            estimated_time=t.estimated_time,
            scheduled_for=datetime.combine(t.scheduled_for, time.min),
            completed=False,
            notes=t.notes or "",
        )
        for t in plan.tasks
    ]


class TaskPlanner:
    def __init__(self, llm: LLMClient, *, today: Callable[[], date] | None = None) -> None:
        self._llm = llm
        self._today = today or date.today

    def analyze_and_plan(
        self,
        user_input: str,
        existing: Iterable[ExistingTaskSummary] = (),
    ) -> AITaskPlan:
        if not user_input or not user_input.strip():
            raise ValidationError("Describe what you want to plan.")

        prompt = build_planning_prompt(user_input, existing, today=self._today())
        try:
            reply = "".join(self._llm.stream_chat([{"role": "user", "content": prompt}], PLANNER_SYSTEM_PROMPT))
        except PlanningError:
            raise
        except RuntimeError as e:
            raise PlanningError(str(e) or "Failed to analyze input") from e

        if not reply.strip():
            raise PlanningError("No response from AI")

        plan = parse_plan_response(reply)
        logger.info("Plan ready title=%r tasks=%d conflicts=%d", plan.title, len(plan.tasks), len(plan.conflicts))
        return plan
