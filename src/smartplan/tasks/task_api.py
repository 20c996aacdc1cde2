# src/smartplan/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.state import AppState
from ..planning.planner import AITaskPlan, ExistingTaskSummary, plan_to_drafts

logger = logging.getLogger(__name__)


def existing_task_summaries(state: AppState) -> list[ExistingTaskSummary]:
    """Current user's tasks as the planner sees them (reading also runs the retention sweep)."""
    return [ExistingTaskSummary.from_task(t) for t in state.tasks.get_tasks(state.user_id)]


def plan_for_user(state: AppState, user_input: str) -> AITaskPlan:
    """
    Ask the planner for a plan that avoids the user's existing tasks.

    The plan is kept on state.pending_plan until save_plan() or discard_plan().
    """
    plan = state.planner.analyze_and_plan(user_input, existing_task_summaries(state))
    state.pending_plan = plan
    return plan


def save_plan(state: AppState, plan: AITaskPlan | None = None) -> list[str]:
    """Persist a confirmed plan as tasks. Returns the new task ids."""
    plan = plan or state.pending_plan
    if plan is None:
        return []

    ids = state.tasks.create_tasks(state.user_id, plan_to_drafts(plan))
    state.pending_plan = None
    logger.info("Saved plan %r as %d tasks user=%s", plan.title, len(ids), state.user_id)
    return ids


def discard_plan(state: AppState) -> bool:
    had = state.pending_plan is not None
    state.pending_plan = None
    return had
