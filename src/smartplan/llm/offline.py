# src/smartplan/llm/offline.py

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import date

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Planner prompts get a one-task plan built from the first line of the
    user's input, scheduled for today.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        request = _extract_user_input(user_text)
        title = (request.splitlines() or ["Offline plan"])[0].strip()[:80] or "Offline plan"

        plan = {
            "title": "Offline plan",
            "overview": (
                "Offline demo mode: no external LLM is configured. "
                "Set SMARTPLAN_OPENROUTER_API_KEY to enable real planning."
            ),
            "tasks": [
                {
                    "task": title,
                    "priority": "Medium",
                    "estimatedTime": "30 mins",
                    "scheduledFor": date.today().isoformat(),
                    "notes": "",
                }
            ],
            "conflicts": [],
        }
        yield json.dumps(plan, ensure_ascii=False)


def _extract_user_input(prompt: str) -> str:
    """Pull the "User Input:" section out of a planner prompt (whole text otherwise)."""
    marker = "User Input:"
    start = prompt.find(marker)
    if start == -1:
        return prompt.strip()
    body = prompt[start + len(marker):]
    for stop in ("\n\nEXISTING TASKS", "\n\nIMPORTANT:"):
        idx = body.find(stop)
        if idx != -1:
            body = body[:idx]
    return body.strip()
