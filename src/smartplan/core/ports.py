# src/smartplan/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Repositories depend on Protocols instead of concrete implementations.
This keeps storage backends, LLM providers and notification transports
swappable and makes testing easier.
"""

from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import Any, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.

Document = dict[str, Any]
# JSON-compatible record payload (camelCase keys, ISO date-times).

Clock = Callable[[], datetime]


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how background services (reminder dispatcher)
    deliver text to the user.
    """

    def send_text(self, *, text: str, to_user_id: str | None = None) -> Awaitable[None]: ...


class KeyValueStore(Protocol):
    """String key -> string value storage (device-local key-value blob store)."""

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class DocumentBackend(Protocol):
    """
    One collection of owned records.

    Every document carries "id" and "userId". The backend never filters by
    owner on its own: callers scope reads through list_by_owner().
    """

    def insert(self, doc: Document) -> None: ...
    def get(self, doc_id: str) -> Document | None: ...
    def replace(self, doc_id: str, doc: Document) -> bool: ...
    def delete(self, doc_id: str) -> bool: ...
    def delete_many(self, doc_ids: Iterable[str]) -> int: ...
    def list_by_owner(self, user_id: str) -> list[Document]: ...


class TaskEventListener(Protocol):
    """Receives task lifecycle events (see tasks.task_models.TaskEvent)."""
    def __call__(self, event: Any) -> None: ...
