# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from smartplan.core.ports import ChatMessage, OutboundMessenger


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text split into a few chunks
    """

    def __init__(self, next_text: str = "{}") -> None:
        self.next_text = next_text
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        step = max(1, len(self.next_text) // 3)
        for i in range(0, len(self.next_text), step):
            yield self.next_text[i : i + step]


class FailingLLMClient:
    def __init__(self, message: str = "All LLM models failed.") -> None:
        self.message = message

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        raise RuntimeError(self.message)


class FixedClock:
    """Settable clock; call it to read the current fake time."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass(slots=True)
class SentMessage:
    text: str
    to_user_id: str | None


@dataclass(slots=True)
class FakeMessenger(OutboundMessenger):
    """
    Fake OutboundMessenger used by reminder dispatcher tests.
    """

    sent: list[SentMessage] = field(default_factory=list)
    fail: bool = False

    async def send_text(self, *, text: str, to_user_id: str | None = None) -> None:
        if self.fail:
            raise ConnectionError("messenger down")
        self.sent.append(SentMessage(text=text, to_user_id=to_user_id))


class BrokenKeyValueStore:
    """Key-value store whose every call fails, for best-effort paths."""

    def get_item(self, key: str) -> str | None:
        raise OSError("storage unavailable")

    def set_item(self, key: str, value: str) -> None:
        raise OSError("storage unavailable")

    def remove_item(self, key: str) -> None:
        raise OSError("storage unavailable")
