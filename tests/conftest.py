"""Shared fixtures: test settings and a scriptable fake LLM."""

from typing import Any

import pytest

from chatmemory.config import Settings
from chatmemory.memory.store import InMemorySummaryStore


class FakeLLM:
    """Records every complete() call; replies or raises per call kind."""

    def __init__(
        self,
        reply: str = "Hello from the model",
        summary: str = "SUMMARY",
        reply_error: Exception | None = None,
        summary_error: Exception | None = None,
    ) -> None:
        self.reply = reply
        self.summary = summary
        self.reply_error = reply_error
        self.summary_error = summary_error
        self.calls: list[dict[str, Any]] = []

    @staticmethod
    def _is_summary_call(messages: list[dict[str, Any]]) -> bool:
        return "[New Messages]" in (messages[-1].get("content") or "")

    @property
    def summary_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if self._is_summary_call(c["messages"])]

    @property
    def reply_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if not self._is_summary_call(c["messages"])]

    async def complete(self, messages, max_tokens=None, timeout=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "timeout": timeout})
        if self._is_summary_call(messages):
            if self.summary_error:
                raise self.summary_error
            return {"role": "assistant", "content": self.summary}
        if self.reply_error:
            raise self.reply_error
        return {"role": "assistant", "content": self.reply}


def alternating_history(n: int) -> list[dict[str, str]]:
    return [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"}
        for i in range(n)
    ]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="test-key",
        llm_provider="mock",
        recent_limit=100,
        max_context_tokens=100_000,
        memory_backend="memory",
        memory_max_sessions=1000,
        memory_retain_sessions=500,
    )


@pytest.fixture
def store() -> InMemorySummaryStore:
    return InMemorySummaryStore(max_entries=1000, retain=500)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()
