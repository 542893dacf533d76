"""End-to-end tests for the HTTP surface using FastAPI's TestClient."""

from dataclasses import replace
from typing import Iterator
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_memory_store
from api.main import app
from api.routers import chat as chat_router
from chatmemory.config import Settings, get_settings
from chatmemory.llm.provider import LLMClient
from chatmemory.memory.store import InMemorySummaryStore
from conftest import FakeLLM, alternating_history


@pytest.fixture
def client(settings: Settings, store: InMemorySummaryStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_memory_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestChatScenarios:
    def test_simple_message_without_memory(self, client: TestClient) -> None:
        resp = client.post("/chat", json={"message": "hi"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["role"] == "assistant"
        assert isinstance(data["content"], str) and data["content"]
        assert data["memoryActive"] is False
        assert data["summary"] is None
        assert data["messageCount"] == 2

    def test_long_history_activates_memory(
        self, client: TestClient, store: InMemorySummaryStore
    ) -> None:
        resp = client.post("/chat", json={
            "message": "what did we discuss?",
            "history": alternating_history(120),
            "chatId": "chat-120",
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"]
        assert data["memoryActive"] is True
        assert data["messageCount"] == 102

        session = client.get("/v1/sessions/chat-120")
        assert session.status_code == 200
        assert session.json()["summary"] == data["summary"]

    def test_missing_message_is_rejected_before_any_llm_call(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        factory = MagicMock()
        monkeypatch.setattr(chat_router, "create_llm_client", factory)

        resp = client.post("/chat", json={"history": alternating_history(150), "chatId": "x"})

        assert resp.status_code == 400
        data = resp.json()
        assert data["role"] == "assistant"
        assert data["content"]
        assert data["error"] == "Message is required"
        factory.assert_not_called()

    def test_reply_timeout_returns_failure_shape(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        llm = LLMClient(provider="openrouter", api_key="test-key")
        llm.client = MagicMock()
        llm.client.chat.completions.create = AsyncMock(side_effect=openai.APITimeoutError(
            request=httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        ))
        monkeypatch.setattr(chat_router, "create_llm_client", lambda settings: llm)

        resp = client.post("/chat", json={"message": "hi"})

        assert resp.status_code == 500
        data = resp.json()
        assert data == {
            "role": "assistant",
            "content": chat_router.APOLOGY,
            "error": data["error"],
        }
        assert "timed out" in data["error"]


class TestChatErrors:
    def test_upstream_status_is_mirrored(
        self, client: TestClient, store: InMemorySummaryStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from chatmemory.errors import UpstreamError

        llm = FakeLLM(reply_error=UpstreamError("Rate limit exceeded", status_code=429))
        monkeypatch.setattr(chat_router, "create_llm_client", lambda settings: llm)

        resp = client.post("/chat", json={
            "message": "hi", "history": alternating_history(110), "chatId": "rl",
        })

        assert resp.status_code == 429
        assert resp.json()["error"] == "Rate limit exceeded"
        assert llm.summary_calls
        assert client.get("/v1/sessions/rl").json()["summary"] == "SUMMARY"

    def test_missing_api_key_is_configuration_error(
        self, client: TestClient, settings: Settings
    ) -> None:
        app.dependency_overrides[get_settings] = lambda: replace(
            settings, llm_provider="openrouter", api_key=None
        )

        resp = client.post("/chat", json={"message": "hi"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "Server configuration error"

    def test_malformed_body_uses_failure_shape(self, client: TestClient) -> None:
        resp = client.post("/chat", json={"message": "hi", "history": "not a list"})

        assert resp.status_code == 400
        data = resp.json()
        assert data["role"] == "assistant"
        assert data["error"] == "Invalid request body"

    def test_empty_message_is_rejected(self, client: TestClient) -> None:
        resp = client.post("/chat", json={"message": ""})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Message is required"

    def test_whitespace_message_is_sent_as_is(self, client: TestClient) -> None:
        resp = client.post("/chat", json={"message": "   "})

        assert resp.status_code == 200
        assert resp.json()["messageCount"] == 2

    def test_null_optional_fields_are_accepted(self, client: TestClient) -> None:
        resp = client.post("/chat", json={
            "message": "hi", "history": None, "summary": None, "chatId": None,
        })

        assert resp.status_code == 200
        data = resp.json()
        assert data["memoryActive"] is False
        assert data["messageCount"] == 2


class TestSessionsAndHealth:
    def test_client_summary_round_trip(self, client: TestClient) -> None:
        resp = client.post("/chat", json={
            "message": "hi", "chatId": "c9", "summary": "User is Ana.",
        })

        data = resp.json()
        assert data["summary"] == "User is Ana."
        assert data["memoryActive"] is True

    def test_session_lookup_and_delete(
        self, client: TestClient, store: InMemorySummaryStore
    ) -> None:
        assert client.get("/v1/sessions/missing").status_code == 404

        client.post("/chat", json={"message": "hi", "chatId": "s1",
                                   "history": alternating_history(101)})
        assert client.get("/v1/sessions/s1").status_code == 200

        resp = client.delete("/v1/sessions/s1")
        assert resp.json() == {"chatId": "s1", "deleted": True}
        assert client.get("/v1/sessions/s1").status_code == 404

    def test_root_and_health(self, client: TestClient, store: InMemorySummaryStore) -> None:
        assert client.get("/").json() == {"status": "Varta AI Backend is running"}

        health = client.get("/health").json()
        assert health["status"] == "healthy"
        assert health["memoryBackend"] == "memory"
        assert health["sessions"] == 0
