"""
Tests for the HTTP API.
"""

import json

import pytest
from fastapi.testclient import TestClient

from legal_agent.agent import LegalAgent
from legal_agent.api import create_app
from legal_agent.llm.base import LLMMessage


def _events(body: str) -> list[dict]:
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


@pytest.fixture
def agent(settings, registry, fake_llm) -> LegalAgent:
    return LegalAgent(settings=settings, session_registry=registry, llm=fake_llm)


@pytest.fixture
def client(settings, agent) -> TestClient:
    with TestClient(create_app(settings=settings, agent=agent)) as test_client:
        yield test_client


def test_health(client: TestClient):
    """Test the health endpoint after startup initialization."""
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["agent_ready"] is True
    assert body["model"] == "test-model"


def test_chat_with_session(client: TestClient, registry):
    """Test a buffered chat round trip."""
    response = client.post("/api/chat", json={"query": "What is a tort?", "session_id": "s1"})

    assert response.status_code == 200
    assert response.json() == {"response": "Hello, world", "session_id": "s1"}
    assert len(registry.get_messages("s1")) == 2


def test_chat_generates_session_id(client: TestClient):
    """Test that the API returns the generated session id."""
    response = client.post("/api/chat", json={"query": "Hello"})

    assert response.status_code == 200
    assert response.json()["session_id"].startswith("session_")


def test_chat_rejects_empty_query(client: TestClient):
    """Test request validation."""
    response = client.post("/api/chat", json={"query": ""})

    assert response.status_code == 422


def test_chat_failure_returns_502(settings, registry, llm_factory):
    """Test that model failures map to a gateway error."""
    agent = LegalAgent(settings=settings, session_registry=registry, llm=llm_factory(fail_after=0))

    with TestClient(create_app(settings=settings, agent=agent)) as client:
        response = client.post("/api/chat", json={"query": "Hello", "session_id": "s1"})

    assert response.status_code == 502
    assert "backend exploded" in response.json()["detail"]
    assert registry.get_messages("s1") == []


def test_chat_stream_events(client: TestClient, registry):
    """Test the server-sent event stream."""
    response = client.post("/api/chat/stream", json={"query": "Stream it", "session_id": "s1"})

    assert response.status_code == 200
    assert response.headers["x-session-id"] == "s1"
    events = _events(response.text)
    assert [e["type"] for e in events] == ["delta", "delta", "delta", "done"]
    assert events[-1]["content"] == "Hello, world"
    assert len(registry.get_messages("s1")) == 2


def test_chat_stream_error_event(settings, registry, llm_factory):
    """Test that a mid-stream failure ends with an error event."""
    agent = LegalAgent(settings=settings, session_registry=registry, llm=llm_factory(fail_after=1))

    with TestClient(create_app(settings=settings, agent=agent)) as client:
        response = client.post("/api/chat/stream", json={"query": "Hello", "session_id": "s1"})

    events = _events(response.text)
    assert [e["type"] for e in events] == ["delta", "error"]
    assert "backend exploded" in events[-1]["content"]
    assert registry.get_messages("s1") == []


def test_session_endpoints(client: TestClient, registry):
    """Test stats, context and clearing."""
    registry.add_message("s1", LLMMessage(role="user", content="hi"))

    stats = client.get("/api/sessions/stats").json()
    assert stats == {"session_count": 1, "total_message_count": 1, "sessions": {"s1": 1}}

    client.patch("/api/sessions/s1/context", json={"a": 1})
    updated = client.patch("/api/sessions/s1/context", json={"b": 2}).json()
    assert updated == {"session_id": "s1", "context": {"a": 1, "b": 2}}
    assert client.get("/api/sessions/s1/context").json()["context"] == {"a": 1, "b": 2}

    cleared = client.delete("/api/sessions/s1")
    assert cleared.json() == {"status": "cleared", "session_id": "s1"}
    assert registry.get_messages("s1") == []
    assert client.get("/api/sessions/s1/context").json()["context"] == {}
