"""
Integration tests for the HTTP API.
Runs the app with its lifespan against a temporary database and a fake provider.
"""

import json

import pytest
from fastapi.testclient import TestClient

from groqchat.config import settings
from groqchat.main import app


def parse_sse(body: str):
    events = []
    for block in body.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            events.append(json.loads(block[len("data: "):]))
    return events


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_path", str(tmp_path / "api.db"))
    monkeypatch.setattr(settings, "export_dir", str(tmp_path / "exports"))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def service(client):
    return client.app.state.chat_service


class TestRoot:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_list_models(self, client):
        response = client.get("/models")
        assert response.status_code == 200
        models = response.json()
        assert len(models) == 6
        assert [m["id"] for m in models if m["supports_web_search"]] == ["llama-3.3-70b-versatile"]

    def test_initial_state(self, client):
        data = client.get("/chat/state").json()
        assert data["active_session_id"] == "default"
        assert data["use_web_search"] is False
        assert data["is_loading"] is False

    def test_default_session_registered_on_startup(self, client):
        sessions = client.get("/sessions").json()
        assert [s["id"] for s in sessions] == ["default"]


class TestChatAPI:
    """Tests for the send relay and chat controls."""

    def test_send_streams_cumulative_content(self, client, service, make_provider):
        service.llm_provider = make_provider(fragments=["Hel", "lo"])

        response = client.post("/chat/send", json={"text": "hi"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = parse_sse(response.text)
        assert [e["content"] for e in events if e["type"] == "content"] == ["Hel", "Hello"]
        assert events[-1] == {"type": "done", "content": "Hello", "cancelled": False}

        stored = client.get("/sessions/default/messages").json()
        assert [(m["is_user"], m["text"]) for m in stored] == [(True, "hi"), (False, "Hello")]
        cached = client.get("/sessions/active/messages").json()
        assert cached[-1]["text"] == "Hello"

    def test_send_while_streaming_conflicts(self, client, service):
        service._sending = True
        try:
            response = client.post("/chat/send", json={"text": "hi"})
        finally:
            service._sending = False
        assert response.status_code == 409

    def test_send_without_search_support_gets_notice(self, client, service, make_provider):
        service.llm_provider = make_provider(fragments=["ok"])
        assert client.post("/chat/model", json={"model_id": "llama-3.1-8b-instant"}).status_code == 200

        events = parse_sse(client.post("/chat/send", json={"text": "news?", "use_web_search": True}).text)

        assert events[0]["type"] == "notice"
        assert events[-1]["type"] == "done"
        assert service.llm_provider.calls[0]["tools"] is None

    def test_send_error_is_relayed(self, client, service):
        service.llm_provider = None
        events = parse_sse(client.post("/chat/send", json={"text": "hi"}).text)
        assert events[-1]["type"] == "error"
        assert events[-1]["content"].startswith("Error: ")

    def test_select_unknown_model(self, client):
        response = client.post("/chat/model", json={"model_id": "nope"})
        assert response.status_code == 400
        assert "Unknown model" in response.json()["detail"]

    def test_select_model_resets_toggle(self, client):
        assert client.post("/chat/web-search/toggle").json() == {"use_web_search": True}
        data = client.post("/chat/model", json={"model_id": "openai/gpt-oss-120b"}).json()
        assert data == {"selected_model": "openai/gpt-oss-120b", "use_web_search": False}

    def test_cancel_without_stream(self, client):
        assert client.post("/chat/cancel").json() == {"cancelled": False}

    def test_export(self, client, service, make_provider, tmp_path):
        service.llm_provider = make_provider(fragments=["4"])
        client.post("/chat/send", json={"text": "What is 2+2?"})

        response = client.post("/chat/export")

        assert response.status_code == 200
        path = response.json()["path"]
        assert path == str(tmp_path / "exports" / "groq_chat_export.md")
        with open(path, encoding="utf-8") as f:
            assert "**AI**: 4" in f.read()


class TestSessionsAPI:
    """Tests for session management endpoints."""

    def test_create_and_activate_session(self, client):
        response = client.post("/sessions")
        assert response.status_code == 201
        session_id = response.json()["session_id"]
        assert client.get("/chat/state").json()["active_session_id"] == session_id

        assert client.post("/sessions/default/activate").json() == []
        assert client.get("/chat/state").json()["active_session_id"] == "default"

    def test_delete_active_session_falls_back_to_default(self, client, service, make_provider):
        session_id = client.post("/sessions").json()["session_id"]
        service.llm_provider = make_provider(fragments=["x"])
        client.post("/chat/send", json={"text": "hello"})

        assert client.delete(f"/sessions/{session_id}").status_code == 204

        assert client.get("/chat/state").json()["active_session_id"] == "default"
        assert client.get(f"/sessions/{session_id}/messages").json() == []
        assert session_id not in [s["id"] for s in client.get("/sessions").json()]

    def test_clear_active_messages(self, client, service, make_provider):
        service.llm_provider = make_provider(fragments=["x"])
        client.post("/chat/send", json={"text": "hello"})

        assert client.delete("/sessions/active/messages").status_code == 204
        assert client.get("/sessions/active/messages").json() == []
        assert client.get("/sessions/default/messages").json() == []

    def test_clear_all_messages(self, client, service, make_provider):
        service.llm_provider = make_provider(fragments=["x"])
        client.post("/chat/send", json={"text": "hello"})
        client.post("/sessions")

        assert client.delete("/messages").status_code == 204
        assert client.get("/sessions/default/messages").json() == []
        assert len(client.get("/sessions").json()) == 2
