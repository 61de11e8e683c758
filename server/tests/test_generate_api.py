"""Tests for POST /api/generate and the reply lifecycle behind it."""

from __future__ import annotations

import pytest

from errors import CompletionError
from models.conversation import Conversation, Message


class TestGenerate:
    def test_round_trip(self, auth_client):
        conv = auth_client.post("/api/conversations", json={"title": "Trip"}).json()
        assert conv["title"] == "Trip"

        resp = auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conv["id"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["output"] == "hi there"
        assert data["messageId"]

        messages = auth_client.get(f"/api/conversations/{conv['id']}").json()
        assert [(m["role"], m["content"]) for m in messages] == [
            ("user", "hello"),
            ("assistant", "hi there"),
        ]
        assert messages[1]["id"] == data["messageId"]
        assert messages[0]["createdAt"] <= messages[1]["createdAt"]

    def test_first_prompt_sent_verbatim(self, auth_client, conversation, completion_client):
        auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        assert completion_client.prompts == ["hello"]

    def test_second_prompt_includes_history(self, auth_client, conversation, completion_client):
        auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        auth_client.post("/api/generate", json={"prompt": "again", "conversationId": conversation.id})
        second = completion_client.prompts[1]
        assert second.startswith("=== CONVERSATION HISTORY ===\nUSER: hello\n\nASSISTANT: hi there\n")
        assert second.endswith("USER: again\nASSISTANT:")
        # The in-flight prompt appears once, after the history block
        assert second.count("again") == 1

    def test_history_window_bounded(self, auth_client, db, conversation, completion_client, monkeypatch):
        from config import settings

        monkeypatch.setattr(settings, "HISTORY_WINDOW", 4)
        for i in range(6):
            db.add(Message(conversation_id=conversation.id, role="user", content=f"old-{i}"))
            db.commit()

        auth_client.post("/api/generate", json={"prompt": "now", "conversationId": conversation.id})
        prompt = completion_client.prompts[-1]
        assert "old-0" not in prompt and "old-1" not in prompt
        for i in range(2, 6):
            assert f"old-{i}" in prompt

    def test_bumps_updated_at(self, auth_client, db, conversation):
        before = conversation.updated_at
        auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        db.expire_all()
        assert db.get(Conversation, conversation.id).updated_at > before

    @pytest.mark.parametrize("body", [
        {"conversationId": "x"},
        {"prompt": "", "conversationId": "x"},
        {"prompt": "   ", "conversationId": "x"},
        {"prompt": "hello"},
    ])
    def test_missing_fields_400(self, auth_client, body, completion_client):
        resp = auth_client.post("/api/generate", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert completion_client.prompts == []

    def test_unknown_conversation_404(self, auth_client):
        resp = auth_client.post("/api/generate", json={"prompt": "hi", "conversationId": "missing"})
        assert resp.status_code == 404


class TestProviderFailure:
    def test_provider_error_keeps_user_message(self, auth_client, db, conversation, completion_client):
        completion_client.error = CompletionError("Rate limit exceeded")
        resp = auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Rate limit exceeded"}

        db.expire_all()
        rows = db.query(Message).filter(Message.conversation_id == conversation.id).all()
        assert [(m.role, m.content) for m in rows] == [("user", "hello")]

    def test_provider_status_passed_through(self, auth_client, conversation, completion_client):
        completion_client.error = CompletionError("Service unavailable", 503)
        resp = auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        assert resp.status_code == 503
        assert resp.json()["error"] == "Service unavailable"

    def test_provider_auth_failure_is_not_reported_as_401(self, auth_client, conversation, completion_client):
        completion_client.error = CompletionError("Invalid API key", 401)
        resp = auth_client.post("/api/generate", json={"prompt": "hello", "conversationId": conversation.id})
        assert resp.status_code == 502
        assert resp.json() == {"error": "Invalid API key"}
