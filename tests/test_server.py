"""Tests for the webhook server."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from wolbot import server
from wolbot.config import BotConfig
from wolbot.line.client import LineClient, LineClientError
from wolbot.line.messages import ERROR_TEXT
from wolbot.line.signature import compute_signature
from wolbot.router import CommandRouter

SECRET = "channel-secret"


@pytest.fixture()
def line_client():
    client = MagicMock(spec=LineClient)
    client.reply = AsyncMock()
    return client


@pytest.fixture()
def app_client(monkeypatch, tmp_path, registry, controller, line_client):
    monkeypatch.setattr(server, "_config", BotConfig(channel_secret=SECRET, data_dir=tmp_path))
    monkeypatch.setattr(server, "_router", CommandRouter(registry, controller))
    monkeypatch.setattr(server, "_line_client", line_client)
    return TestClient(server.app)


def _text_event(text: str, user_id: str = "U1234567890abc", token: str = "rt-1") -> dict:
    return {
        "type": "message",
        "replyToken": token,
        "source": {"type": "user", "userId": user_id},
        "message": {"type": "text", "id": "1", "text": text},
    }


def _post(client: TestClient, events: list[dict], secret: str = SECRET):
    body = json.dumps({"destination": "Uxxx", "events": events}).encode()
    return client.post(
        "/webhook",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Line-Signature": compute_signature(secret, body),
        },
    )


class TestHealth:
    def test_health(self, app_client):
        resp = app_client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "timestamp" in data


class TestWebhookSignature:
    def test_missing_signature(self, app_client, line_client):
        resp = app_client.post("/webhook", content=b'{"events": []}')
        assert resp.status_code == 401
        line_client.reply.assert_not_awaited()

    def test_wrong_secret(self, app_client):
        resp = _post(app_client, [_text_event("help")], secret="other")
        assert resp.status_code == 401

    def test_malformed_body(self, app_client):
        body = b'{"events": "nope"}'
        resp = app_client.post(
            "/webhook", content=body,
            headers={"X-Line-Signature": compute_signature(SECRET, body)},
        )
        assert resp.status_code == 400

    def test_empty_events_verification_call(self, app_client):
        resp = _post(app_client, [])
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "replied": 0}


class TestWebhookEvents:
    def test_register_and_reply(self, app_client, registry, line_client):
        resp = _post(app_client, [_text_event("#AA-BB-CC-DD-EE-FF")])
        assert resp.status_code == 200
        assert resp.json()["replied"] == 1
        assert registry.find("U1234567890abc").mac == "aa:bb:cc:dd:ee:ff"
        token, messages = line_client.reply.await_args.args
        assert token == "rt-1"
        assert messages[0]["type"] == "flex"

    def test_unknown_text_gets_no_reply(self, app_client, line_client):
        resp = _post(app_client, [_text_event("good morning")])
        assert resp.json()["replied"] == 0
        line_client.reply.assert_not_awaited()

    def test_non_text_events_are_skipped(self, app_client, line_client):
        events = [
            {"type": "follow", "replyToken": "rt-2", "source": {"type": "user", "userId": "U1"}},
            {
                "type": "message",
                "replyToken": "rt-3",
                "source": {"type": "user", "userId": "U1"},
                "message": {"type": "sticker", "id": "2", "packageId": "1", "stickerId": "1"},
            },
        ]
        resp = _post(app_client, events)
        assert resp.status_code == 200
        line_client.reply.assert_not_awaited()

    def test_several_events_in_one_delivery(self, app_client, line_client):
        resp = _post(app_client, [
            _text_event("help", user_id="UA", token="a"),
            _text_event("poweron", user_id="UB", token="b"),
        ])
        assert resp.json()["replied"] == 2
        tokens = sorted(call.args[0] for call in line_client.reply.await_args_list)
        assert tokens == ["a", "b"]

    def test_unexpected_error_sends_generic_reply(self, app_client, monkeypatch, line_client):
        broken = MagicMock()
        broken.handle = AsyncMock(side_effect=RuntimeError("boom"))
        monkeypatch.setattr(server, "_router", broken)
        resp = _post(app_client, [_text_event("status")])
        assert resp.status_code == 200
        _, messages = line_client.reply.await_args.args
        assert messages == [{"type": "text", "text": ERROR_TEXT}]

    def test_reply_failure_does_not_fail_delivery(self, app_client, line_client):
        line_client.reply.side_effect = LineClientError("Invalid reply token")
        resp = _post(app_client, [_text_event("help")])
        assert resp.status_code == 200
        assert resp.json()["replied"] == 0
