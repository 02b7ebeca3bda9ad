"""
Relay API: /chat and /log-email through FastAPI's TestClient.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app import main
from app.errors import EmailLogFailed, RemoteRejected
from app.services.email_logger import EmailLogger
from tests.conftest import FakeGateway

CHAT_BODY = {"message": "Hello", "sessionId": "session-1", "email": "a@b.co"}


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def fake_logger(monkeypatch, client) -> MagicMock:
    logger = MagicMock(spec=EmailLogger)
    monkeypatch.setattr(main, "email_logger", logger)
    return logger


def use_gateway(monkeypatch, gateway):
    monkeypatch.setattr(main, "webhook_gateway", gateway)
    return gateway


# Discovery
# --------------------------------------

def test_root_lists_endpoints(client):
    data = client.get("/").json()
    assert "/chat" in data["endpoints"]
    assert "/log-email" in data["endpoints"]


def test_health(client):
    data = client.get("/health").json()
    assert data["status"] == "healthy"
    assert data["webhook_gateway"] is True


# POST /chat
# --------------------------------------

def test_chat_returns_normalized_reply(client, monkeypatch):
    gateway = use_gateway(monkeypatch, FakeGateway(["Hi there!"]))
    resp = client.post("/chat", json=CHAT_BODY)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "response": "Hi there!"}
    assert gateway.calls == [("Hello", "session-1", "a@b.co")]


@pytest.mark.parametrize("missing", ["message", "sessionId", "email"])
def test_chat_missing_field(client, monkeypatch, missing):
    gateway = use_gateway(monkeypatch, FakeGateway())
    body = {k: v for k, v in CHAT_BODY.items() if k != missing}
    resp = client.post("/chat", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: message, sessionId, and email"
    assert gateway.calls == []


def test_chat_gateway_failure_does_not_leak_detail(client, monkeypatch):
    use_gateway(monkeypatch, FakeGateway([RemoteRejected("500 secret upstream detail")]))
    resp = client.post("/chat", json=CHAT_BODY)
    assert resp.status_code == 502
    data = resp.json()
    assert data["error"] == "Failed to process chat message"
    assert "secret" not in data["message"]


def test_chat_unconfigured_webhook(client, monkeypatch):
    use_gateway(monkeypatch, FakeGateway(webhook_url=""))
    resp = client.post("/chat", json=CHAT_BODY)
    assert resp.status_code == 500
    assert resp.json()["message"] == "Webhook URL not configured"


# POST /log-email
# --------------------------------------

def test_log_email_success(client, fake_logger):
    resp = client.post("/log-email", json={"email": "a@b.co", "sessionId": "session-1"})
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Email logged successfully",
        "email": "a@b.co",
        "sessionId": "session-1",
    }
    fake_logger.log_email.assert_called_once_with("a@b.co", "session-1")


def test_log_email_invalid_address(client, fake_logger):
    resp = client.post("/log-email", json={"email": "not-an-email", "sessionId": "session-1"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email address"
    fake_logger.log_email.assert_not_called()


def test_log_email_requires_session(client, fake_logger):
    resp = client.post("/log-email", json={"email": "a@b.co"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Session ID is required"


def test_log_email_remote_failure(client, fake_logger):
    fake_logger.log_email.side_effect = EmailLogFailed("Sheet unavailable")
    resp = client.post("/log-email", json={"email": "a@b.co", "sessionId": "session-1"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to log email", "message": "Sheet unavailable"}


def test_cors_allows_any_origin_without_credentials(client):
    resp = client.get("/", headers={"Origin": "https://chat.example.test"})
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in resp.headers
