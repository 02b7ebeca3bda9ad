import sys
import threading
from pathlib import Path
from typing import List, Optional
from unittest.mock import MagicMock

import pytest
import requests

# Add project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.services.email_logger import EmailLogger
from app.services.identity_store import IdentityStore, MemoryStorage
from app.services.webhook_gateway import WebhookGateway

WEBHOOK_URL = "https://n8n.example.test/webhook/chat"


def make_response(status: int = 200, body: bytes = b"{}", reason: str = "OK") -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.encoding = "utf-8"
    response._content = body
    return response


class FakeGateway(WebhookGateway):
    """
    WebhookGateway whose send() hands back queued replies. An Exception in the
    queue is raised instead. Clear `release` to hold send() until it is set again.
    """

    def __init__(self, replies: Optional[List] = None, webhook_url: str = WEBHOOK_URL):
        super().__init__(webhook_url=webhook_url, auth_token="", http=MagicMock(spec=requests.Session))
        self.replies = list(replies or [])
        self.calls = []
        self.release = threading.Event()
        self.release.set()

    def send(self, message, session_id, email=None):
        self.ensure_configured()
        self.calls.append((message, session_id, email))
        assert self.release.wait(timeout=5), "FakeGateway was never released"
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def email_logger() -> MagicMock:
    """An EmailLogger stand-in whose log_email succeeds unless told otherwise."""
    return MagicMock(spec=EmailLogger)


@pytest.fixture
def identity(storage, email_logger) -> IdentityStore:
    return IdentityStore(storage, email_logger=email_logger, require_consent=False)


@pytest.fixture
def verified_identity(identity) -> IdentityStore:
    identity.set_email("user@example.com")
    return identity


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)
