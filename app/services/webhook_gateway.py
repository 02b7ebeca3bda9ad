"""
WEBHOOK GATEWAY MODULE
======================

Sends one chat message to the n8n webhook and turns whatever comes back into a
single reply string. Used by the TranscriptEngine (terminal client) and by the
POST /chat relay endpoint.

REQUEST:
  One POST per call, JSON body:
    {"action": "chat", "message": ..., "sessionId": ..., "email": ..., "timestamp": ...}
  "email" is left out when the caller has none. If N8N_AUTH_TOKEN is set it
  goes in the "auth" header.

REPLY NORMALIZATION (extract_reply):
  The workflow answers with whatever shape its last node produced. We look at,
  in this order: "response", "message", "output", "text". The first one with a
  value wins. "message" set to "Workflow was started" is what n8n returns when
  the workflow is configured to answer immediately; it is not a reply, so we
  skip it. If nothing matches, the whole body is serialized back to JSON and
  shown as-is, so the user always sees something.

ERRORS:
  Non-2xx status       -> RemoteRejected (detail = "<code> <reason>")
  No response received -> Unreachable
  Body is not JSON     -> MalformedReply
  No webhook URL       -> ConfigurationMissing
  Nothing is retried here; the user decides whether to send again.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests

from app.errors import ConfigurationMissing, MalformedReply, RemoteRejected, Unreachable
from app.utils.time_info import utc_timestamp
from config import N8N_AUTH_TOKEN, N8N_WEBHOOK_URL, REQUEST_TIMEOUT

logger = logging.getLogger("Audit.me")

# Checked in this order; first usable value wins.
REPLY_FIELDS = ("response", "message", "output", "text")

# n8n's acknowledgement when the webhook responds before the workflow finishes.
WORKFLOW_STARTED = "Workflow was started"


# ==============================================================================
# REPLY NORMALIZATION
# ==============================================================================

def _js_numbers(value: Any) -> Any:
    """Whole floats become ints (1.0 -> 1), the way JavaScript prints numbers."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _js_numbers(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_js_numbers(v) for v in value]
    return value


def serialize_payload(payload: Any) -> str:
    """Compact JSON, no spaces after separators, non-ASCII kept as-is."""
    return json.dumps(_js_numbers(payload), separators=(",", ":"), ensure_ascii=False)


def extract_reply(payload: Any) -> str:
    """
    Pick the human-readable reply out of a decoded webhook body.

    Empty values (None, "", 0, empty containers) count as absent. A non-string
    value in a known field is serialized. Anything that is not a JSON object
    falls straight through to the serialized fallback.
    """
    if isinstance(payload, dict):
        for field in REPLY_FIELDS:
            value = payload.get(field)
            if not value:
                continue
            if field == "message" and value == WORKFLOW_STARTED:
                continue
            return value if isinstance(value, str) else serialize_payload(value)
    return serialize_payload(payload)


def build_headers(auth_token: str = "") -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if auth_token:
        headers["auth"] = auth_token
    return headers


# ==============================================================================
# WEBHOOK GATEWAY CLASS
# ==============================================================================

class WebhookGateway:
    """
    Stateless sender for chat messages. Every call is independent; ordering
    and the one-request-at-a-time rule belong to the caller.
    """

    def __init__(
        self,
        webhook_url: str = N8N_WEBHOOK_URL,
        auth_token: str = N8N_AUTH_TOKEN,
        timeout: float = REQUEST_TIMEOUT,
        http: Optional[requests.Session] = None,
    ):
        self.webhook_url = webhook_url
        self.auth_token = auth_token
        self.timeout = timeout
        # Default is the requests module itself: requests.post opens its own
        # session per call, so worker threads never share one. Tests pass a mock.
        self.http = http or requests

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    def ensure_configured(self) -> None:
        """Raise ConfigurationMissing if there is no webhook URL to send to."""
        if not self.is_configured:
            raise ConfigurationMissing("Webhook URL not configured (set N8N_WEBHOOK_URL)")

    def build_body(self, message: str, session_id: str, email: Optional[str] = None) -> Dict[str, Any]:
        body = {
            "action": "chat",
            "message": message,
            "sessionId": session_id,
            "timestamp": utc_timestamp(),
        }
        if email:
            body["email"] = email
        return body

    def send(self, message: str, session_id: str, email: Optional[str] = None) -> str:
        """
        POST the message once and return the normalized reply text.
        Raises a GatewayError subclass on failure, ConfigurationMissing if unset.
        """
        self.ensure_configured()
        body = self.build_body(message, session_id, email)

        try:
            response = self.http.post(
                self.webhook_url,
                json=body,
                headers=build_headers(self.auth_token),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise Unreachable(f"{type(e).__name__}: {e}") from e

        if not response.ok:
            raise RemoteRejected(f"{response.status_code} {response.reason or ''}".strip())

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedReply(f"Response is not JSON: {response.text[:200]!r}") from e

        reply = extract_reply(payload)
        logger.info("Webhook replied for session %s (%d chars)", session_id, len(reply))
        return reply
