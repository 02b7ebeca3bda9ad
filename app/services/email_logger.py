"""
EMAIL LOGGER MODULE
===================

Forwards an email entry to the n8n workflow, which appends it to the Google
Sheet. This is the only logging collaborator: the IdentityStore calls it before
accepting an email, and POST /log-email calls it for browser clients.

Body: {"action": "log-email", "email", "sessionId", "timestamp"} plus "fields"
(the configured sheet column names) when any are set.
"""

import logging
from typing import Dict, Optional

import requests

from app.errors import ConfigurationMissing, EmailLogFailed
from app.services.webhook_gateway import build_headers
from app.utils.time_info import utc_timestamp
from config import EMAIL_LOG_URL, N8N_AUTH_TOKEN, REQUEST_TIMEOUT, SHEET_FIELD_NAMES

logger = logging.getLogger("Audit.me")

DEFAULT_FAILURE_MESSAGE = "Failed to log email"


def mask_email(email: str) -> str:
    """j***@example.com - enough to correlate log lines without storing the address."""
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}" if domain else "***"


def _remote_error_message(response: requests.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    message = data.get("error") or data.get("message")
    return str(message) if message else None


class EmailLogger:
    def __init__(
        self,
        log_url: str = EMAIL_LOG_URL,
        auth_token: str = N8N_AUTH_TOKEN,
        field_names: Optional[Dict[str, str]] = None,
        timeout: float = REQUEST_TIMEOUT,
        http: Optional[requests.Session] = None,
    ):
        self.log_url = log_url
        self.auth_token = auth_token
        self.field_names = dict(SHEET_FIELD_NAMES if field_names is None else field_names)
        self.timeout = timeout
        self.http = http or requests

    def log_email(self, email: str, session_id: str) -> None:
        """
        Log one email entry. Returns None on a 2xx answer; otherwise raises
        EmailLogFailed with the remote's "error"/"message" text when it sent one.
        """
        if not self.log_url:
            raise ConfigurationMissing("Email log URL not configured (set EMAIL_LOG_URL or N8N_WEBHOOK_URL)")

        body = {
            "action": "log-email",
            "email": email,
            "sessionId": session_id,
            "timestamp": utc_timestamp(),
        }
        if self.field_names:
            body["fields"] = dict(self.field_names)

        try:
            response = self.http.post(
                self.log_url,
                json=body,
                headers=build_headers(self.auth_token),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Email log request failed for %s: %s", mask_email(email), e)
            raise EmailLogFailed(DEFAULT_FAILURE_MESSAGE) from e

        if not response.ok:
            message = _remote_error_message(response) or DEFAULT_FAILURE_MESSAGE
            logger.error(
                "Email log rejected for %s: %s %s",
                mask_email(email), response.status_code, response.reason,
            )
            raise EmailLogFailed(message)

        logger.info("Email logged for session %s (%s)", session_id, mask_email(email))
