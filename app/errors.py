"""
ERRORS MODULE
=============

Exceptions raised by the chat services. The API layer (app.main) and the
terminal client (chat_cli) catch these and decide what the user gets to see.

  ChatError            - Base class for everything below.
  InvalidInput         - Client-side validation failed; never reaches the network.
  ConfigurationMissing - A required endpoint is not configured; retrying won't help.
  GatewayError         - The chat webhook call failed. `kind` says how:
      RemoteRejected   - Non-2xx status (detail = status text).
      Unreachable      - No response at all (connection error, timeout).
      MalformedReply   - Response body was not JSON.
  EmailLogFailed       - The email-logging call failed; carries the remote's message.
"""

from typing import Optional


class ChatError(Exception):
    """Base class for all chat front-end errors."""


class InvalidInput(ChatError):
    pass


class ConfigurationMissing(ChatError):
    pass


class GatewayError(ChatError):
    """
    The webhook call failed. `detail` is for operators (logs) only; `public_message`
    is safe to return to a client.
    """

    kind = "gateway_error"
    public_message = "The chat service failed to respond"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.public_message)
        self.detail = detail


class RemoteRejected(GatewayError):
    kind = "remote_rejected"
    public_message = "The chat service rejected the request"


class Unreachable(GatewayError):
    kind = "unreachable"
    public_message = "The chat service could not be reached"


class MalformedReply(GatewayError):
    kind = "malformed_reply"
    public_message = "The chat service sent an unreadable reply"


class EmailLogFailed(ChatError):
    """Logging the email entry failed. str(exc) is the remote's message when it sent one."""
