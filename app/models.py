"""
DATA MODELS MODULE
==================

This file defines the Pydantic models used for the transcript, the persisted
identity, and the relay API's requests and responses. FastAPI uses the request
models to parse incoming JSON; the transcript engine builds Message objects.

MODELS:
  Message           - One entry in the transcript (id, text, origin, timestamp). Frozen.
  SessionIdentity   - Snapshot of the identity store: session_id + optional email.
  ChatRequest       - Body of POST /chat (message, sessionId, email).
  ChatResponse      - Body returned by POST /chat on success.
  LogEmailRequest   - Body of POST /log-email (email, sessionId).
  LogEmailResponse  - Body returned by POST /log-email on success.
  ErrorResponse     - Body returned by both endpoints on failure.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==============================================================================
# TRANSCRIPT AND IDENTITY
# ==============================================================================

Origin = Literal["user", "assistant"]


class Message(BaseModel):
    """
    A single transcript entry. Immutable once created; the transcript is
    append-only, so position in the list is the conversation order and
    timestamp is only used for display.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    text: str = Field(..., min_length=1)
    origin: Origin
    timestamp: datetime

    @property
    def is_user(self) -> bool:
        return self.origin == "user"


class SessionIdentity(BaseModel):
    """Who is chatting. email is None until the gate has been passed."""
    model_config = ConfigDict(frozen=True)

    session_id: str
    email: Optional[str] = None


# ==============================================================================
# RELAY API REQUEST/RESPONSE MODELS
# ==============================================================================
# Field names on the wire are camelCase (sessionId) to match the browser client;
# populate_by_name lets Python code use session_id as well.

class ChatRequest(BaseModel):
    """
    Request body for POST /chat. All three fields are required; they are
    Optional here so a missing field gets the 400 message below instead of a
    generic 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    email: Optional[str] = None


class ChatResponse(BaseModel):
    success: bool = True
    response: str


class LogEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class LogEmailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Email logged successfully"
    email: str
    session_id: str = Field(..., alias="sessionId")


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
