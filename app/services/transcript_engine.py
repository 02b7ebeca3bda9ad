"""
TRANSCRIPT ENGINE MODULE
========================

Owns the conversation shown to the user: an append-only list of Message
objects plus a flag saying whether a reply is pending.

TURN FLOW:
  Idle -> submit(text) -> user message appended immediately -> Awaiting
  Awaiting -> gateway reply    -> assistant message with the reply      -> Idle
  Awaiting -> gateway failure  -> assistant message with generic text   -> Idle (+ notification)
  Any state -> reset()         -> empty transcript                      -> Idle

RULES:
  - Blank text, or a submit while Awaiting, is ignored: nothing appended, nothing sent.
  - Exactly one assistant message per accepted user message.
  - Each request remembers the turn number it started on. reset() bumps the
    turn, so a reply that arrives after a reset is dropped instead of landing
    in the new conversation.
  - The gateway call runs in a worker thread (it uses requests); the event
    loop, and whatever UI is on it, keeps running meanwhile.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from app.errors import GatewayError, InvalidInput
from app.models import Message, Origin
from app.services.identity_store import IdentityStore
from app.services.webhook_gateway import WebhookGateway
from app.utils.time_info import get_time_millis
from config import ERROR_NOTIFICATION_TEXT, GENERIC_ERROR_TEXT, MAX_MESSAGE_LENGTH

logger = logging.getLogger("Audit.me")

Notifier = Callable[[str], None]


class TranscriptEngine:
    def __init__(
        self,
        gateway: WebhookGateway,
        identity: IdentityStore,
        notify: Optional[Notifier] = None,
        error_text: str = GENERIC_ERROR_TEXT,
        notification_text: str = ERROR_NOTIFICATION_TEXT,
    ):
        self.gateway = gateway
        self.identity = identity
        self.notify = notify
        self.error_text = error_text
        self.notification_text = notification_text

        self._messages: List[Message] = []
        self._awaiting = False
        self._turn = 0
        self._last_id = 0

    # ------------------------------------------------------------------------------
    # READ-ONLY STATE
    # ------------------------------------------------------------------------------

    @property
    def transcript(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_awaiting(self) -> bool:
        return self._awaiting

    # ------------------------------------------------------------------------------
    # INTERNALS
    # ------------------------------------------------------------------------------

    def _next_id(self) -> str:
        # Millisecond clock, bumped past the previous id when two land in the same ms.
        self._last_id = max(get_time_millis(), self._last_id + 1)
        return str(self._last_id)

    def _append(self, text: str, origin: Origin) -> Message:
        message = Message(id=self._next_id(), text=text, origin=origin, timestamp=datetime.now())
        self._messages.append(message)
        return message

    def _is_stale(self, turn: int) -> bool:
        return turn != self._turn

    def _fire_notification(self, text: str) -> None:
        if self.notify is not None:
            self.notify(text)

    def _close_with_error(self) -> Message:
        self._awaiting = False
        message = self._append(self.error_text, "assistant")
        self._fire_notification(self.notification_text)
        return message

    # ------------------------------------------------------------------------------
    # OPERATIONS
    # ------------------------------------------------------------------------------

    async def submit(self, text: str) -> Optional[Message]:
        """
        Send one user message. Returns the assistant message that closed the
        turn, or None when the submission was ignored or its turn was reset.

        Raises InvalidInput for an over-long message and ConfigurationMissing
        when the gateway has no URL; in both cases nothing is appended.
        """
        text = (text or "").strip()
        if not text or self._awaiting:
            return None
        if len(text) > MAX_MESSAGE_LENGTH:
            raise InvalidInput(f"Message is too long (max {MAX_MESSAGE_LENGTH:,} characters)")
        self.gateway.ensure_configured()

        identity = self.identity.identity()
        self._append(text, "user")
        self._turn += 1
        turn = self._turn
        self._awaiting = True

        try:
            reply = await asyncio.to_thread(self.gateway.send, text, identity.session_id, identity.email)
        except GatewayError as e:
            if self._is_stale(turn):
                logger.info("Dropping failed reply from superseded turn %d (%s)", turn, e.kind)
                return None
            logger.error("Webhook call failed (%s): %s", e.kind, e.detail)
            return self._close_with_error()
        except Exception:
            # Bad local settings (timeout, header encoding) surface here, not as GatewayError.
            if self._is_stale(turn):
                logger.exception("Dropping failed reply from superseded turn %d", turn)
                return None
            logger.exception("Webhook call raised unexpectedly")
            return self._close_with_error()
        except BaseException:
            # Cancellation: leave the turn to whoever cancelled it.
            if not self._is_stale(turn):
                self._awaiting = False
            raise

        if self._is_stale(turn):
            logger.info("Dropping reply from superseded turn %d", turn)
            return None
        self._awaiting = False
        return self._append(reply, "assistant")

    def reset(self) -> None:
        """Start a new chat: clear everything and invalidate any pending reply."""
        self._messages.clear()
        self._awaiting = False
        self._turn += 1
        logger.info("Transcript reset (turn %d)", self._turn)
