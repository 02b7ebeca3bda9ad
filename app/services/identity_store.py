"""
IDENTITY STORE MODULE
=====================

Holds who is chatting: a durable session id and, once the email gate has been
passed, a verified email address. Both survive restarts through a small
key-value storage; the transcript does not.

KEYS:
  session_id  - Random UUID, created on first run, never regenerated while it exists.
  user_email  - Present only after a successful email log call. Absent => show the gate.

LIFECYCLE:
  - IdentityStore(storage, email_logger): restores both keys, creating the session id if missing.
  - set_email(candidate): validate -> log remotely -> persist. Any failure leaves state unchanged.
  - logout(): drops the email, keeps the session id for continuity.

One IdentityStore is built at startup and passed to whatever needs it (the
transcript engine, the terminal client); there is no module-level instance.
"""

import json
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Dict, Optional

from app.errors import ConfigurationMissing, InvalidInput
from app.models import SessionIdentity
from app.services.email_logger import EmailLogger, mask_email
from config import REQUIRE_CONSENT

logger = logging.getLogger("Audit.me")

SESSION_ID_KEY = "session_id"
EMAIL_KEY = "user_email"

# local-part @ domain-with-a-dot, no whitespace anywhere.
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(candidate: str) -> bool:
    return bool(EMAIL_PATTERN.match(candidate))


# ==============================================================================
# STORAGE BACKENDS
# ==============================================================================

class MemoryStorage:
    """Key-value storage that lives as long as the object. Used in tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(MemoryStorage):
    """
    Same as MemoryStorage but every change is written to a JSON file, and the
    file is read back on construction. An unreadable file is treated as empty
    (and logged) so a corrupt identity never blocks startup; the user just
    passes the gate again.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read identity file %s, starting fresh: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Identity file %s is not a JSON object, starting fresh", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self) -> None:
        # Write a sibling file and swap it in; the identity file is never half-written.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def _commit(self, previous: Dict[str, str]) -> None:
        """Persist the current data; on failure restore `previous` and re-raise."""
        try:
            self._save()
        except OSError as e:
            self._data = previous
            logger.error("Could not write identity file %s: %s", self.path, e)
            raise

    def set(self, key: str, value: str) -> None:
        previous = dict(self._data)
        super().set(key, value)
        self._commit(previous)

    def delete(self, key: str) -> None:
        previous = dict(self._data)
        super().delete(key)
        self._commit(previous)


# ==============================================================================
# IDENTITY STORE CLASS
# ==============================================================================

class IdentityStore:
    def __init__(
        self,
        storage: MemoryStorage,
        email_logger: Optional[EmailLogger] = None,
        require_consent: bool = REQUIRE_CONSENT,
    ):
        self.storage = storage
        self.email_logger = email_logger
        self.require_consent = require_consent
        self._session_id: Optional[str] = None
        # Session id first: an email is never held without one.
        self.get_or_create_session_id()
        self._email: Optional[str] = storage.get(EMAIL_KEY) or None

    def get_or_create_session_id(self) -> str:
        """Return the persisted session id, generating and persisting one if there is none."""
        if self._session_id:
            return self._session_id
        stored = self.storage.get(SESSION_ID_KEY)
        if stored:
            self._session_id = stored
        else:
            self._session_id = str(uuid.uuid4())
            self.storage.set(SESSION_ID_KEY, self._session_id)
            logger.info("Created new session %s", self._session_id)
        return self._session_id

    @property
    def session_id(self) -> str:
        return self.get_or_create_session_id()

    @property
    def email(self) -> Optional[str]:
        return self._email

    @property
    def is_authenticated(self) -> bool:
        return self._email is not None

    def identity(self) -> SessionIdentity:
        """Immutable snapshot, safe to hand to a request that outlives a logout."""
        return SessionIdentity(session_id=self.session_id, email=self._email)

    def set_email(self, candidate: str, consent: Optional[bool] = None) -> str:
        """
        Validate and record the user's email.

        Raises InvalidInput (bad address, or consent required but missing) before
        any network call; ConfigurationMissing if there is no logger; and lets
        EmailLogFailed from the logger propagate. Only a successful log call
        commits the email. Returns the stored (trimmed) address.
        """
        email = (candidate or "").strip()
        if not email:
            raise InvalidInput("Please enter your email address")
        if not is_valid_email(email):
            raise InvalidInput("Please enter a valid email address")
        if self.require_consent and not consent:
            raise InvalidInput("Please accept the privacy policy to continue")
        if self.email_logger is None:
            raise ConfigurationMissing("Email logging is not configured")

        self.email_logger.log_email(email, self.session_id)

        self.storage.set(EMAIL_KEY, email)
        self._email = email
        logger.info("Session %s verified as %s", self.session_id, mask_email(email))
        return email

    def logout(self) -> None:
        """Forget the email; the session id stays so a returning user keeps continuity."""
        self.storage.delete(EMAIL_KEY)
        self._email = None
        logger.info("Session %s logged out", self.session_id)
