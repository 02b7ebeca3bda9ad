"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all chat front-end settings: the n8n webhook endpoint, the
  optional shared secret, where the identity file lives, and the fixed strings
  the user sees when something goes wrong. Each deployment supplies its own
  .env; nothing here has logic attached, values are passed straight through.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so the webhook URL and token stay out of code).
  - Defines the database/ folder used to persist the session identity and creates it.
  - Exposes N8N_WEBHOOK_URL, N8N_AUTH_TOKEN and EMAIL_LOG_URL for the outbound calls.
  - Exposes the optional logging-sink field names (Google Sheets column names).
  - Holds the consent flag, request timeout, max message length and user-facing error texts.

USAGE:
  Import what you need: `from config import N8N_WEBHOOK_URL, REQUEST_TIMEOUT`
  Services take these as constructor defaults so tests can pass their own values.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


# -----------------------------------------------------------------------------
# BASE PATH
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).parent

# ============================================================================
# DATABASE PATHS
# ============================================================================
# Only the identity (session id + verified email) is persisted. The transcript
# itself lives in memory and is gone when the process exits.

DATABASE_DIR = BASE_DIR / "database"
IDENTITY_FILE = DATABASE_DIR / "identity.json"

DATABASE_DIR.mkdir(parents=True, exist_ok=True)

# ============================================================================
# N8N WEBHOOK CONFIGURATION
# ============================================================================
# N8N_WEBHOOK_URL: the single endpoint every chat message is POSTed to.
# N8N_AUTH_TOKEN: optional shared secret, sent as the "auth" header when set.
# EMAIL_LOG_URL: where email entries are logged; the same workflow handles both
#   actions by default, routed on the "action" field of the body.

N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL", "").strip()
N8N_AUTH_TOKEN = os.getenv("N8N_AUTH_TOKEN", "").strip()
EMAIL_LOG_URL = os.getenv("EMAIL_LOG_URL", "").strip() or N8N_WEBHOOK_URL

# Seconds to wait for the webhook before giving up. The workflow may call an
# LLM, so keep this generous.
DEFAULT_REQUEST_TIMEOUT = 30.0


def _load_request_timeout() -> float:
    """Read REQUEST_TIMEOUT; anything that is not a positive number falls back to the default."""
    raw = os.getenv("REQUEST_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("REQUEST_TIMEOUT is not a number, using %s seconds", DEFAULT_REQUEST_TIMEOUT)
        return DEFAULT_REQUEST_TIMEOUT
    if not timeout > 0:
        logger.warning("REQUEST_TIMEOUT must be positive, using %s seconds", DEFAULT_REQUEST_TIMEOUT)
        return DEFAULT_REQUEST_TIMEOUT
    return timeout


REQUEST_TIMEOUT = _load_request_timeout()

# ============================================================================
# LOGGING SINK FIELD NAMES
# ============================================================================
# Column names for the spreadsheet the workflow appends to. Only the ones that
# are set are forwarded, under "fields" in the email-log payload.

def _load_sheet_field_names() -> dict:
    """Read SHEET_*_FIELD variables and return {logical name: column name} for the ones set."""
    fields = {}
    for key in ("email", "session", "timestamp"):
        value = os.getenv(f"SHEET_{key.upper()}_FIELD", "").strip()
        if value:
            fields[key] = value
    return fields


SHEET_FIELD_NAMES = _load_sheet_field_names()

# ============================================================================
# EMAIL GATE
# ============================================================================
# When REQUIRE_CONSENT is on, set_email() refuses an address unless the user
# explicitly accepted the privacy policy.

REQUIRE_CONSENT = os.getenv("REQUIRE_CONSENT", "").strip().lower() in ("1", "true", "yes", "on")

# ============================================================================
# CHAT SETTINGS
# ============================================================================

ASSISTANT_NAME = (os.getenv("ASSISTANT_NAME", "").strip() or "BBB Assistant")

# Maximum length (characters) for a single user message.
MAX_MESSAGE_LENGTH = 32_000

# Shown in the transcript when the webhook call fails. Never includes the
# underlying error; that only goes to the log.
GENERIC_ERROR_TEXT = "Sorry, I'm having trouble connecting right now. Please try again."

# Transient notification fired alongside the error entry above.
ERROR_NOTIFICATION_TEXT = "Failed to send message. Please try again."
