"""
AUDIT.ME CHAT PACKAGE
=====================

The gated chat front-end: sends each user message to the n8n webhook and keeps
the replies in one ordered transcript.

  from app.main import app
  from app.services.transcript_engine import TranscriptEngine

FILE STRUCTURE:
  app/
    __init__.py   - This file; marks 'app' as a package.
    main.py       - FastAPI relay (/chat, /log-email, /health) for browser clients.
    models.py     - Pydantic models for messages, identity, and relay requests/responses.
    errors.py     - InvalidInput, ConfigurationMissing, GatewayError and its kinds.
    services/     - Identity store, webhook gateway, email logger, transcript engine.
    utils/        - Time helpers (message ids, webhook timestamps, display times).
"""
