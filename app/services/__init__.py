"""
SERVICES PACKAGE
=================

Business logic lives here. The relay API (app.main) and the terminal client
(chat_cli) call these services; they don't render anything.

MODULES:
    identity_store    - Session id + verified email, persisted across restarts; the email gate.
    email_logger      - Forwards email entries to the workflow (the only logging collaborator).
    webhook_gateway   - One POST per chat message; normalizes the reply or raises a typed error.
    transcript_engine - Ordered transcript, one request in flight, stale replies dropped on reset.
"""
