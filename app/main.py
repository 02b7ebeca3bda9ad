"""
AUDIT.ME RELAY API
==================

This module defines the FastAPI application that sits between a browser chat
client and the n8n workflow. The browser never sees the webhook URL or the
shared secret; it calls these endpoints and we forward.

ENDPOINTS:
  GET  /            - Returns API name and list of endpoints.
  GET  /health      - Returns whether the services are up and the webhook is configured.
  POST /chat        - Forward one message to the webhook, return the normalized reply.
  POST /log-email   - Forward an email entry to the workflow (Google Sheets logging).

ERRORS:
  Client mistakes (missing fields, bad email) get a 400 with a specific "error".
  Webhook failures get a 502 whose "message" names the failure kind only; the
  underlying detail goes to the log, never to the client.

STARTUP:
  The lifespan function builds one WebhookGateway and one EmailLogger from
  config. Both are stateless, so every request shares them.
"""


from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from app.errors import ConfigurationMissing, EmailLogFailed, GatewayError
from app.models import ChatRequest, ChatResponse, ErrorResponse, LogEmailRequest, LogEmailResponse
from app.services.email_logger import EmailLogger
from app.services.identity_store import is_valid_email
from app.services.webhook_gateway import WebhookGateway
from config import ASSISTANT_NAME


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("Audit.me")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCES
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by all route handlers.
webhook_gateway: WebhookGateway = None
email_logger: EmailLogger = None


def _error(status_code: int, error: str, message: str = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the gateway and email logger once; warn early if the webhook URL is missing."""
    global webhook_gateway, email_logger

    logger.info("=" * 60)
    logger.info("%s relay - Starting Up...", ASSISTANT_NAME)
    logger.info("=" * 60)

    webhook_gateway = WebhookGateway()
    email_logger = EmailLogger()

    if webhook_gateway.is_configured:
        logger.info("Webhook: configured")
    else:
        logger.warning("N8N_WEBHOOK_URL is not set. /chat will answer 500 until it is.")
    logger.info("Email log: %s", "configured" if email_logger.log_url else "not configured")

    yield

    logger.info("Shutting down %s relay", ASSISTANT_NAME)


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="Audit.me Relay API",
    description="Forwards chat messages and email entries to the n8n workflow",
    lifespan=lifespan
)

# Browser clients are served from another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["Content-Type"],
)


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    return {
        "message": "Audit.me Relay API",
        "endpoints": {
            "/chat": "Forward a chat message to the workflow",
            "/log-email": "Log an email entry",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "webhook_gateway": webhook_gateway is not None,
        "webhook_configured": bool(webhook_gateway and webhook_gateway.is_configured),
        "email_logger": email_logger is not None,
    }


@app.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """
    Forward one chat message.

    REQUEST BODY:
    {"message": "Hello", "sessionId": "3f0c...", "email": "you@example.com"}

    RESPONSE:
    {"success": true, "response": "Hi there!"}
    """
    message = (request.message or "").strip()
    session_id = (request.session_id or "").strip()
    email = (request.email or "").strip()
    if not (message and session_id and email):
        return _error(400, "Missing required fields: message, sessionId, and email")

    try:
        # requests is blocking; keep it off the event loop.
        reply = await run_in_threadpool(webhook_gateway.send, message, session_id, email)
    except ConfigurationMissing as e:
        logger.error("Cannot forward chat message: %s", e)
        return _error(500, "Failed to process chat message", "Webhook URL not configured")
    except GatewayError as e:
        logger.error("Error processing chat message (%s): %s", e.kind, e.detail)
        return _error(502, "Failed to process chat message", e.public_message)

    return ChatResponse(response=reply)


@app.post("/log-email", response_model=LogEmailResponse)
async def log_email(request: LogEmailRequest):
    """
    Log an email entry so the workflow can append it to the sheet.

    REQUEST BODY:
    {"email": "you@example.com", "sessionId": "3f0c..."}
    """
    email = (request.email or "").strip()
    session_id = (request.session_id or "").strip()
    if not email or not is_valid_email(email):
        return _error(400, "Invalid email address")
    if not session_id:
        return _error(400, "Session ID is required")

    try:
        await run_in_threadpool(email_logger.log_email, email, session_id)
    except ConfigurationMissing as e:
        logger.error("Cannot log email: %s", e)
        return _error(500, "Failed to log email", "Email log URL not configured")
    except EmailLogFailed as e:
        return _error(500, "Failed to log email", str(e))

    return LogEmailResponse(email=email, session_id=session_id)


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m app.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m app.main"""
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
