"""
RUN SCRIPT - Start the Audit.me relay server
============================================

PURPOSE:
  Single entry point to start the relay API that browser clients talk to.

WHAT IT DOES:
  - Imports the FastAPI app from app.main.
  - Runs it with uvicorn on host 0.0.0.0 and port 8000.
  - reload=True restarts the server when Python files change (development).

USAGE:
  python run.py

  API docs: http://localhost:8000/docs

NOTE:
  Before running, set N8N_WEBHOOK_URL (and optionally N8N_AUTH_TOKEN) in .env.
  For a terminal chat without a browser, use: python chat_cli.py
"""

import uvicorn

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
