"""
AUDIT.ME TERMINAL CHAT
======================

PURPOSE:
A terminal chat client that talks to the n8n workflow directly through the
WebhookGateway. It is the command-line counterpart of the browser front-end:
same email gate, same transcript rules, same error texts.

USAGE:
    python chat_cli.py

    N8N_WEBHOOK_URL must be set in .env. The session id and verified email are
    kept in database/identity.json, so the gate is skipped on the next run.

COMMANDS:
    /new     - Start a new chat (clears the transcript, keeps your email)
    /history - Show the transcript with times
    /logout  - Forget your email and return to the gate
    /quit or /exit - Exit

HOW IT WORKS:
1. If no verified email is stored, ask for one (and for consent if REQUIRE_CONSENT is on).
2. The email is logged remotely; only then is it saved and the chat opened.
3. Each message goes through TranscriptEngine.submit(); the reply (or the
   generic error text) is printed, and failures also print a notification line.
4. Operator detail (status codes, exceptions) goes to database/chat_cli.log.
"""

import asyncio
import logging

from app.errors import ChatError, ConfigurationMissing, InvalidInput
from app.models import Message
from app.services.email_logger import EmailLogger
from app.services.identity_store import IdentityStore, JsonFileStorage
from app.services.transcript_engine import TranscriptEngine
from app.services.webhook_gateway import WebhookGateway
from app.utils.time_info import format_display_time
from config import ASSISTANT_NAME, DATABASE_DIR, IDENTITY_FILE, REQUIRE_CONSENT


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
# Logs go to a file so error detail never lands in the chat itself.
logging.basicConfig(
    level=logging.INFO,
    filename=str(DATABASE_DIR / "chat_cli.log"),
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("Audit.me")


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header():
    print("\n" + "="*60)
    print(f"🤖 {ASSISTANT_NAME}")
    print("="*60)
    print("\nCommands:")
    print("  /new - Start a new chat")
    print("  /history - See chat history")
    print("  /logout - Forget your email")
    print("  /quit - Exit")
    print("="*60 + "\n")


def get_user_input(prompt: str = "\nYou: "):
    try:
        return input(prompt).strip()
    except (KeyboardInterrupt, EOFError):
        return None


def show_toast(text: str):
    """Transient notification, kept visually apart from the transcript."""
    print(f"\n  ⚠️  {text}")


def format_message(message: Message) -> str:
    who = "You" if message.is_user else ASSISTANT_NAME
    return f"[{format_display_time(message.timestamp)}] {who}: {message.text}"


def format_history(engine: TranscriptEngine) -> str:
    messages = engine.transcript
    if not messages:
        return "No messages in this chat"
    output = f"\n📜 Chat History ({len(messages)} messages):\n"
    output += "-" * 60 + "\n"
    for i, msg in enumerate(messages, 1):
        output += f"{i}. {format_message(msg)}\n"
    output += "-" * 60 + "\n"
    return output


# -----------------------------------------------------------------------------
# EMAIL GATE
# -----------------------------------------------------------------------------

def run_email_gate(identity: IdentityStore) -> bool:
    """
    Ask for an email until one is verified. Returns False if the user quits.
    """
    print(f"\n📧 Welcome to {ASSISTANT_NAME}")
    print("Please enter your email address to get started.")
    print("Your email is used to personalize your experience. We respect your privacy.\n")

    while not identity.is_authenticated:
        candidate = get_user_input("Email: ")
        if candidate is None or candidate in ("/quit", "/exit"):
            return False

        consent = None
        if REQUIRE_CONSENT:
            answer = get_user_input("Do you accept the privacy policy? [y/N]: ")
            if answer is None:
                return False
            consent = answer.lower() in ("y", "yes")

        print("Verifying...")
        try:
            identity.set_email(candidate, consent=consent)
        except InvalidInput as e:
            print(f"❌ {e}")
            continue
        except ConfigurationMissing as e:
            print(f"❌ {e}")
            return False
        except ChatError as e:
            logger.warning("Email verification failed: %s", e)
            print("❌ Failed to verify email. Please try again.")
            continue
        except OSError as e:
            logger.error("Could not save verified email: %s", e)
            print("❌ Could not save your email on this machine. Please try again.")
            continue

        print("✅ Welcome! You can now start chatting.")
    return True


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    identity = IdentityStore(JsonFileStorage(IDENTITY_FILE), email_logger=EmailLogger())
    engine = TranscriptEngine(WebhookGateway(), identity, notify=show_toast)

    print_header()

    while True:
        if not identity.is_authenticated and not run_email_gate(identity):
            print("\n👋 Goodbye!")
            break

        try:
            user_input = get_user_input()
            if user_input is None:
                print("\n👋 Goodbye!")
                break

            if user_input == "/new":
                engine.reset()
                print("\n🔄 New chat started.")
                continue

            elif user_input == "/history":
                print(format_history(engine))
                continue

            elif user_input == "/logout":
                try:
                    identity.logout()
                except OSError as e:
                    logger.error("Could not clear saved email: %s", e)
                    print("❌ Could not log out on this machine. Please try again.")
                    continue
                engine.reset()
                print("\n🔒 Logged out.")
                continue

            elif user_input in ["/quit", "/exit"]:
                print("\n👋 Goodbye!")
                break

            elif user_input.startswith("/"):
                print(f"❌ Unknown command: {user_input}")
                continue

            # Blank input is ignored by the engine as well; skip the typing line.
            if not user_input:
                continue

            print(f"🤖 {ASSISTANT_NAME} is typing...", flush=True)
            try:
                reply = asyncio.run(engine.submit(user_input))
            except (InvalidInput, ConfigurationMissing) as e:
                print(f"❌ {e}")
                continue
            if reply is not None:
                print(format_message(reply))

        except KeyboardInterrupt:
            print("\n\n👋 Goodbye!")
            break


# Run the interactive loop when this file is executed (python chat_cli.py).
if __name__ == "__main__":
    main()
