"""aiogram message handlers.

Contract: every incoming message produces exactly one reply. The interpreter never raises; store
failures and any other internal error are caught here, logged, and answered with an apology
(the effects are rolled back).
"""

from __future__ import annotations

import logging
from time import monotonic

import psycopg
from aiogram.types import Message

from src.app import App
from src.db.effects import apply_effects
from src.db.pool import get_conn
from src.db.store import StoreError, load_snapshot
from src.intent.formatting import ERROR_REPLY

logger = logging.getLogger(__name__)

STORE_FAILURE_REPLY = "Sorry, I couldn't reach your records right now. Please try again!"


def _message_text(message: Message) -> str:
    """Return the text to interpret; bot commands are read without their slash ("/help")."""

    text = (message.text or message.caption or "").strip()
    if text.startswith("/"):
        command = text[1:].split(maxsplit=1)
        # Drop the "@botname" suffix Telegram adds in group chats.
        head = command[0].split("@", 1)[0] if command else ""
        text = " ".join([head, *command[1:]])
    return text


async def handle_message(message: Message, app: App) -> None:
    """Interpret a chat message, apply its effects and reply with the interpreter's text."""

    started = monotonic()
    chat_id = message.chat.id
    raw_text = _message_text(message)

    async with app.chat_lock(chat_id):
        try:
            async with get_conn(app.pool) as conn:
                snapshot = await load_snapshot(
                    conn,
                    chat_id,
                    categories=app.settings.expense_categories,
                    default_bank_name=app.settings.default_bank_name,
                )

            result = await app.interpreter.interpret(raw_text, snapshot)

            if result.effects:
                async with get_conn(app.pool) as conn:
                    await apply_effects(conn, chat_id, snapshot, result.effects)
            reply = result.response_text

            latency_ms = int((monotonic() - started) * 1000)
            logger.info(
                "handled chat_id=%s effects=%s latency_ms=%d",
                chat_id,
                ",".join(effect.kind for effect in result.effects) or "-",
                latency_ms,
            )
        except (StoreError, psycopg.Error):
            # Collaborator failure: nothing was applied, tell the user to retry.
            logger.exception("store failed chat_id=%s", chat_id)
            reply = STORE_FAILURE_REPLY
        except Exception:
            # Handler boundary: any other internal error still gets exactly one reply.
            logger.exception("handler failed chat_id=%s", chat_id)
            reply = ERROR_REPLY

    await message.answer(reply)
