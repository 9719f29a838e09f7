"""Application composition root.

This module wires together configuration, the DB pool and the chat interpreter for the bot runtime.
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass, field

from psycopg_pool import AsyncConnectionPool

from src.config.settings import Settings
from src.db.pool import create_pool
from src.intent.interpreter import Interpreter


@dataclass(frozen=True)
class App:
    """Shared application dependencies for handlers."""

    settings: Settings
    pool: AsyncConnectionPool
    interpreter: Interpreter
    # One lock per chat: a message is interpreted only after the previous one's effects landed.
    # Entries disappear once no handler holds or waits on the lock.
    chat_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = field(
        default_factory=weakref.WeakValueDictionary
    )

    def chat_lock(self, chat_id: int) -> asyncio.Lock:
        """Return the lock serializing messages of `chat_id`."""

        lock = self.chat_locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self.chat_locks[chat_id] = lock
        return lock


def create_interpreter(settings: Settings) -> Interpreter:
    return Interpreter(
        thinking_time_s=settings.thinking_delay_s,
        monthly_budget=settings.monthly_budget,
        currency_symbol=settings.currency_symbol,
    )


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The returned DB pool is not opened. Call `await app.pool.open()` at startup.
    """

    pool = create_pool(settings.database_url, max_size=10)
    return App(settings=settings, pool=pool, interpreter=create_interpreter(settings))
