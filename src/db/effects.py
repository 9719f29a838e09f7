"""Apply interpreter effects to the bank directory and ledger store.

Effects are applied in order inside one transaction: either all of them land or none do.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from psycopg import AsyncConnection

from src.db.store import StoreError, append_transaction, create_bank, set_current_bank
from src.intent.schema import AddTransaction, CreateBank, Effect, Navigate, Snapshot, SwitchBank

logger = logging.getLogger(__name__)


async def apply_effects(
        conn: AsyncConnection,
        chat_id: int,
        snapshot: Snapshot,
        effects: Iterable[Effect],
) -> None:
    """Apply `effects` produced for `snapshot`.

    - `AddTransaction` is appended to the snapshot's current bank.
    - `CreateBank` creates the bank and makes it current.
    - `SwitchBank` changes the current bank.
    - `Navigate` has no state; it is only logged.

    Raises:
        StoreError: If an effect cannot be applied (e.g. no current bank, unknown bank id).
    """

    async with conn.transaction():
        for effect in effects:
            if isinstance(effect, AddTransaction):
                if snapshot.current_bank is None:
                    raise StoreError("no current bank to record the transaction in")
                await append_transaction(conn, snapshot.current_bank.id, effect)
            elif isinstance(effect, CreateBank):
                bank = await create_bank(conn, chat_id, effect.name, effect.initial_balance)
                await set_current_bank(conn, chat_id, bank.id)
            elif isinstance(effect, SwitchBank):
                await set_current_bank(conn, chat_id, effect.bank_id)
            elif isinstance(effect, Navigate):
                logger.info("navigate chat_id=%s target=%s", chat_id, effect.target)
            else:
                raise StoreError(f"unsupported effect: {effect!r}")
