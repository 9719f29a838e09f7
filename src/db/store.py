"""Bank directory and ledger store (Postgres).

Banks are scoped per Telegram chat; the ledger is scoped per bank and keeps append order. Queries
are always parameterized, table and column names are fixed in this module. DB errors are not
swallowed: callers decide how to report a rejected write.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from psycopg import AsyncConnection
from psycopg.rows import dict_row

from src.intent.schema import AddTransaction, BankAccount, LedgerEntry, Snapshot


class StoreError(RuntimeError):
    """Raised when the store rejects an operation."""


class UnknownBankError(StoreError):
    """Raised when a bank id does not belong to the chat."""


class LastBankError(StoreError):
    """Raised when deleting a chat's only bank."""


_UPDATABLE_TRANSACTION_FIELDS = frozenset({"amount", "category", "description", "date", "type"})


def _bank_from_row(row: Mapping[str, Any]) -> BankAccount:
    return BankAccount(
        id=row["id"],
        name=row["name"],
        initial_balance=float(row["initial_balance"]),
        created_at=row["created_at"],
    )


def _entry_from_row(row: Mapping[str, Any]) -> LedgerEntry:
    return LedgerEntry(
        id=row["id"],
        amount=float(row["amount"]),
        category=row["category"],
        description=row["description"],
        date=row["date"],
        type=row["type"],
    )


async def list_banks(conn: AsyncConnection, chat_id: int) -> list[BankAccount]:
    """Return the chat's banks in creation order."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT id, name, initial_balance, created_at
            FROM banks
            WHERE chat_id = %s
            ORDER BY created_at, id
            """,
            (chat_id,),
        )
        rows = await cur.fetchall()
    return [_bank_from_row(r) for r in rows]


async def create_bank(
        conn: AsyncConnection,
        chat_id: int,
        name: str,
        initial_balance: float = 0.0,
) -> BankAccount:
    """Create a bank with a fresh id."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            INSERT INTO banks (id, chat_id, name, initial_balance)
            VALUES (%s, %s, %s, %s)
            RETURNING id, name, initial_balance, created_at
            """,
            (uuid.uuid4().hex, chat_id, name.strip() or "New Bank", initial_balance),
        )
        row = await cur.fetchone()
    return _bank_from_row(row)


async def rename_bank(
        conn: AsyncConnection,
        chat_id: int,
        bank_id: str,
        name: str,
        initial_balance: float | None = None,
) -> BankAccount:
    """Rename a bank, optionally resetting its opening balance."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            UPDATE banks
            SET name = %s, initial_balance = COALESCE(%s::numeric, initial_balance)
            WHERE id = %s AND chat_id = %s
            RETURNING id, name, initial_balance, created_at
            """,
            (name.strip(), initial_balance, bank_id, chat_id),
        )
        row = await cur.fetchone()
    if row is None:
        raise UnknownBankError(f"unknown bank: {bank_id}")
    return _bank_from_row(row)


async def get_current_bank_id(conn: AsyncConnection, chat_id: int) -> str | None:
    async with conn.cursor() as cur:
        await cur.execute("SELECT current_bank_id FROM chat_state WHERE chat_id = %s", (chat_id,))
        row = await cur.fetchone()
    return row[0] if row else None


async def set_current_bank(conn: AsyncConnection, chat_id: int, bank_id: str) -> None:
    """Select `bank_id` as the chat's current bank."""

    async with conn.cursor() as cur:
        await cur.execute(
            "SELECT 1 FROM banks WHERE id = %s AND chat_id = %s",
            (bank_id, chat_id),
        )
        if await cur.fetchone() is None:
            raise UnknownBankError(f"unknown bank: {bank_id}")
        await cur.execute(
            """
            INSERT INTO chat_state (chat_id, current_bank_id)
            VALUES (%s, %s)
            ON CONFLICT (chat_id) DO UPDATE SET current_bank_id = EXCLUDED.current_bank_id
            """,
            (chat_id, bank_id),
        )


async def delete_bank(conn: AsyncConnection, chat_id: int, bank_id: str) -> None:
    """Delete a bank and its ledger.

    Raises:
        LastBankError: If it is the chat's only bank; a chat always keeps at least one.
        UnknownBankError: If the bank does not belong to the chat.
    """

    banks = await list_banks(conn, chat_id)
    if all(bank.id != bank_id for bank in banks):
        raise UnknownBankError(f"unknown bank: {bank_id}")
    if len(banks) <= 1:
        raise LastBankError("cannot delete the last bank")

    current_id = await get_current_bank_id(conn, chat_id)
    async with conn.cursor() as cur:
        await cur.execute("DELETE FROM banks WHERE id = %s AND chat_id = %s", (bank_id, chat_id))

    if current_id == bank_id:
        remaining = next(bank for bank in banks if bank.id != bank_id)
        await set_current_bank(conn, chat_id, remaining.id)


async def ensure_default_bank(
        conn: AsyncConnection,
        chat_id: int,
        default_name: str,
) -> list[BankAccount]:
    """Return the chat's banks, creating and selecting a default bank for a new chat."""

    banks = await list_banks(conn, chat_id)
    if banks:
        return banks

    bank = await create_bank(conn, chat_id, default_name)
    await set_current_bank(conn, chat_id, bank.id)
    return [bank]


async def list_transactions(conn: AsyncConnection, bank_id: str) -> list[LedgerEntry]:
    """Return a bank's ledger in append order."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT id, amount, category, description, date, type
            FROM transactions
            WHERE bank_id = %s
            ORDER BY seq
            """,
            (bank_id,),
        )
        rows = await cur.fetchall()
    return [_entry_from_row(r) for r in rows]


async def append_transaction(
        conn: AsyncConnection,
        bank_id: str,
        effect: AddTransaction,
) -> LedgerEntry:
    """Append an interpreter-produced transaction to a bank's ledger."""

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            INSERT INTO transactions (id, bank_id, amount, category, description, date, type)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id, amount, category, description, date, type
            """,
            (
                effect.id,
                bank_id,
                effect.amount,
                effect.category,
                effect.description,
                effect.date,
                str(effect.type),
            ),
        )
        row = await cur.fetchone()
    return _entry_from_row(row)


async def delete_transaction(conn: AsyncConnection, bank_id: str, transaction_id: str) -> bool:
    """Delete a ledger entry by id; returns whether a row was removed."""

    async with conn.cursor() as cur:
        await cur.execute(
            "DELETE FROM transactions WHERE id = %s AND bank_id = %s",
            (transaction_id, bank_id),
        )
        return cur.rowcount > 0


async def update_transaction(
        conn: AsyncConnection,
        bank_id: str,
        transaction_id: str,
        changes: Mapping[str, Any],
) -> LedgerEntry | None:
    """Update fields of a ledger entry by id.

    The merged entry is validated with the `LedgerEntry` model before it is written, so an update
    cannot store a non-positive amount or an unknown type.

    Returns:
        The updated entry, or `None` if the id does not exist in the bank.
    """

    unknown = set(changes) - _UPDATABLE_TRANSACTION_FIELDS
    if unknown:
        raise StoreError(f"fields cannot be updated: {sorted(unknown)}")

    async with conn.cursor(row_factory=dict_row) as cur:
        await cur.execute(
            """
            SELECT id, amount, category, description, date, type
            FROM transactions
            WHERE id = %s AND bank_id = %s
            FOR UPDATE
            """,
            (transaction_id, bank_id),
        )
        row = await cur.fetchone()
        if row is None:
            return None

        merged = LedgerEntry.model_validate(
            {**_entry_from_row(row).model_dump(), **dict(changes)}
        )
        await cur.execute(
            """
            UPDATE transactions
            SET amount = %s, category = %s, description = %s, date = %s, type = %s
            WHERE id = %s AND bank_id = %s
            """,
            (
                merged.amount,
                merged.category,
                merged.description,
                merged.date,
                str(merged.type),
                transaction_id,
                bank_id,
            ),
        )
    return merged


async def load_snapshot(
        conn: AsyncConnection,
        chat_id: int,
        *,
        categories: Sequence[str],
        default_bank_name: str,
) -> Snapshot:
    """Build the interpreter snapshot for a chat.

    A chat without banks gets a default bank; a missing or stale current-bank pointer falls back to
    the oldest bank. The ledger holds the current bank's entries only.
    """

    banks = await ensure_default_bank(conn, chat_id, default_bank_name)
    current_id = await get_current_bank_id(conn, chat_id)
    current = next((bank for bank in banks if bank.id == current_id), banks[0])
    if current.id != current_id:
        await set_current_bank(conn, chat_id, current.id)

    return Snapshot(
        categories=tuple(categories),
        banks=banks,
        current_bank=current,
        ledger=await list_transactions(conn, current.id),
    )
