"""Integration tests against a real Postgres database.

These tests exercise the store end to end:
migrations -> snapshot loading -> interpreter -> effect application -> snapshot reload.

They are skipped if `DATABASE_URL` is not configured or the DB is unreachable.
"""

from __future__ import annotations

import itertools
import os
import uuid
from collections.abc import AsyncIterator, Iterator
from typing import Any, LiteralString, NoReturn, cast

import psycopg
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from psycopg import sql
from psycopg.conninfo import make_conninfo
from psycopg_pool import AsyncConnectionPool

from conftest import TODAY
from src.db.connection import connect_utc
from src.db.dataset_rows import iter_bank_rows, iter_transaction_rows
from src.db.effects import apply_effects
from src.db.migrate import list_migration_files
from src.db.pool import create_pool, get_conn
from src.db.store import (
    LastBankError,
    StoreError,
    UnknownBankError,
    create_bank,
    delete_bank,
    delete_transaction,
    list_transactions,
    load_snapshot,
    rename_bank,
    update_transaction,
)
from src.intent.interpreter import Interpreter, no_delay
from src.intent.schema import DEFAULT_CATEGORIES, SwitchBank, TransactionType

_chat_ids = itertools.count(1000)


def _skip(reason: str) -> NoReturn:
    pytest.skip(reason)


def _require_database_url() -> str:
    load_dotenv(".env")
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        _skip("DATABASE_URL is not set; skipping integration tests")
    return database_url


@pytest.fixture(scope="session")
def prepared_schema() -> Iterator[str]:
    """Create an isolated schema and run migrations."""

    database_url = _require_database_url()
    schema = f"it_{uuid.uuid4().hex}"

    try:
        conn_ctx = connect_utc(database_url)
    except psycopg.OperationalError as exc:
        _skip(f"Postgres is unreachable ({exc}); skipping integration tests")

    with conn_ctx as conn:
        with conn.transaction():
            conn.execute(
                sql.SQL("CREATE SCHEMA {}").format(sql.Identifier(schema)),
                prepare=False,
            )
            conn.execute(
                sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)),
                prepare=False,
            )
            for migration in list_migration_files():
                sql_text = migration.read_text(encoding="utf-8")
                conn.execute(cast(LiteralString, sql_text), prepare=False)

    yield schema

    # noinspection PyBroadException
    try:
        with psycopg.connect(database_url) as conn:
            with conn.transaction():
                conn.execute(
                    sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(sql.Identifier(schema)),
                    prepare=False,
                )
    except Exception:
        # Cleanup best-effort: do not fail test run on teardown.
        pass


@pytest_asyncio.fixture
async def pool(prepared_schema: str) -> AsyncIterator[AsyncConnectionPool]:
    """Create an async connection pool whose sessions resolve tables in the test schema."""

    conninfo = make_conninfo(_require_database_url(), options=f"-c search_path={prepared_schema}")
    db_pool = create_pool(conninfo, max_size=2)
    try:
        await db_pool.open(wait=True)
    except Exception as exc:
        _skip(f"Postgres is unreachable ({exc}); skipping integration tests")
    yield db_pool
    await db_pool.close()


async def _snapshot(pool: Any, chat_id: int):
    async with get_conn(pool) as conn:
        return await load_snapshot(
            conn,
            chat_id,
            categories=DEFAULT_CATEGORIES,
            default_bank_name="Default Bank",
        )


async def _say(pool: Any, interpreter: Interpreter, chat_id: int, text: str) -> str:
    snapshot = await _snapshot(pool, chat_id)
    result = await interpreter.interpret(text, snapshot)
    if result.effects:
        async with get_conn(pool) as conn:
            await apply_effects(conn, chat_id, snapshot, result.effects)
    return result.response_text


@pytest.fixture
def interpreter() -> Interpreter:
    return Interpreter(delay=no_delay, today=lambda: TODAY)


@pytest.mark.asyncio
async def test_pool_enforces_utc_timezone(pool: Any) -> None:
    async with get_conn(pool) as conn:
        async with conn.cursor() as cur:
            await cur.execute("SHOW TimeZone", prepare=False)
            row = await cur.fetchone()
        assert row is not None
        assert row[0] == "UTC"


@pytest.mark.asyncio
async def test_new_chat_gets_default_bank(pool: Any) -> None:
    chat_id = next(_chat_ids)

    first = await _snapshot(pool, chat_id)
    second = await _snapshot(pool, chat_id)

    assert [bank.name for bank in first.banks] == ["Default Bank"]
    assert first.current_bank == first.banks[0]
    assert first.ledger == []
    assert second.banks == first.banks


@pytest.mark.asyncio
async def test_conversation_end_to_end(pool: Any, interpreter: Interpreter) -> None:
    chat_id = next(_chat_ids)

    assert await _say(pool, interpreter, chat_id, "Add 50 Food") == (
        "Added ₹50.00 to Food in Default Bank."
    )
    assert await _say(pool, interpreter, chat_id, "add income 80 Other") == (
        "Recorded income ₹80.00 in Other for Default Bank."
    )
    assert await _say(pool, interpreter, chat_id, "show total") == (
        "Current balance change in Default Bank: ₹30.00 (2 transactions)."
    )

    assert await _say(pool, interpreter, chat_id, "add bank SBI 1000") == (
        "Created bank: SBI with opening balance ₹1000.00 and switched to it."
    )
    assert await _say(pool, interpreter, chat_id, "current bank") == "Current bank: SBI"
    assert await _say(pool, interpreter, chat_id, "show total") == (
        "Current balance change in SBI: ₹0.00 (0 transactions)."
    )

    assert await _say(pool, interpreter, chat_id, "switch bank default bank") == (
        "Switched to bank: Default Bank."
    )
    snapshot = await _snapshot(pool, chat_id)
    assert [entry.category for entry in snapshot.ledger] == ["Food", "Other"]
    assert [entry.type for entry in snapshot.ledger] == [
        TransactionType.expense,
        TransactionType.income,
    ]
    assert snapshot.ledger[0].date == TODAY


@pytest.mark.asyncio
async def test_failed_effect_batch_is_rolled_back(pool: Any) -> None:
    chat_id = next(_chat_ids)
    snapshot = await _snapshot(pool, chat_id)

    with pytest.raises(UnknownBankError):
        async with get_conn(pool) as conn:
            await apply_effects(conn, chat_id, snapshot, [SwitchBank(bank_id="missing")])

    after = await _snapshot(pool, chat_id)
    assert after.current_bank == snapshot.current_bank


@pytest.mark.asyncio
async def test_banks_are_scoped_per_chat(pool: Any) -> None:
    owner, other = next(_chat_ids), next(_chat_ids)
    owner_snapshot = await _snapshot(pool, owner)
    other_snapshot = await _snapshot(pool, other)

    with pytest.raises(UnknownBankError):
        async with get_conn(pool) as conn:
            await apply_effects(
                conn,
                other,
                other_snapshot,
                [SwitchBank(bank_id=owner_snapshot.current_bank.id)],
            )


@pytest.mark.asyncio
async def test_bank_management(pool: Any) -> None:
    chat_id = next(_chat_ids)
    snapshot = await _snapshot(pool, chat_id)
    default = snapshot.current_bank

    async with get_conn(pool) as conn:
        with pytest.raises(LastBankError):
            await delete_bank(conn, chat_id, default.id)

    async with get_conn(pool) as conn:
        extra = await create_bank(conn, chat_id, "Wallet", 20)
        renamed = await rename_bank(conn, chat_id, extra.id, "Cash")
        assert renamed.name == "Cash"
        assert renamed.initial_balance == 20.0
        await delete_bank(conn, chat_id, default.id)

    after = await _snapshot(pool, chat_id)
    assert [bank.name for bank in after.banks] == ["Cash"]
    assert after.current_bank.name == "Cash"


@pytest.mark.asyncio
async def test_transaction_edit_and_delete(pool: Any, interpreter: Interpreter) -> None:
    chat_id = next(_chat_ids)
    await _say(pool, interpreter, chat_id, "Add 50 Food")
    snapshot = await _snapshot(pool, chat_id)
    bank_id = snapshot.current_bank.id
    entry_id = snapshot.ledger[0].id

    async with get_conn(pool) as conn:
        updated = await update_transaction(
            conn, bank_id, entry_id, {"amount": 75, "category": "Snacks"}
        )
        assert updated is not None
        assert updated.amount == 75.0
        assert await update_transaction(conn, bank_id, "missing", {"amount": 1}) is None

    async with get_conn(pool) as conn:
        with pytest.raises(StoreError):
            await update_transaction(conn, bank_id, entry_id, {"bank_id": "x"})

    async with get_conn(pool) as conn:
        with pytest.raises(ValueError):
            await update_transaction(conn, bank_id, entry_id, {"amount": -5})

    async with get_conn(pool) as conn:
        assert await delete_transaction(conn, bank_id, entry_id) is True
        assert await delete_transaction(conn, bank_id, entry_id) is False
        assert await list_transactions(conn, bank_id) == []


@pytest.mark.asyncio
async def test_imported_rows_load_into_snapshot(pool: Any) -> None:
    chat_id = next(_chat_ids)
    bank_id = f"imp-{uuid.uuid4().hex}"
    export = [
        {
            "id": bank_id,
            "name": "Imported",
            "initialBalance": 100,
            "expenses": [
                {"id": f"{bank_id}-1", "amount": 12, "category": "Books", "date": "2026-10-01"},
            ],
        }
    ]

    async with get_conn(pool) as conn:
        async with conn.cursor() as cur:
            await cur.executemany(
                "INSERT INTO banks (id, chat_id, name, initial_balance) VALUES (%s, %s, %s, %s)",
                list(iter_bank_rows(export, chat_id)),
            )
            await cur.executemany(
                """
                INSERT INTO transactions (id, bank_id, amount, category, description, date, type)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                list(iter_transaction_rows(export)),
            )

    snapshot = await _snapshot(pool, chat_id)
    assert snapshot.current_bank.id == bank_id
    assert snapshot.current_bank.initial_balance == 100.0
    assert [entry.category for entry in snapshot.ledger] == ["Books"]
