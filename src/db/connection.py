"""Shared Postgres connection helpers.

Bank creation times are stored as `TIMESTAMPTZ` and ledger dates as `DATE`; every session is locked
to UTC so both are read back the same way regardless of server configuration.
"""

from __future__ import annotations

import os

import psycopg
from psycopg import AsyncConnection


def require_database_url() -> str:
    """Read `DATABASE_URL` from the environment or raise a clear error."""

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is required (set it in .env or environment)")
    return database_url


def connect_utc(database_url: str) -> psycopg.Connection:
    """Open a synchronous connection (CLI tools) with the session timezone set to UTC."""

    conn = psycopg.connect(database_url)
    conn.execute("SET TIME ZONE 'UTC'", prepare=False)
    return conn


async def configure_session(conn: AsyncConnection) -> None:
    """Pool `configure` hook: lock the session timezone to UTC."""

    async with conn.cursor() as cur:
        await cur.execute("SET TIME ZONE 'UTC'", prepare=False)
    # `SET` starts a transaction when autocommit is disabled; commit so the pool doesn't see INTRANS.
    await conn.commit()
