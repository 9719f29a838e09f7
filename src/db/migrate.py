"""Schema migrations for the bank directory and ledger tables.

Each `.sql` file under `src/db/migrations/` runs once, in file-name order, inside its own
transaction. The names of applied files are recorded in `schema_migrations`.

Usage:
    python -m src.db.migrate              # apply pending migrations
    python -m src.db.migrate --dry-run    # list pending migrations only
    python -m src.db.migrate --recreate   # drop the bot's tables first (destructive)
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import LiteralString, cast

import psycopg
from dotenv import load_dotenv
from psycopg import sql

from src.config.logging import configure_logging
from src.db.connection import connect_utc, require_database_url

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

# Children first: transactions and chat_state reference banks.
MANAGED_TABLES: tuple[str, ...] = ("chat_state", "transactions", "banks", "schema_migrations")

logger = logging.getLogger(__name__)


def list_migration_files(directory: Path = MIGRATIONS_DIR) -> list[Path]:
    """Return the migration files of `directory` sorted by name."""

    if not directory.is_dir():
        raise RuntimeError(f"Migrations directory does not exist: {directory}")

    files = sorted(directory.glob("*.sql"), key=lambda p: p.name)
    if not files:
        raise RuntimeError(f"No .sql migration files found in {directory}")
    return files


def pending_migrations(files: Sequence[Path], applied: Iterable[str]) -> list[Path]:
    """Filter `files` down to the ones whose name is not in `applied`, keeping order."""

    done = set(applied)
    return [path for path in files if path.name not in done]


def _drop_managed_tables(conn: psycopg.Connection) -> None:
    with conn.transaction():
        for table in MANAGED_TABLES:
            conn.execute(
                sql.SQL("DROP TABLE IF EXISTS {}").format(sql.Identifier(table)),
                prepare=False,
            )
    logger.warning("dropped tables %s", ", ".join(MANAGED_TABLES))


def _applied_migrations(conn: psycopg.Connection) -> set[str]:
    with conn.transaction():
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations
            (
                filename   TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """,
            prepare=False,
        )
        rows = conn.execute("SELECT filename FROM schema_migrations", prepare=False).fetchall()
    return {row[0] for row in rows}


def migrate(*, recreate: bool = False, dry_run: bool = False) -> list[str]:
    """Bring the database pointed to by `DATABASE_URL` up to date.

    Returns:
        Names of the migrations that were applied (or would be, with `dry_run`).
    """

    load_dotenv(".env")
    database_url = require_database_url()
    files = list_migration_files()

    with connect_utc(database_url) as conn:
        if recreate and not dry_run:
            _drop_managed_tables(conn)

        todo = pending_migrations(files, _applied_migrations(conn))
        if dry_run:
            for path in todo:
                logger.info("pending migration %s", path.name)
            return [path.name for path in todo]

        for path in todo:
            logger.info("applying migration %s", path.name)
            with conn.transaction():
                conn.execute(cast(LiteralString, path.read_text(encoding="utf-8")), prepare=False)
                conn.execute(
                    "INSERT INTO schema_migrations (filename) VALUES (%s)",
                    (path.name,),
                    prepare=False,
                )

    if not todo:
        logger.info("schema is up to date")
    return [path.name for path in todo]


def main() -> None:
    """CLI entry point for applying migrations."""

    parser = argparse.ArgumentParser(description="Apply the bot's SQL migrations to Postgres.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--recreate",
        action="store_true",
        help="Drop the bot's tables and re-apply all migrations (destructive).",
    )
    mode.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list the migrations that would be applied.",
    )
    args = parser.parse_args()

    configure_logging()
    migrate(recreate=args.recreate, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
