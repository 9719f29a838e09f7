"""Import an exported bank/expense JSON document into Postgres for one chat.

The export is a JSON object with a top-level `"banks"` list; each bank carries `id`, `name`,
`initialBalance` and an embedded `"expenses"` list of `{id, amount, category, description, date,
type}` objects.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any
from urllib.request import urlopen

from dotenv import load_dotenv

from src.config.logging import configure_logging
from src.db.connection import connect_utc, require_database_url
from src.db.dataset_rows import iter_bank_rows, iter_transaction_rows

logger = logging.getLogger(__name__)


def _load_json_bytes(*, path: str | None, url: str | None) -> bytes:
    if bool(path) == bool(url):
        raise ValueError("Exactly one of --path or --url must be provided")

    if path:
        return Path(path).read_bytes()

    assert url is not None
    with urlopen(url) as resp:  # noqa: S310 (controlled URL from CLI)
        return resp.read()


def parse_export(payload: Any, chat_id: int) -> tuple[list[tuple[Any, ...]], list[tuple[Any, ...]]]:
    """Validate an export document and convert it to `banks` and `transactions` row tuples.

    Every row is validated before anything is written, so a bad entry aborts the whole import.
    """

    if (
            not isinstance(payload, dict)
            or "banks" not in payload
            or not isinstance(payload["banks"], list)
    ):
        raise ValueError("Unexpected export format: expected object with key 'banks' containing a list")

    banks: list[dict] = payload["banks"]
    if not banks:
        raise ValueError("Export contains no banks")

    return list(iter_bank_rows(banks, chat_id)), list(iter_transaction_rows(banks))


def load_export(*, path: str | None, url: str | None, chat_id: int, truncate: bool) -> None:
    """Load the export into the `banks` and `transactions` tables of `chat_id`."""

    load_dotenv(".env")
    database_url = require_database_url()

    payload = json.loads(_load_json_bytes(path=path, url=url))
    bank_rows, transaction_rows = parse_export(payload, chat_id)

    with connect_utc(database_url) as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                if truncate:
                    cur.execute("DELETE FROM chat_state WHERE chat_id = %s", (chat_id,))
                    cur.execute("DELETE FROM banks WHERE chat_id = %s", (chat_id,))

                cur.executemany(
                    """
                    INSERT INTO banks (id, chat_id, name, initial_balance)
                    VALUES (%s, %s, %s, %s) ON CONFLICT (id) DO
                    UPDATE SET
                        name = EXCLUDED.name,
                        initial_balance = EXCLUDED.initial_balance
                    WHERE banks.chat_id = EXCLUDED.chat_id
                    """,
                    bank_rows,
                )
                cur.executemany(
                    """
                    INSERT INTO transactions (id, bank_id, amount, category, description, date, type)
                    VALUES (%s, %s, %s, %s, %s, %s, %s) ON CONFLICT (id) DO
                    UPDATE SET
                        amount = EXCLUDED.amount,
                        category = EXCLUDED.category,
                        description = EXCLUDED.description,
                        date = EXCLUDED.date,
                        type = EXCLUDED.type
                    """,
                    transaction_rows,
                )
                cur.execute(
                    """
                    INSERT INTO chat_state (chat_id, current_bank_id)
                    VALUES (%s, %s) ON CONFLICT (chat_id) DO NOTHING
                    """,
                    (chat_id, bank_rows[0][0]),
                )

    logger.info(
        "imported chat_id=%s banks=%d transactions=%d",
        chat_id,
        len(bank_rows),
        len(transaction_rows),
    )


def main() -> None:
    """CLI entry point for importing an export into Postgres."""

    parser = argparse.ArgumentParser(description="Import an expense export into Postgres.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--path", help="Path to the export JSON file.")
    src.add_argument("--url", help="URL to download the export JSON.")
    parser.add_argument("--chat-id", type=int, required=True, help="Telegram chat that owns the data.")
    parser.add_argument(
        "--truncate",
        action="store_true",
        help="Delete the chat's existing banks and transactions first (destructive).",
    )
    args = parser.parse_args()

    configure_logging()
    load_export(path=args.path, url=args.url, chat_id=args.chat_id, truncate=args.truncate)


if __name__ == "__main__":
    main()
