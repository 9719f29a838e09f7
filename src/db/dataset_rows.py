"""Export-to-row conversion helpers.

Both the JSON import CLI and the integration tests convert an exported payload (`banks`, each with
an embedded `expenses` list) into row tuples for the `banks` and `transactions` tables.

Every expense goes through the `LedgerEntry` model, so an export with a non-positive amount or an
unknown transaction type is rejected before anything is written. Exports written before income
tracking existed have no `type`; those rows load as expenses.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from src.intent.schema import LedgerEntry


def iter_bank_rows(banks: Sequence[dict[str, Any]], chat_id: int) -> Iterable[tuple[Any, ...]]:
    """Yield row tuples for inserting into the `banks` table."""

    for bank in banks:
        yield (
            str(bank["id"]),
            chat_id,
            str(bank["name"]).strip() or "New Bank",
            float(bank.get("initialBalance") or 0),
        )


def iter_transaction_rows(banks: Sequence[dict[str, Any]]) -> Iterable[tuple[Any, ...]]:
    """Yield row tuples for inserting into the `transactions` table."""

    for bank in banks:
        for expense in bank.get("expenses", []):
            entry = LedgerEntry.model_validate(
                {
                    "id": str(expense["id"]),
                    "amount": expense["amount"],
                    "category": expense["category"],
                    "description": expense.get("description") or "",
                    "date": expense["date"],
                    "type": expense.get("type") or "expense",
                }
            )
            yield (
                entry.id,
                str(bank["id"]),
                entry.amount,
                entry.category,
                entry.description,
                entry.date,
                str(entry.type),
            )
