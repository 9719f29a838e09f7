"""Pytest configuration.

The repository uses a flat `src/` layout without an installed package. This conftest ensures tests
can import from the `src.*` namespace when running `pytest` locally.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure `import src...` works when running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.intent.interpreter import Interpreter, no_delay  # noqa: E402
from src.intent.schema import BankAccount, LedgerEntry, Snapshot, TransactionType  # noqa: E402

TODAY = date(2026, 10, 19)


def make_snapshot(
        *,
        entries: list[LedgerEntry] | None = None,
        bank_names: tuple[str, ...] = ("Default Bank",),
        current: int | None = 0,
        categories: tuple[str, ...] | None = None,
) -> Snapshot:
    """Build a snapshot with banks `b1..bn`; `current` indexes `bank_names` (or `None`)."""

    banks = [BankAccount(id=f"b{i + 1}", name=name) for i, name in enumerate(bank_names)]
    kwargs = {} if categories is None else {"categories": categories}
    return Snapshot(
        banks=banks,
        current_bank=banks[current] if current is not None else None,
        ledger=entries or [],
        **kwargs,
    )


def make_entry(
        amount: float,
        category: str,
        *,
        kind: TransactionType = TransactionType.expense,
        on: date = TODAY,
        entry_id: str | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id or f"t-{category}-{amount}-{on.isoformat()}",
        amount=amount,
        category=category,
        date=on,
        type=kind,
    )


@pytest.fixture
def interpreter() -> Interpreter:
    """Interpreter with no thinking delay and a pinned clock."""

    return Interpreter(delay=no_delay, today=lambda: TODAY)
