"""Tests for the interpreter Pydantic models and their invariants."""

from __future__ import annotations

import math
from datetime import date

import pytest
from pydantic import TypeAdapter, ValidationError

from src.intent.schema import (
    AddTransaction,
    BankAccount,
    CreateBank,
    Effect,
    ExecutionResult,
    HelpTopic,
    Intent,
    IntentKind,
    LedgerEntry,
    Navigate,
    NavigationTarget,
    Snapshot,
    SwitchBank,
    TransactionType,
)


def _add(amount: float) -> AddTransaction:
    return AddTransaction(
        id="t1",
        amount=amount,
        category="Food",
        type=TransactionType.expense,
        description="Added via chat: test",
        date=date(2026, 10, 19),
    )


@pytest.mark.parametrize("amount", [0, -10, math.inf, math.nan])
def test_add_transaction_requires_positive_finite_amount(amount: float) -> None:
    with pytest.raises(ValidationError):
        _add(amount)


def test_add_transaction_accepts_positive_amount() -> None:
    assert _add(0.01).amount == 0.01


def test_create_bank_requires_name() -> None:
    with pytest.raises(ValidationError):
        CreateBank(name="")


def test_intent_variant_fields_are_tied_to_kind() -> None:
    Intent(kind=IntentKind.add_transaction, is_income=False)
    Intent(kind=IntentKind.navigate, target=NavigationTarget.budget)
    Intent(kind=IntentKind.help, topic=HelpTopic.theme)

    with pytest.raises(ValidationError):
        Intent(kind=IntentKind.add_transaction)
    with pytest.raises(ValidationError):
        Intent(kind=IntentKind.show_total, target=NavigationTarget.dashboard)
    with pytest.raises(ValidationError):
        Intent(kind=IntentKind.help)


def test_execution_result_requires_reply() -> None:
    with pytest.raises(ValidationError):
        ExecutionResult(response_text="")


def test_effects_are_discriminated_by_kind() -> None:
    adapter = TypeAdapter(Effect)

    assert adapter.validate_python({"kind": "switch_bank", "bank_id": "b1"}) == SwitchBank(
        bank_id="b1"
    )
    assert adapter.validate_python({"kind": "navigate", "target": "analytics"}) == Navigate(
        target=NavigationTarget.analytics
    )
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "delete_bank", "bank_id": "b1"})


def test_snapshot_rejects_duplicate_bank_ids() -> None:
    with pytest.raises(ValidationError):
        Snapshot(banks=[BankAccount(id="b1", name="A"), BankAccount(id="b1", name="B")])


def test_snapshot_rejects_empty_catalog() -> None:
    with pytest.raises(ValidationError):
        Snapshot(categories=())


def test_ledger_entry_defaults_to_expense() -> None:
    entry = LedgerEntry(id="t1", amount=5, category="Food", date="2026-10-01")
    assert entry.type == TransactionType.expense
    assert entry.date == date(2026, 10, 1)
