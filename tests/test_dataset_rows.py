"""Tests for export-to-row conversion used by the JSON importer."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from src.db.dataset_rows import iter_bank_rows, iter_transaction_rows
from src.db.load_json import parse_export

_EXPORT = [
    {
        "id": "64f0c0ffee",
        "name": "SBI",
        "initialBalance": 2500,
        "expenses": [
            {
                "id": "e1",
                "amount": 50,
                "category": "Food",
                "description": "lunch",
                "date": "2026-10-01",
                "type": "expense",
            },
            {
                "id": "e2",
                "amount": "300.5",
                "category": "Other",
                "date": "2026-10-02",
                "type": "income",
            },
        ],
    },
    {
        "id": "b2",
        "name": " ",
        "expenses": [{"id": "e3", "amount": 7, "category": "Auto", "date": "2026-10-03"}],
    },
]


def test_bank_rows() -> None:
    assert list(iter_bank_rows(_EXPORT, chat_id=42)) == [
        ("64f0c0ffee", 42, "SBI", 2500.0),
        ("b2", 42, "New Bank", 0.0),
    ]


def test_transaction_rows() -> None:
    assert list(iter_transaction_rows(_EXPORT)) == [
        ("e1", "64f0c0ffee", 50.0, "Food", "lunch", date(2026, 10, 1), "expense"),
        ("e2", "64f0c0ffee", 300.5, "Other", "", date(2026, 10, 2), "income"),
        # Legacy rows without a type load as expenses.
        ("e3", "b2", 7.0, "Auto", "", date(2026, 10, 3), "expense"),
    ]


@pytest.mark.parametrize(
    "expense",
    [
        {"id": "x", "amount": 0, "category": "Food", "date": "2026-10-01"},
        {"id": "x", "amount": 5, "category": "Food", "date": "2026-10-01", "type": "refund"},
        {"id": "x", "amount": 5, "category": "Food", "date": "not a date"},
    ],
)
def test_invalid_transaction_is_rejected(expense: dict) -> None:
    with pytest.raises(ValidationError):
        list(iter_transaction_rows([{"id": "b1", "name": "A", "expenses": [expense]}]))


def test_parse_export() -> None:
    bank_rows, transaction_rows = parse_export({"banks": _EXPORT}, chat_id=9)

    assert [row[0] for row in bank_rows] == ["64f0c0ffee", "b2"]
    assert [row[0] for row in transaction_rows] == ["e1", "e2", "e3"]


@pytest.mark.parametrize("payload", [[], {"accounts": []}, {"banks": {}}, {"banks": []}])
def test_parse_export_rejects_bad_shape(payload: object) -> None:
    with pytest.raises(ValueError):
        parse_export(payload, chat_id=9)
