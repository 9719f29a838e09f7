"""Structured (strict) grammar rules.

Every grammar is fully anchored and case-insensitive. Rules are tried in `STRUCTURED_RULES` order and
the first full match owns the message: if its captures fail validation the user gets a clarifying
reply and no effect, even when a later grammar or the fallback tier would have accepted the text.
"""

from __future__ import annotations

import re
from typing import Any

from src.intent.executor import (
    execute_add_transaction,
    execute_create_bank,
    execute_show_category_total,
    execute_show_total,
    execute_switch_bank,
    find_bank,
    placeholder_bank_name,
)
from src.intent.extractors import parse_number, scan_bank_arguments
from src.intent.formatting import (
    POSITIVE_AMOUNT_REPLY,
    invalid_balance_reply,
    unknown_category_reply,
)
from src.intent.rules import Context, Resolution, Rule, Utterance
from src.intent.schema import Entities, Intent, IntentKind

# ASCII digits only; `\d` also matches other scripts.
_AMOUNT = r"(?P<amount>[0-9]+(?:\.[0-9]+)?)"
_CATEGORY = r"(?P<category>[a-z ]+)"

ADD_BANK_RE = re.compile(r"^add\s+bank(?:\s+(?P<args>[a-z0-9. ]+))?$", re.IGNORECASE)
SWITCH_BANK_RE = re.compile(r"^switch\s+bank\s+(?P<name>[a-z0-9 ]+)$", re.IGNORECASE)
ADD_INCOME_RE = re.compile(
    rf"^(?:add\s+income|received|credit)\s+{_AMOUNT}\s+{_CATEGORY}$", re.IGNORECASE
)
ADD_EXPENSE_RE = re.compile(rf"^(?:add|spent|i\s+spent)\s+{_AMOUNT}\s+{_CATEGORY}$", re.IGNORECASE)
SHOW_TOTAL_RE = re.compile(r"^show\s+total$", re.IGNORECASE)
SHOW_CATEGORY_RE = re.compile(rf"^show\s+{_CATEGORY}$", re.IGNORECASE)


def _grammar(pattern: re.Pattern[str]):
    def predicate(utterance: Utterance, _context: Context) -> re.Match[str] | None:
        return pattern.fullmatch(utterance.raw)

    return predicate


def _extract_add_bank(utterance: Utterance, match: Any, context: Context) -> Resolution:
    args = scan_bank_arguments((match.group("args") or "").split())
    return Resolution(
        intent=Intent(kind=IntentKind.add_bank),
        entities=Entities(
            bank_name=args.name or placeholder_bank_name(context.snapshot),
            amount=args.opening_balance,
            raw_text=utterance.raw,
        ),
        captures={"balance": args.rejected_balance} if args.rejected_balance else {},
    )


def _validate_add_bank(resolution: Resolution, _context: Context) -> str | None:
    token = resolution.captures.get("balance")
    return invalid_balance_reply(token) if token else None


def _extract_switch_bank(utterance: Utterance, match: Any, _context: Context) -> Resolution:
    return Resolution(
        intent=Intent(kind=IntentKind.switch_bank),
        entities=Entities(bank_name=match.group("name").strip(), raw_text=utterance.raw),
    )


def _validate_switch_bank(resolution: Resolution, context: Context) -> str | None:
    name = resolution.entities.bank_name
    if find_bank(context.snapshot, name) is None:
        return f'Bank "{name}" not found. Try: Add bank {name}'
    return None


def _transaction_extractor(*, is_income: bool):
    def extract(utterance: Utterance, match: Any, context: Context) -> Resolution:
        raw_category = match.group("category").strip()
        return Resolution(
            intent=Intent(kind=IntentKind.add_transaction, is_income=is_income),
            entities=Entities(
                amount=parse_number(match.group("amount")),
                category=context.catalog.resolve_exact(raw_category),
                raw_text=utterance.raw,
            ),
            captures={"category": raw_category},
        )

    return extract


def _validate_category(resolution: Resolution, context: Context) -> str | None:
    if resolution.entities.category is None:
        return unknown_category_reply(
            resolution.captures.get("category", ""), context.catalog.describe()
        )
    return None


def _validate_transaction(resolution: Resolution, context: Context) -> str | None:
    problem = _validate_category(resolution, context)
    if problem is not None:
        return problem
    amount = resolution.entities.amount
    if amount is None or not amount > 0:
        return POSITIVE_AMOUNT_REPLY
    return None


def _extract_show_total(utterance: Utterance, _match: Any, _context: Context) -> Resolution:
    return Resolution(
        intent=Intent(kind=IntentKind.show_total),
        entities=Entities(raw_text=utterance.raw),
    )


def _extract_show_category(utterance: Utterance, match: Any, context: Context) -> Resolution:
    raw_category = match.group("category").strip()
    return Resolution(
        intent=Intent(kind=IntentKind.show_category_total),
        entities=Entities(
            category=context.catalog.resolve_exact(raw_category),
            raw_text=utterance.raw,
        ),
        captures={"category": raw_category},
    )


STRUCTURED_RULES: tuple[Rule, ...] = (
    Rule(
        name="add_bank",
        predicate=_grammar(ADD_BANK_RE),
        extract=_extract_add_bank,
        validate=_validate_add_bank,
        execute=execute_create_bank,
    ),
    Rule(
        name="switch_bank",
        predicate=_grammar(SWITCH_BANK_RE),
        extract=_extract_switch_bank,
        validate=_validate_switch_bank,
        execute=execute_switch_bank,
    ),
    Rule(
        name="add_income",
        predicate=_grammar(ADD_INCOME_RE),
        extract=_transaction_extractor(is_income=True),
        validate=_validate_transaction,
        execute=execute_add_transaction,
    ),
    Rule(
        name="add_expense",
        predicate=_grammar(ADD_EXPENSE_RE),
        extract=_transaction_extractor(is_income=False),
        validate=_validate_transaction,
        execute=execute_add_transaction,
    ),
    Rule(
        name="show_total",
        predicate=_grammar(SHOW_TOTAL_RE),
        extract=_extract_show_total,
        execute=execute_show_total,
    ),
    Rule(
        name="show_category_total",
        predicate=_grammar(SHOW_CATEGORY_RE),
        extract=_extract_show_category,
        validate=_validate_category,
        execute=execute_show_category_total,
    ),
)
