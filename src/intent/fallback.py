"""Heuristic fallback rules (keyword containment).

Consulted only when no structured grammar matched. The cascade is evaluated top to bottom over the
normalized message and the first matching rule short-circuits the rest. Missing captures always
produce a clarifying reply, never silence.
"""

from __future__ import annotations

from typing import Any

from src.intent.executor import execute, find_bank, placeholder_bank_name
from src.intent.extractors import extract_amount, scan_bank_arguments
from src.intent.formatting import (
    POSITIVE_AMOUNT_EXAMPLE_REPLY,
    invalid_balance_reply,
    which_category_reply,
)
from src.intent.rules import Context, Predicate, Resolution, Rule, Utterance
from src.intent.schema import Entities, HelpTopic, Intent, IntentKind, NavigationTarget

_INCOME_WORDS: tuple[str, ...] = ("income", "received", "credit")
_BUDGET_EDIT_WORDS: tuple[str, ...] = ("set", "create", "manage")


def contains_any(*keywords: str) -> Predicate:
    """Predicate matching when the normalized message contains any of `keywords`."""

    def predicate(utterance: Utterance, _context: Context) -> bool:
        return any(keyword in utterance.text for keyword in keywords)

    return predicate


def starts_with(prefix: str) -> Predicate:
    def predicate(utterance: Utterance, _context: Context) -> bool:
        return utterance.text.startswith(prefix)

    return predicate


def equals(phrase: str) -> Predicate:
    def predicate(utterance: Utterance, _context: Context) -> bool:
        return utterance.text == phrase

    return predicate


def _fixed(intent: Intent):
    """Extractor for rules whose intent carries no entities."""

    def extract(utterance: Utterance, _match: Any, _context: Context) -> Resolution:
        return Resolution(intent=intent, entities=Entities(raw_text=utterance.raw))

    return extract


def _navigate(target: NavigationTarget):
    return _fixed(Intent(kind=IntentKind.navigate, target=target))


def _help(topic: HelpTopic):
    return _fixed(Intent(kind=IntentKind.help, topic=topic))


def _extract_budget(utterance: Utterance, _match: Any, _context: Context) -> Resolution:
    if any(word in utterance.text for word in _BUDGET_EDIT_WORDS):
        intent = Intent(kind=IntentKind.navigate, target=NavigationTarget.budget)
    else:
        intent = Intent(kind=IntentKind.budget_status)
    return Resolution(intent=intent, entities=Entities(raw_text=utterance.raw))


def _bank_tail(utterance: Utterance) -> list[str]:
    # Drop the two command words ("switch bank", "add bank"), keep the user's casing.
    return utterance.raw.split()[2:]


def _extract_switch_bank(utterance: Utterance, _match: Any, _context: Context) -> Resolution:
    return Resolution(
        intent=Intent(kind=IntentKind.switch_bank),
        entities=Entities(bank_name=" ".join(_bank_tail(utterance)), raw_text=utterance.raw),
    )


def _validate_switch_bank(resolution: Resolution, context: Context) -> str | None:
    name = resolution.entities.bank_name
    if not name:
        return "Please specify a bank name to switch to."
    if find_bank(context.snapshot, name) is None:
        return f'Bank "{name}" not found. You can create it: Add bank {name}'
    return None


def _extract_add_bank(utterance: Utterance, _match: Any, context: Context) -> Resolution:
    args = scan_bank_arguments(_bank_tail(utterance))
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


def _is_add_phrase(utterance: Utterance, _context: Context) -> bool:
    text = utterance.text
    return (
            text.startswith("add ")
            or " i spent" in text
            or "spent " in text
            or " add " in text
            or any(word in text for word in _INCOME_WORDS)
    )


def _extract_transaction(utterance: Utterance, _match: Any, context: Context) -> Resolution:
    text = utterance.text
    return Resolution(
        intent=Intent(
            kind=IntentKind.add_transaction,
            is_income=any(word in text for word in _INCOME_WORDS),
        ),
        entities=Entities(
            amount=extract_amount(text),
            category=context.catalog.resolve_contained(text),
            raw_text=utterance.raw,
        ),
    )


def _validate_transaction(resolution: Resolution, context: Context) -> str | None:
    amount = resolution.entities.amount
    # The extractor keeps a leading minus sign; non-positive amounts are rejected here.
    if amount is None or amount <= 0:
        return POSITIVE_AMOUNT_EXAMPLE_REPLY
    if resolution.entities.category is None:
        return which_category_reply(context.catalog.describe())
    return None


def _is_total_query(utterance: Utterance, _context: Context) -> bool:
    return utterance.text == "show total" or " total" in utterance.text


def _show_category(utterance: Utterance, context: Context) -> str | None:
    if not utterance.text.startswith("show "):
        return None
    return context.catalog.resolve_exact(utterance.raw[5:])


def _extract_show_category(utterance: Utterance, match: Any, _context: Context) -> Resolution:
    return Resolution(
        intent=Intent(kind=IntentKind.show_category_total),
        entities=Entities(category=match, raw_text=utterance.raw),
    )


FALLBACK_RULES: tuple[Rule, ...] = (
    Rule(
        name="navigate_dashboard",
        predicate=contains_any("dashboard", "home"),
        extract=_navigate(NavigationTarget.dashboard),
        execute=execute,
    ),
    Rule(
        name="navigate_transactions",
        predicate=contains_any("transaction", "history"),
        extract=_navigate(NavigationTarget.transactions),
        execute=execute,
    ),
    Rule(
        name="navigate_analytics",
        predicate=contains_any("analytics", "analysis", "chart"),
        extract=_navigate(NavigationTarget.analytics),
        execute=execute,
    ),
    Rule(
        name="budget",
        predicate=contains_any("budget", "limit"),
        extract=_extract_budget,
        execute=execute,
    ),
    Rule(
        name="navigate_settings",
        predicate=contains_any("settings", "profile"),
        extract=_navigate(NavigationTarget.settings),
        execute=execute,
    ),
    Rule(
        name="switch_bank_loose",
        predicate=starts_with("switch bank"),
        extract=_extract_switch_bank,
        validate=_validate_switch_bank,
        execute=execute,
    ),
    Rule(
        name="add_bank_loose",
        predicate=starts_with("add bank"),
        extract=_extract_add_bank,
        validate=_validate_add_bank,
        execute=execute,
    ),
    Rule(
        name="current_bank",
        predicate=equals("current bank"),
        extract=_fixed(Intent(kind=IntentKind.current_bank)),
        execute=execute,
    ),
    Rule(
        name="add_transaction_loose",
        predicate=_is_add_phrase,
        extract=_extract_transaction,
        validate=_validate_transaction,
        execute=execute,
    ),
    Rule(
        name="show_total_loose",
        predicate=_is_total_query,
        extract=_fixed(Intent(kind=IntentKind.show_total)),
        execute=execute,
    ),
    Rule(
        name="show_category_loose",
        predicate=_show_category,
        extract=_extract_show_category,
        execute=execute,
    ),
    Rule(
        name="category_breakdown",
        predicate=contains_any("category", "breakdown"),
        extract=_fixed(Intent(kind=IntentKind.category_breakdown)),
        execute=execute,
    ),
    Rule(
        name="weekly_summary",
        predicate=contains_any("week"),
        extract=_fixed(Intent(kind=IntentKind.weekly_summary)),
        execute=execute,
    ),
    Rule(
        name="monthly_summary",
        predicate=contains_any("month"),
        extract=_fixed(Intent(kind=IntentKind.monthly_summary)),
        execute=execute,
    ),
    Rule(
        name="features",
        predicate=contains_any("feature", "what can", "how to"),
        extract=_help(HelpTopic.features),
        execute=execute,
    ),
    Rule(
        name="greeting",
        predicate=contains_any("hello", "hi", "hey"),
        extract=_help(HelpTopic.greeting),
        execute=execute,
    ),
    Rule(
        name="help",
        predicate=contains_any("help"),
        extract=_help(HelpTopic.commands),
        execute=execute,
    ),
    Rule(
        name="about",
        predicate=contains_any("university", "student"),
        extract=_help(HelpTopic.about),
        execute=execute,
    ),
    Rule(
        name="theme",
        predicate=contains_any("dark mode", "theme"),
        extract=_help(HelpTopic.theme),
        execute=execute,
    ),
)
