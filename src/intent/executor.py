"""Intent executors.

Each executor turns a validated resolution into an `ExecutionResult`: a response string plus at
most one effect. Aggregates are computed from the snapshot ledger on every call.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import timedelta

from src.intent.formatting import (
    ABOUT_REPLY,
    COMMANDS_REPLY,
    DEFAULT_REPLY,
    FEATURES_REPLY,
    GREETING_REPLY,
    NAVIGATION_REPLIES,
    THEME_REPLY,
    bank_suffix,
    format_currency,
)
from src.intent.rules import Context, Resolution
from src.intent.schema import (
    AddTransaction,
    BankAccount,
    CreateBank,
    ExecutionResult,
    HelpTopic,
    IntentKind,
    LedgerEntry,
    Navigate,
    Snapshot,
    SwitchBank,
    TransactionType,
)

_HELP_REPLIES: dict[HelpTopic, str] = {
    HelpTopic.features: FEATURES_REPLY,
    HelpTopic.greeting: GREETING_REPLY,
    HelpTopic.commands: COMMANDS_REPLY,
    HelpTopic.about: ABOUT_REPLY,
    HelpTopic.theme: THEME_REPLY,
}

_TOP_CATEGORIES = 3
_LOW_BUDGET_WARNING = 1000.0


def find_bank(snapshot: Snapshot, name: str | None) -> BankAccount | None:
    """Look up a bank by case-insensitive exact name."""

    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    return next((bank for bank in snapshot.banks if bank.name.lower() == wanted), None)


def placeholder_bank_name(snapshot: Snapshot) -> str:
    return f"Bank {len(snapshot.banks) + 1}"


def _signed(entry: LedgerEntry) -> float:
    return entry.amount if entry.type == TransactionType.income else -entry.amount


def _expenses(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    return [e for e in entries if e.type == TransactionType.expense]


def execute_add_transaction(resolution: Resolution, context: Context) -> ExecutionResult:
    entities = resolution.entities
    is_income = bool(resolution.intent.is_income)
    effect = AddTransaction(
        id=uuid.uuid4().hex,
        amount=entities.amount,
        category=entities.category,
        type=TransactionType.income if is_income else TransactionType.expense,
        description=f"Added via chat: {entities.raw_text}",
        date=context.today,
    )

    amount = format_currency(effect.amount, context.currency_symbol)
    bank = context.snapshot.current_bank
    if is_income:
        text = f"Recorded income {amount} in {effect.category}{bank_suffix(bank, 'for')}."
    else:
        text = f"Added {amount} to {effect.category}{bank_suffix(bank)}."
    return ExecutionResult(response_text=text, effects=(effect,))


def execute_create_bank(resolution: Resolution, context: Context) -> ExecutionResult:
    entities = resolution.entities
    name = entities.bank_name or placeholder_bank_name(context.snapshot)
    opening = entities.amount or 0.0
    effect = CreateBank(name=name, initial_balance=opening)

    text = f"Created bank: {name}"
    if opening:
        text += f" with opening balance {format_currency(opening, context.currency_symbol)}"
    text += " and switched to it."
    return ExecutionResult(response_text=text, effects=(effect,))


def execute_switch_bank(resolution: Resolution, context: Context) -> ExecutionResult:
    target = find_bank(context.snapshot, resolution.entities.bank_name)
    if target is None:
        # Validators reject unknown names; keep the executor total anyway.
        return ExecutionResult(response_text=f'Bank "{resolution.entities.bank_name}" not found.')
    return ExecutionResult(
        response_text=f"Switched to bank: {target.name}.",
        effects=(SwitchBank(bank_id=target.id),),
    )


def execute_current_bank(_resolution: Resolution, context: Context) -> ExecutionResult:
    bank = context.snapshot.current_bank
    if bank is None:
        return ExecutionResult(response_text="No bank selected")
    return ExecutionResult(response_text=f"Current bank: {bank.name}")


def execute_show_total(_resolution: Resolution, context: Context) -> ExecutionResult:
    ledger = context.snapshot.ledger
    net = sum(_signed(e) for e in ledger)
    return ExecutionResult(
        response_text=(
            f"Current balance change{bank_suffix(context.snapshot.current_bank)}: "
            f"{format_currency(net, context.currency_symbol)} ({len(ledger)} transactions)."
        )
    )


def execute_show_category_total(resolution: Resolution, context: Context) -> ExecutionResult:
    category = resolution.entities.category or ""
    where = bank_suffix(context.snapshot.current_bank)
    selected = [e for e in context.snapshot.ledger if e.category.lower() == category.lower()]
    if not selected:
        return ExecutionResult(response_text=f"No transactions for {category}{where}.")

    income = sum(e.amount for e in selected if e.type == TransactionType.income)
    expense = sum(e.amount for e in selected if e.type == TransactionType.expense)
    symbol = context.currency_symbol
    return ExecutionResult(
        response_text=(
            f"{category}{where}: Income {format_currency(income, symbol)}, "
            f"Expense {format_currency(expense, symbol)}, "
            f"Net {format_currency(income - expense, symbol)} ({len(selected)} entries)."
        )
    )


def execute_navigate(resolution: Resolution, _context: Context) -> ExecutionResult:
    target = resolution.intent.target
    return ExecutionResult(
        response_text=NAVIGATION_REPLIES[target],
        effects=(Navigate(target=target),),
    )


def _this_month(context: Context) -> list[LedgerEntry]:
    today = context.today
    return [
        e
        for e in _expenses(context.snapshot.ledger)
        if e.date.year == today.year and e.date.month == today.month
    ]


def execute_budget_status(_resolution: Resolution, context: Context) -> ExecutionResult:
    spent = sum(e.amount for e in _this_month(context))
    budget = context.monthly_budget
    remaining = budget - spent
    symbol = context.currency_symbol
    advice = (
        "You might want to be more careful with spending!"
        if remaining < _LOW_BUDGET_WARNING
        else "You're doing well!"
    )
    return ExecutionResult(
        response_text=(
            f"This month you've spent {format_currency(spent, symbol)} out of your "
            f"{format_currency(budget, symbol)} budget. You have "
            f"{format_currency(remaining, symbol)} remaining. {advice}"
        )
    )


def execute_category_breakdown(_resolution: Resolution, context: Context) -> ExecutionResult:
    totals: dict[str, float] = {}
    for entry in _expenses(context.snapshot.ledger):
        totals[entry.category] = totals.get(entry.category, 0.0) + entry.amount

    if not totals:
        return ExecutionResult(
            response_text=(
                "You haven't added any expenses yet. "
                "Start tracking by telling me about your spending!"
            )
        )

    # sorted() is stable: equal totals keep first-seen order.
    top = sorted(totals.items(), key=lambda item: -item[1])[:_TOP_CATEGORIES]
    listing = ", ".join(
        f"{category} ({format_currency(amount, context.currency_symbol)})" for category, amount in top
    )
    return ExecutionResult(
        response_text=(
            f"Your top spending categories are: {listing}. "
            "Would you like to see detailed analytics?"
        )
    )


def execute_weekly_summary(_resolution: Resolution, context: Context) -> ExecutionResult:
    since = context.today - timedelta(days=7)
    selected = [e for e in _expenses(context.snapshot.ledger) if e.date >= since]
    total = sum(e.amount for e in selected)
    symbol = context.currency_symbol
    return ExecutionResult(
        response_text=(
            f"This week you've spent {format_currency(total, symbol)} across {len(selected)} "
            f"transactions. Your daily average is {format_currency(total / 7, symbol)}."
        )
    )


def execute_monthly_summary(_resolution: Resolution, context: Context) -> ExecutionResult:
    selected = _this_month(context)
    total = sum(e.amount for e in selected)
    symbol = context.currency_symbol
    per_day = total / context.today.day
    return ExecutionResult(
        response_text=(
            f"This month you've spent {format_currency(total, symbol)} across {len(selected)} "
            f"transactions. That's an average of {format_currency(per_day, symbol)} per day."
        )
    )


def execute_help(resolution: Resolution, _context: Context) -> ExecutionResult:
    return ExecutionResult(response_text=_HELP_REPLIES[resolution.intent.topic])


def execute_unknown(_resolution: Resolution, _context: Context) -> ExecutionResult:
    return ExecutionResult(response_text=DEFAULT_REPLY)


_EXECUTORS = {
    IntentKind.add_transaction: execute_add_transaction,
    IntentKind.add_bank: execute_create_bank,
    IntentKind.switch_bank: execute_switch_bank,
    IntentKind.current_bank: execute_current_bank,
    IntentKind.show_total: execute_show_total,
    IntentKind.show_category_total: execute_show_category_total,
    IntentKind.navigate: execute_navigate,
    IntentKind.budget_status: execute_budget_status,
    IntentKind.category_breakdown: execute_category_breakdown,
    IntentKind.weekly_summary: execute_weekly_summary,
    IntentKind.monthly_summary: execute_monthly_summary,
    IntentKind.help: execute_help,
    IntentKind.unknown: execute_unknown,
}


def execute(resolution: Resolution, context: Context) -> ExecutionResult:
    """Dispatch on the resolved intent kind."""

    return _EXECUTORS[resolution.intent.kind](resolution, context)
