"""Interpreter data model (Pydantic models).

These models are the contract between the chat interpreter and its collaborators: the snapshot is
what the interpreter reads, the effects are what the bank directory and ledger store apply. Effect
models enforce the mutation invariants (strictly positive, finite amounts) at construction time.
"""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Food",
    "Transport",
    "Books",
    "Entertainment",
    "Canteen",
    "Auto",
    "Snacks",
    "Mess",
    "Stationery",
    "Medical",
    "Other",
)


class IntentKind(StrEnum):
    """Classified purpose of a chat message."""

    add_transaction = "add_transaction"
    add_bank = "add_bank"
    switch_bank = "switch_bank"
    current_bank = "current_bank"
    show_total = "show_total"
    show_category_total = "show_category_total"
    navigate = "navigate"
    budget_status = "budget_status"
    category_breakdown = "category_breakdown"
    weekly_summary = "weekly_summary"
    monthly_summary = "monthly_summary"
    help = "help"
    unknown = "unknown"


class NavigationTarget(StrEnum):
    """Views the routing collaborator knows about."""

    dashboard = "dashboard"
    transactions = "transactions"
    analytics = "analytics"
    budget = "budget"
    settings = "settings"


class HelpTopic(StrEnum):
    """Canned informational replies."""

    features = "features"
    greeting = "greeting"
    commands = "commands"
    about = "about"
    theme = "theme"


class TransactionType(StrEnum):
    expense = "expense"
    income = "income"


class Intent(BaseModel):
    """A resolved intent with its variant-specific fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: IntentKind
    is_income: bool | None = None
    target: NavigationTarget | None = None
    topic: HelpTopic | None = None

    @model_validator(mode="after")
    def validate_variant(self) -> Intent:
        """Each variant field belongs to exactly one intent kind."""

        if (self.is_income is not None) != (self.kind == IntentKind.add_transaction):
            raise ValueError("is_income is required for add_transaction and forbidden otherwise")
        if (self.target is not None) != (self.kind == IntentKind.navigate):
            raise ValueError("target is required for navigate and forbidden otherwise")
        if (self.topic is not None) != (self.kind == IntentKind.help):
            raise ValueError("topic is required for help and forbidden otherwise")
        return self


class Entities(BaseModel):
    """Values extracted from a message.

    For `add_bank` the `amount` field carries the opening balance.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    amount: float | None = None
    category: str | None = None
    bank_name: str | None = None
    raw_text: str = ""


class BankAccount(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str
    name: str
    initial_balance: float = 0.0
    created_at: dt.datetime | None = None


class LedgerEntry(BaseModel):
    """A single recorded transaction of the current bank."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str
    amount: float = Field(gt=0, allow_inf_nan=False)
    category: str
    description: str = ""
    date: dt.date
    # Rows created before income tracking existed carry no type.
    type: TransactionType = TransactionType.expense


class Snapshot(BaseModel):
    """Read-only view of the state a single interpretation runs against."""

    model_config = ConfigDict(extra="forbid")

    categories: tuple[str, ...] = DEFAULT_CATEGORIES
    banks: list[BankAccount] = Field(default_factory=list)
    current_bank: BankAccount | None = None
    ledger: list[LedgerEntry] = Field(default_factory=list)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("categories must not be empty")
        return value

    @model_validator(mode="after")
    def validate_bank_ids(self) -> Snapshot:
        """Bank ids are unique within the directory."""

        ids = [bank.id for bank in self.banks]
        if len(ids) != len(set(ids)):
            raise ValueError("bank ids must be unique")
        return self


class AddTransaction(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["add_transaction"] = "add_transaction"
    id: str
    amount: float = Field(gt=0, allow_inf_nan=False)
    category: str
    type: TransactionType
    description: str
    date: dt.date


class CreateBank(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["create_bank"] = "create_bank"
    name: str = Field(min_length=1)
    initial_balance: float = Field(default=0.0, allow_inf_nan=False)


class SwitchBank(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["switch_bank"] = "switch_bank"
    bank_id: str


class Navigate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["navigate"] = "navigate"
    target: NavigationTarget


Effect = Annotated[AddTransaction | CreateBank | SwitchBank | Navigate, Field(discriminator="kind")]


class ExecutionResult(BaseModel):
    """The single outcome of one interpretation call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    response_text: str = Field(min_length=1)
    effects: tuple[Effect, ...] = ()
