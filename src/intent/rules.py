"""Rule table primitives shared by the structured and fallback matchers.

A rule is a `{predicate, extract, validate, execute}` record. A cascade is an ordered tuple of rules;
the first rule whose predicate matches owns the message, whether or not its validation succeeds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from src.intent.catalog import CategoryCatalog
from src.intent.formatting import DEFAULT_CURRENCY_SYMBOL
from src.intent.schema import Entities, ExecutionResult, Intent, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Utterance:
    """One incoming message in the two forms the matchers use."""

    # Trimmed and whitespace-collapsed, original casing.
    raw: str
    # Lowercased `raw`, used for keyword containment.
    text: str


@dataclass(frozen=True)
class Context:
    """Read-only inputs of a single interpretation call."""

    snapshot: Snapshot
    catalog: CategoryCatalog
    today: date
    monthly_budget: float = 5000.0
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL


@dataclass(frozen=True)
class Resolution:
    """An intent plus the entities extracted for it."""

    intent: Intent
    entities: Entities
    # Raw grammar captures, kept for clarifying replies.
    captures: Mapping[str, str] = field(default_factory=dict)


Predicate = Callable[[Utterance, Context], Any]
Extractor = Callable[[Utterance, Any, Context], Resolution]
Validator = Callable[[Resolution, Context], str | None]
Executor = Callable[[Resolution, Context], ExecutionResult]


def always_valid(_resolution: Resolution, _context: Context) -> str | None:
    return None


@dataclass(frozen=True)
class Rule:
    """A single matcher rule.

    Attributes:
        name: Stable identifier used in logs and tests.
        predicate: Returns a truthy match object (e.g. `re.Match`) when the rule applies.
        extract: Builds the resolution from the utterance and the predicate's match object.
        execute: Produces the response and effects for a valid resolution.
        validate: Returns a clarifying reply when the resolution must not be executed.
    """

    name: str
    predicate: Predicate
    extract: Extractor
    execute: Executor
    validate: Validator = always_valid

    def apply(self, utterance: Utterance, context: Context) -> ExecutionResult | None:
        """Run the rule; `None` means the predicate did not match."""

        match = self.predicate(utterance, context)
        if not match:
            return None

        resolution = self.extract(utterance, match, context)
        problem = self.validate(resolution, context)
        if problem is not None:
            logger.debug("rule=%s rejected reason=%r", self.name, problem)
            return ExecutionResult(response_text=problem)
        return self.execute(resolution, context)


@dataclass(frozen=True)
class CascadeOutcome:
    rule: Rule
    result: ExecutionResult


def run_cascade(
        rules: Sequence[Rule],
        utterance: Utterance,
        context: Context,
) -> CascadeOutcome | None:
    """Try `rules` in order and return the outcome of the first matching rule."""

    for rule in rules:
        result = rule.apply(utterance, context)
        if result is not None:
            return CascadeOutcome(rule=rule, result=result)
    return None
