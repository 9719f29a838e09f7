"""Conversational command interpreter (entry point).

Strategy:
    1) Try the strict grammars (`STRUCTURED_RULES`); the first full match owns the message.
    2) Otherwise try the keyword cascade (`FALLBACK_RULES`); the first containment match wins.
    3) Otherwise reply with the default usage hint.

The interpreter is stateless: every call is a function of the message, the snapshot passed in, the
injected clock and the configured amounts. It never raises; unexpected errors become an apology
reply with no effects.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date

from src.intent.catalog import CategoryCatalog
from src.intent.fallback import FALLBACK_RULES
from src.intent.formatting import DEFAULT_CURRENCY_SYMBOL, DEFAULT_REPLY, ERROR_REPLY
from src.intent.normalize import clean_text, normalize_text
from src.intent.rules import Context, Utterance, run_cascade
from src.intent.schema import ExecutionResult, Snapshot
from src.intent.structured import STRUCTURED_RULES

logger = logging.getLogger(__name__)

Delay = Callable[[float], Awaitable[None]]

DEFAULT_THINKING_TIME_S = 1.0
DEFAULT_MONTHLY_BUDGET = 5000.0


async def no_delay(_seconds: float) -> None:
    """Delay implementation that returns immediately (tests, CLI tools)."""


class Interpreter:
    """Resolves chat messages into an `ExecutionResult`."""

    def __init__(
            self,
            *,
            delay: Delay = asyncio.sleep,
            thinking_time_s: float = DEFAULT_THINKING_TIME_S,
            today: Callable[[], date] = date.today,
            monthly_budget: float = DEFAULT_MONTHLY_BUDGET,
            currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    ) -> None:
        self._delay = delay
        self._thinking_time_s = thinking_time_s
        self._today = today
        self._monthly_budget = monthly_budget
        self._currency_symbol = currency_symbol

    async def interpret(self, raw_text: str, snapshot: Snapshot) -> ExecutionResult:
        """Wait for the configured "thinking" time, then resolve the message."""

        await self._delay(self._thinking_time_s)
        return self.resolve(raw_text, snapshot)

    def resolve(self, raw_text: str, snapshot: Snapshot) -> ExecutionResult:
        """Resolve the message without the artificial delay."""

        # noinspection PyBroadException
        try:
            return self._resolve(raw_text, snapshot)
        except Exception:
            # Interpreter boundary: every message gets exactly one reply and no partial effects.
            logger.exception("interpretation failed")
            return ExecutionResult(response_text=ERROR_REPLY)

    def _resolve(self, raw_text: str, snapshot: Snapshot) -> ExecutionResult:
        raw = clean_text(raw_text)
        utterance = Utterance(raw=raw, text=normalize_text(raw))
        context = Context(
            snapshot=snapshot,
            catalog=CategoryCatalog(snapshot.categories),
            today=self._today(),
            monthly_budget=self._monthly_budget,
            currency_symbol=self._currency_symbol,
        )

        for tier, rules in (("structured", STRUCTURED_RULES), ("fallback", FALLBACK_RULES)):
            outcome = run_cascade(rules, utterance, context)
            if outcome is not None:
                logger.debug(
                    "resolved tier=%s rule=%s effects=%d",
                    tier,
                    outcome.rule.name,
                    len(outcome.result.effects),
                )
                return outcome.result

        logger.debug("resolved tier=default")
        return ExecutionResult(response_text=DEFAULT_REPLY)


_default_interpreter = Interpreter()


async def interpret(raw_text: str, snapshot: Snapshot) -> ExecutionResult:
    """Interpret a message with the default interpreter (convenience wrapper)."""

    return await _default_interpreter.interpret(raw_text, snapshot)
