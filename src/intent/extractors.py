"""Entity extractors: amounts and bank command arguments.

All functions are pure and never raise on user input.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

# ASCII digits only; `\d` matches any Unicode digit.
_AMOUNT_RE = re.compile(r"(-?[0-9]+(?:\.[0-9]+)?)")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_number(raw: str) -> float | None:
    """Parse a numeric string; `None` for malformed or non-finite values."""

    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def extract_amount(text: str) -> float | None:
    """Return the first signed decimal number in `text`, or `None`.

    Currency symbols and grouping separators are not interpreted ("1,000" yields 1.0). The sign is
    kept: "add -10 food" yields -10.0, and it is up to the caller to reject non-positive values.
    """

    match = _AMOUNT_RE.search(text or "")
    if not match:
        return None
    return parse_number(match.group(1))


def starts_with_number(token: str) -> bool:
    return _LEADING_NUMBER_RE.match((token or "").strip()) is not None


def parse_leading_number(token: str) -> float | None:
    """Parse the numeric prefix of a single token ("500", "1e5", "100k" -> 100.0).

    `None` when the token does not start with a number or the number is not finite.
    """

    match = _LEADING_NUMBER_RE.match((token or "").strip())
    if not match:
        return None
    return parse_number(match.group(0))


@dataclass(frozen=True)
class BankArguments:
    """Name and opening balance scanned from the tail of an `add bank` command."""

    name: str
    opening_balance: float
    # Numeric token that did not parse to a finite balance, e.g. "1e999".
    rejected_balance: str | None = None


def scan_bank_arguments(tokens: list[str]) -> BankArguments:
    """Split `add bank` arguments into a name and an opening balance.

    Tokens are scanned left to right; the first numeric token stops name accumulation and becomes
    the opening balance. Without a numeric token the balance is 0 and every token is part of the
    name. The returned name may be empty.

    A numeric token too large for a float still ends the name; it is reported in
    `rejected_balance` and the balance stays 0.
    """

    name_parts: list[str] = []
    for token in tokens:
        if starts_with_number(token):
            value = parse_leading_number(token)
            name = " ".join(name_parts).strip()
            if value is None:
                return BankArguments(name=name, opening_balance=0.0, rejected_balance=token)
            return BankArguments(name=name, opening_balance=value)
        name_parts.append(token)

    return BankArguments(name=" ".join(name_parts).strip(), opening_balance=0.0)
