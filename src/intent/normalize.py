"""Text normalization for deterministic intent matching."""

from __future__ import annotations

import re

_MULTISPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Trim the raw message and collapse whitespace runs, preserving case.

    Strict grammars and bank names are matched against this form so user-typed names keep their
    original spelling.
    """

    return _MULTISPACE_RE.sub(" ", (text or "").strip())


def normalize_text(text: str) -> str:
    """Normalize user text for keyword matching.

    Normalization is intentionally conservative:
        - Trim and collapse whitespace.
        - Lowercase.

    Punctuation is kept: amounts such as `12.50` and bank names such as `hdfc-2` must survive.
    """

    return clean_text(text).lower()
