"""Category catalog and resolver.

All category resolution is relative to an injected, ordered catalog of canonical names. Matching is
case-insensitive; results are always returned in canonical casing.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator


class CategoryCatalog:
    """Ordered, immutable set of canonical category names."""

    __slots__ = ("_names", "_by_lower", "_word_patterns")

    def __init__(self, names: Iterable[str]) -> None:
        cleaned = tuple(name.strip() for name in names)
        if not cleaned or any(not name for name in cleaned):
            raise ValueError("category catalog must contain non-empty names")

        by_lower: dict[str, str] = {}
        for name in cleaned:
            key = name.lower()
            if key in by_lower:
                raise ValueError(f"duplicate category: {name!r}")
            by_lower[key] = name

        self._names = cleaned
        self._by_lower = by_lower
        self._word_patterns = tuple(
            (name, re.compile(rf"(?:^|\b){re.escape(name.lower())}(?:\b|$)")) for name in cleaned
        )

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and self.resolve_exact(value) is not None

    def __repr__(self) -> str:
        return f"CategoryCatalog({list(self._names)!r})"

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def resolve_exact(self, text: str) -> str | None:
        """Return the canonical name equal to `text` (case-insensitive), or `None`."""

        return self._by_lower.get((text or "").strip().lower())

    def resolve_contained(self, text: str) -> str | None:
        """Return the first catalog entry (in catalog order) that appears in `text` as a whole word.

        When several categories are mentioned, catalog order decides, not their position in the
        sentence: with the default catalog, "add books food stuff" resolves to `Food`.
        """

        lowered = (text or "").lower()
        for name, pattern in self._word_patterns:
            if pattern.search(lowered):
                return name
        return None

    def describe(self) -> str:
        """Comma-separated list used in "Available: ..." replies."""

        return ", ".join(self._names)
