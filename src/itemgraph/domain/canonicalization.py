"""Display-name canonicalisation for catalog items."""

from __future__ import annotations

import re
from typing import Final

_NAME_DECORATIONS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"^(Novice's?|Adept's?|Expert's?|Master's?|Grandmaster's?|Elder's?)\s+", re.I),
    re.compile(r"\s*\bT[1-8]\b\s*", re.I),
    re.compile(r"@[1-4]"),
    re.compile(r"\s*\([^)]*Quality\)[^|]*", re.I),
    re.compile(r"\s*\([^)]*\)$"),
)
_WHITESPACE: Final = re.compile(r"\s+")
_EDGE_PUNCTUATION: Final = re.compile(r"^\W+|\W+$")


def canonical_name(raw_name: str) -> str:
    """Strip tier, enchantment and quality decoration from ``raw_name``.

    Falls back to ``raw_name`` unchanged when nothing would be left, so a name
    made only of decoration is never reduced to an empty string.
    """

    cleaned = raw_name
    for pattern in _NAME_DECORATIONS:
        cleaned = pattern.sub(" ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _EDGE_PUNCTUATION.sub("", cleaned)
    return cleaned or raw_name
