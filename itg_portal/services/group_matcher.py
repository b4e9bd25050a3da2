from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern

SEPARATOR_PATTERN = re.compile(r"[_-]+")
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_group_name(raw: object) -> str:
    """Canonicalize a raw group display name for comparison."""
    text = "" if raw is None else str(raw)
    text = SEPARATOR_PATTERN.sub(" ", text.lower())
    return WHITESPACE_PATTERN.sub(" ", text).strip()


@lru_cache(maxsize=512)
def _phrase_pattern(phrase: str) -> Pattern[str]:
    return re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)


def matches_phrase(name: str, phrase: str) -> bool:
    if not phrase:
        return False
    return bool(_phrase_pattern(phrase).search(name))


def matches_any(normalized_names: Iterable[str], patterns: Iterable[str]) -> bool:
    """Return True if any name contains any pattern on word boundaries.

    ``"ops"`` matches ``"ops team"`` but not ``"laptops"``.
    """
    phrases = list(patterns)
    if not phrases:
        return False
    return any(
        matches_phrase(name, phrase)
        for name in normalized_names
        for phrase in phrases
    )
