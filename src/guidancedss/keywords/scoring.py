"""Whole-word keyword extraction and keyword-volume confidence."""

from __future__ import annotations

import re
from typing import Any, List, Sequence, Tuple

from guidancedss.keywords.lexicon import KEYWORDS

CONFIDENCE_PER_KEYWORD = 15
MAX_KEYWORD_CONFIDENCE = 85


def _compile_patterns() -> Tuple[Tuple[str, re.Pattern[str]], ...]:
    patterns = []
    for groups in KEYWORDS.values():
        for phrases in groups.values():
            for phrase in phrases:
                patterns.append((phrase, re.compile(rf"\b{re.escape(phrase)}\b", re.IGNORECASE)))
    return tuple(patterns)


# One entry per lexicon listing, in declaration order.
_PATTERNS = _compile_patterns()


def normalize_text(text: str | None) -> str:
    return (text or "").lower().strip()


def extract_keywords(text: str | None) -> List[str]:
    """Return the lexicon phrases found in ``text`` as whole words.

    Each phrase is tested once, so repeated occurrences in the text yield a
    single entry. A phrase listed under several categories is appended once
    per listing.
    """
    normalized = normalize_text(text)
    if not normalized:
        return []
    return [phrase for phrase, pattern in _PATTERNS if pattern.search(normalized)]


def calculate_confidence(raw_signal: Any, matched_keywords: Sequence[str] | None) -> int:
    """Confidence in [0, 85] from the number of matched keywords."""
    if not matched_keywords:
        return 0
    return int(min(len(matched_keywords) * CONFIDENCE_PER_KEYWORD, MAX_KEYWORD_CONFIDENCE))
