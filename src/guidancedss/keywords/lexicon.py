"""Categorized trigger-phrase lexicon for teacher behavior notes."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

# Curated lexicon (small, deterministic). Changing a phrase changes match behavior everywhere.
KEYWORDS: Mapping[str, Mapping[str, Tuple[str, ...]]] = MappingProxyType(
    {
        "academic": MappingProxyType(
            {
                "comprehension": ("understand", "comprehend", "struggle", "difficult", "hard time", "confused"),
                "writing": ("writing", "composition", "essay", "paragraph", "grammar", "spelling"),
                "math": ("math", "arithmetic", "calculation", "number", "algebra", "geometry"),
                "reading": ("reading", "read", "literacy", "decode", "fluency", "phonics"),
                "science": ("science", "experiment", "lab", "hypothesis", "observation"),
                "performance": ("low grade", "failing", "score", "grade", "performance", "achievement"),
            }
        ),
        "behavioral": MappingProxyType(
            {
                "disruptive": ("disrupt", "interrupt", "talk", "noise", "loud", "chaos", "attention seeking"),
                "aggressive": ("hit", "push", "fight", "aggressive", "violent", "assault", "threat"),
                "defiant": ("refuse", "defiant", "won't", "stubborn", "argumentative", "talk back"),
                "dishonest": ("lie", "cheat", "copy", "dishonest", "plagiarism", "fake"),
                "bullying": ("bully", "tease", "mock", "exclude", "laugh at", "mean", "harassment"),
            }
        ),
        "attendance": MappingProxyType(
            {
                "absent": ("absent", "missing", "cut class", "skip", "truant", "no-show"),
                "late": ("late", "tardy", "arrive late", "delayed", "not on time"),
            }
        ),
        "social": MappingProxyType(
            {
                "shy": ("shy", "quiet", "withdrawn", "isolated", "social", "interaction", "participate"),
                "sad": ("sad", "cry", "upset", "emotional", "depressed", "down"),
                "anxious": ("anxiety", "anxious", "worry", "stress", "nervous", "panic"),
                "conflict": ("conflict", "argue", "disagree", "dispute", "peer issue", "friend"),
            }
        ),
        "health": MappingProxyType(
            {
                "illness": ("sick", "ill", "cold", "fever", "unwell", "health", "medical"),
                "fatigue": ("tired", "fatigue", "sleepy", "sleep", "exhausted", "energy"),
                "physical": ("injury", "hurt", "pain", "physical", "accident", "hospital"),
            }
        ),
    }
)

CATEGORIES: Tuple[str, ...] = tuple(KEYWORDS)


def category_keywords(category: str) -> Tuple[str, ...]:
    """Return every phrase of a lexicon category, flattened in declaration order."""
    groups = KEYWORDS.get(category)
    if groups is None:
        raise KeyError(f"Unknown keyword category: {category}")
    return tuple(phrase for phrases in groups.values() for phrase in phrases)

