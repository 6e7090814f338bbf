"""Sparse term-frequency vectors built from free text."""

from __future__ import annotations

import re
from collections import Counter

from thinkly.memory.models import TermVector

STOP_WORDS: frozenset[str] = frozenset(
    {
        "this",
        "that",
        "with",
        "from",
        "there",
        "about",
        "should",
        "could",
        "would",
        "which",
    }
)
MIN_TERM_LENGTH = 4

_NON_WORD = re.compile(r"[^\w\s]")


def extract_terms(text: str) -> list[str]:
    """Lowercase tokens worth matching on, in input order."""
    cleaned = _NON_WORD.sub("", text.lower())
    return [
        token
        for token in cleaned.split()
        if len(token) >= MIN_TERM_LENGTH and token not in STOP_WORDS
    ]


def build_vector(text: str) -> TermVector:
    return dict(Counter(extract_terms(text)))


def similarity(a: TermVector, b: TermVector) -> int:
    """Dot product over shared terms."""
    if len(b) < len(a):
        a, b = b, a
    return sum(count * b[term] for term, count in a.items() if term in b)
