"""Shared lexical primitives: sentence splitting, tokens and similarity.

All matching is whole-word on lowercase tokens so that short cue words such
as "no" never match inside longer words ("know", "notable").
"""

import re
from typing import Iterable

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
WORD = re.compile(r"[a-z0-9']+")

NEGATION_WORDS: frozenset[str] = frozenset(
    {"not", "never", "no", "none", "nothing", "neither", "nor"}
)

HEDGE_PATTERN = re.compile(r"\b(might|could|possibly|perhaps|maybe)\b", re.IGNORECASE)
CITATION_PATTERN = re.compile(
    r"\b(according to|research|study|studies|evidence|proven|fact)\b", re.IGNORECASE
)
DIGIT_PATTERN = re.compile(r"\d")


def split_sentences(text: str) -> list[str]:
    """Split on sentence-terminal punctuation, keeping non-empty trimmed parts."""
    return [part.strip() for part in SENTENCE_BOUNDARY.split(text) if part.strip()]


def word_tokens(text: str) -> list[str]:
    """Lowercase word tokens, apostrophes kept ("don't")."""
    return WORD.findall(text.lower())


def token_set(text: str) -> set[str]:
    """Lowercase whitespace-delimited token set used for Jaccard similarity."""
    return {token for token in text.lower().split() if token}


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lowercase whitespace token sets of two texts."""
    left, right = token_set(a), token_set(b)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def contains_any(tokens: Iterable[str], words: Iterable[str]) -> bool:
    token_pool = set(tokens)
    return any(word in token_pool for word in words)


def negation_difference(
    a: str,
    b: str,
    negations: Iterable[str] = NEGATION_WORDS,
    step: float = 0.3,
) -> float:
    """Score how differently two texts use negation words.

    Each negation word present in exactly one of the texts adds ``step``;
    the result is capped at 1.0. Symmetric in its arguments.
    """
    left, right = set(word_tokens(a)), set(word_tokens(b))
    mismatched = sum(1 for word in negations if (word in left) != (word in right))
    return min(1.0, mismatched * step)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
