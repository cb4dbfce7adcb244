"""
Lexical similarity scoring for learner answers.

Two measures feed the exercise evaluators:
- edit_similarity: normalized Levenshtein similarity (character level)
- token_overlap: share of words in common (word level, order-free)

Both return a float in [0, 1] and are pure functions.
"""

from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace and trim."""
    text = _PUNCTUATION.sub("", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: str) -> list[str]:
    """Split normalized text into word tokens."""
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def edit_similarity(a: str, b: str) -> float:
    """
    Normalized Levenshtein similarity.

    1 - distance / max(len(a), len(b)). Identical strings (including two
    empty strings) score 1.0; an empty string against a non-empty one
    scores 0.0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(a, b) / longest


def token_overlap(a: str, b: str) -> float:
    """
    Ratio of tokens from ``a`` that appear in ``b``.

    The denominator is the larger token count so that extra or missing
    words both lower the score.
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0

    vocabulary = set(tokens_b)
    matching = sum(1 for token in tokens_a if token in vocabulary)
    return matching / max(len(tokens_a), len(tokens_b))
