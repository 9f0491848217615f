"""Term-frequency text similarity and near-duplicate query filtering."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from serpcluster.core.exceptions import ValidationError

NON_WORD_PATTERN = re.compile(r"[^\w\s]")
DEFAULT_NEAR_DUPLICATE_THRESHOLD = 0.9

T = TypeVar("T")


def tokenize(text: str) -> list[str]:
    """Lowercase text, turn punctuation into spaces and split on whitespace."""
    return NON_WORD_PATTERN.sub(" ", (text or "").lower()).split()


def term_frequencies(text: str) -> Counter[str]:
    """Raw term counts for text (no normalization, no IDF)."""
    return Counter(tokenize(text))


def cosine_similarity(text_a: str, text_b: str) -> float:
    """Bag-of-words cosine similarity in [0, 1].

    Returns 0.0 when either text produces no tokens.
    """
    freq_a = term_frequencies(text_a)
    freq_b = term_frequencies(text_b)
    if not freq_a or not freq_b:
        return 0.0

    dot_product = sum(count * freq_b[token] for token, count in freq_a.items())
    magnitude_a = math.sqrt(sum(count * count for count in freq_a.values()))
    magnitude_b = math.sqrt(sum(count * count for count in freq_b.values()))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return min(1.0, dot_product / (magnitude_a * magnitude_b))


def filter_near_duplicates(
    candidates: Sequence[T],
    threshold: float = DEFAULT_NEAR_DUPLICATE_THRESHOLD,
    *,
    key: Callable[[T], str] | None = None,
) -> list[T]:
    """Greedily drop candidates too similar to one already kept.

    Candidates are visited in input order; one is kept unless its cosine
    similarity to any kept candidate exceeds `threshold`. The surviving set
    depends on input order.
    """
    if not 0.0 < threshold < 1.0:
        raise ValidationError(
            f"Near-duplicate threshold must be between 0 and 1 (exclusive), got {threshold}",
            {"threshold": threshold},
        )

    text_of = key or candidate_text
    kept: list[T] = []
    kept_texts: list[str] = []

    for candidate in candidates:
        text = text_of(candidate)
        if any(cosine_similarity(text, existing) > threshold for existing in kept_texts):
            continue
        kept.append(candidate)
        kept_texts.append(text)

    return kept


def candidate_text(candidate: Any) -> str:
    """Extract the query text from a str, a mapping or a SubQuery-like object."""
    if isinstance(candidate, str):
        return candidate
    if isinstance(candidate, Mapping):
        return str(candidate.get("q") or candidate.get("text") or "")
    return str(getattr(candidate, "q", None) or getattr(candidate, "text", "") or "")
