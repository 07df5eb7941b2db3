#!/usr/bin/env python3
"""
Fuzzy matching helpers for ingredient parsing.
Edit-distance similarity and ranked suggestions over a candidate list.
"""

from dataclasses import dataclass
from typing import List, Sequence

import Levenshtein

from text_normalizer import normalize


@dataclass(frozen=True)
class Suggestion:
    """Candidate value with its similarity to the query."""
    value: str
    score: float


def levenshtein(a: str, b: str) -> int:
    """Unit-cost edit distance (insertion, deletion, substitution)."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1] between two strings after normalization.

    Args:
        a: First string
        b: Second string

    Returns:
        1 - distance / longer length; 1 when both are empty, 0 when one is
    """
    norm_a = normalize(a)
    norm_b = normalize(b)
    if not norm_a and not norm_b:
        return 1.0
    if not norm_a or not norm_b:
        return 0.0

    distance = levenshtein(norm_a, norm_b)
    return 1.0 - distance / max(len(norm_a), len(norm_b))


def suggest(query: str, candidates: Sequence[str], limit: int = 5,
            min_score: float = 0.6) -> List[Suggestion]:
    """
    Rank candidates by similarity to the query.

    A blank query returns the first ``limit`` candidates unscored, which
    lets an autocomplete list everything.

    Args:
        query: Text typed by the editor
        candidates: Known values
        limit: Maximum number of suggestions
        min_score: Minimum similarity to keep a candidate

    Returns:
        Suggestions sorted by score descending, then alphabetically
    """
    if not candidates:
        return []

    if not query or not query.strip():
        return [Suggestion(value, 1.0) for value in list(candidates)[:limit]]

    scored = [Suggestion(value, similarity(query, value)) for value in candidates]
    kept = [entry for entry in scored if entry.score >= min_score]
    kept.sort(key=lambda entry: (-entry.score, normalize(entry.value), entry.value))
    return kept[:limit]
