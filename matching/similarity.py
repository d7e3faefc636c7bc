"""similarity.py — Levenshtein-based name similarity and best-match search.

Used by every lookup tier to tolerate misspelled plant names
(``"Merigold"`` → ``"Marigold"``) without escalating to the network.

Usage::

    match = find_best_match("Merigold", ["Rose", "Marigold"], threshold=0.5)
    # Match(match='Marigold', score=0.875)
"""
from __future__ import annotations

from typing import Iterable, NamedTuple


class Match(NamedTuple):
    match: str | None
    score: float


def _fold(s: str) -> str:
    return (s or "").strip().casefold()


def levenshtein(a: str, b: str) -> int:
    """Edit distance (insert / delete / substitute, unit cost)."""
    if len(a) < len(b):
        a, b = b, a
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                curr.append(prev[j - 1])
            else:
                curr.append(1 + min(prev[j], curr[j - 1], prev[j - 1]))
        prev = curr
    return prev[-1]


def similarity(a: str, b: str) -> float:
    """
    Return ``1 - distance / max(len(a), len(b))`` on case-folded, trimmed input.

    Two empty strings are identical (1.0); exactly one empty string scores 0.0.
    """
    a, b = _fold(a), _fold(b)
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def find_best_match(query: str, candidates: Iterable[str], threshold: float) -> Match:
    """
    Scan all candidates and return the highest-scoring one.

    Ties keep the first occurrence. Returns ``Match(None, best)`` when the
    best score is below *threshold* and ``Match(None, 0.0)`` for an empty
    candidate set.
    """
    best: str | None = None
    best_score = 0.0
    for candidate in candidates:
        score = similarity(query, candidate)
        if best is None or score > best_score:
            best, best_score = candidate, score

    if best is None or best_score < threshold:
        return Match(None, best_score)
    return Match(best, best_score)


# ── Autocomplete ranking ─────────────────────────────────────────────────────

_SCORE_EXACT = 100.0
_SCORE_PREFIX = 80.0
_SCORE_CONTAINS = 60.0
_FUZZY_FLOOR = 0.5


def rank_suggestions(query: str, candidates: Iterable[str], limit: int = 5) -> list[str]:
    """
    Rank candidate names for a partially typed query.

    Scoring: exact 100, prefix 80, substring 60, otherwise
    ``similarity * 50`` when similarity is at least 0.5. Ordering is stable
    for equal scores.

    Args:
        query:      Text typed so far.
        candidates: Names to rank (duplicates are kept as given).
        limit:      Maximum number of names to return.

    Returns:
        Up to *limit* names, best first. Empty list for a blank query.
    """
    needle = _fold(query)
    if not needle:
        return []

    scored: list[tuple[float, str]] = []
    for term in candidates:
        folded = _fold(term)
        if folded == needle:
            scored.append((_SCORE_EXACT, term))
        elif folded.startswith(needle):
            scored.append((_SCORE_PREFIX, term))
        elif needle in folded:
            scored.append((_SCORE_CONTAINS, term))
        else:
            sim = similarity(needle, folded)
            if sim >= _FUZZY_FLOOR:
                scored.append((sim * 50, term))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [term for _, term in scored[: max(limit, 0)]]
