"""Lexical relevance ranker.

score(q, d) = |{t in terms(q) : len(t) > 2 and t in lower(d)}| / |terms(q)|

where terms(q) is the whitespace split of the lower-cased query. Short terms
still count in the denominator. This is deliberately a crude overlap measure
and carries no relevance floor: with a small candidate set, weak matches are
still returned.
"""

from __future__ import annotations

from collections.abc import Iterable

from magi.corpus.models import Chunk

_MIN_TERM_LENGTH = 3


def query_terms(query: str) -> list[str]:
    """Lower-cased whitespace tokens of *query*."""
    return query.lower().split()


def score(query: str, content: str) -> float:
    """Fraction of query terms (longer than two characters) found in *content*."""
    terms = query_terms(query)
    if not terms:
        return 0.0
    haystack = content.lower()
    matches = sum(1 for t in terms if len(t) >= _MIN_TERM_LENGTH and t in haystack)
    return matches / len(terms)


def rank(query: str, candidates: Iterable[Chunk], limit: int) -> list[Chunk]:
    """Score *candidates* and return the best *limit*, highest first.

    Returned chunks are scored copies; ties keep candidate order because
    ``sorted`` is stable.
    """
    if limit <= 0:
        return []
    scored = [c.with_score(score(query, c.content)) for c in candidates]
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored[:limit]
