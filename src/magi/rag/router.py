"""Query router: classify a query and narrow the candidate chunks.

Order of decisions (first match wins):
  1. comparison keyword + two or more known entities → synthetic comparison chunk
  2. ecosystem keyword → entity filter, else category filter, else all
     ecosystem chunks
  3. otherwise → the whole corpus

Keyword vocabularies are static configuration; lists are scanned in order so
the outcome is deterministic for a given corpus.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.corpus.store import DocumentStore
from magi.rag.comparison import build_comparison, is_comparison_query

logger = logging.getLogger(__name__)

ECOSYSTEM_KEYWORDS: tuple[str, ...] = (
    "worldchain",
    "world chain",
    "world app",
    "chain 480",
    "worldid",
    "world id",
    "worldcoin",
    "world coin",
    "mini app",
    "mini-app",
    "miniapp",
    "world ecosystem",
)

CATEGORY_KEYWORDS: tuple[str, ...] = (
    "Lending",
    "DEX",
    "Farm",
    "Yield",
    "Liquidity",
    "Gaming",
    "Risk",
    "Launchpad",
    "Aggregator",
    "DEX Aggregator",
)

# Route kinds
COMPARISON = "comparison"
ENTITY = "entity"
CATEGORY = "category"
ECOSYSTEM_ROUTE = "ecosystem"
GENERIC = "generic"


@dataclass
class Route:
    """Routing decision for one query.

    Attributes:
        kind: One of comparison / entity / category / ecosystem / generic.
        candidates: Chunks to rank (for comparison: the single synthetic chunk).
        match: Entity or category that drove the filter, if any.
    """

    kind: str
    candidates: list[Chunk] = field(default_factory=list)
    match: str | None = None


class QueryRouter:
    """Reads the store on every call; holds no corpus state of its own."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def route(self, query: str) -> Route:
        # Read once: the rest of routing sees a single corpus generation.
        chunks = self._store.all()
        names = self._store.entity_names()

        if is_comparison_query(query, names):
            synthetic = build_comparison(query, chunks, names)
            if synthetic is not None:
                return Route(kind=COMPARISON, candidates=[synthetic])
            logger.debug("Comparison requested but not resolvable; falling through")

        if not is_ecosystem_query(query):
            return Route(kind=GENERIC, candidates=list(chunks))

        entity = extract_entity(query, names)
        if entity:
            needle = entity.lower()
            return Route(
                kind=ENTITY,
                match=entity,
                candidates=[c for c in chunks if c.protocol == entity or needle in c.content.lower()],
            )

        category = extract_category(query)
        if category:
            needle = category.lower()
            return Route(
                kind=CATEGORY,
                match=category,
                candidates=[
                    c for c in chunks if c.category == category or needle in c.content.lower()
                ],
            )

        return Route(
            kind=ECOSYSTEM_ROUTE,
            candidates=[c for c in chunks if _is_ecosystem_chunk(c)],
        )


def is_ecosystem_query(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in ECOSYSTEM_KEYWORDS)


def extract_entity(query: str, entity_names: tuple[str, ...] | list[str]) -> str | None:
    """First catalog entity mentioned in *query*."""
    lowered = query.lower()
    for name in entity_names:
        if name.lower() in lowered:
            return name
    return None


def extract_category(query: str) -> str | None:
    """First category keyword mentioned in *query*."""
    lowered = query.lower()
    for category in CATEGORY_KEYWORDS:
        if category.lower() in lowered:
            return category
    return None


def _is_ecosystem_chunk(chunk: Chunk) -> bool:
    return "worldchain" in chunk.source.lower() or (
        chunk.protocol is not None and ECOSYSTEM in chunk.protocol
    )
