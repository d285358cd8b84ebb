"""Domain model for the retrieval corpus."""

from __future__ import annotations

from dataclasses import dataclass, replace

# Chunks describing the chain as a whole carry this protocol tag; it is never
# treated as a comparable entity.
ECOSYSTEM = "Worldchain"


@dataclass(frozen=True)
class Chunk:
    """A single retrievable unit of text.

    Attributes:
        content: Non-empty text handed to the language model.
        source: Artifact the chunk was derived from (file name or synthetic id).
        protocol: Entity the chunk describes; free text, not a foreign key.
        category: Section heading or protocol category label.
        score: Relevance for the current query. Only set on the copies
            returned by the ranker; stored chunks always have ``None``.
    """

    content: str
    source: str
    protocol: str | None = None
    category: str | None = None
    score: float | None = None

    def __post_init__(self) -> None:
        if not self.content or not self.content.strip():
            raise ValueError(f"Chunk content must be non-empty (source={self.source!r})")

    def with_score(self, score: float) -> Chunk:
        """Return a copy of this chunk carrying *score*."""
        return replace(self, score=score)

    @property
    def is_ecosystem(self) -> bool:
        return self.protocol == ECOSYSTEM
