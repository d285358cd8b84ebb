"""Document store: the full chunk collection, replaced wholesale on load.

Readers call ``all()`` and get an immutable tuple. ``replace()`` builds the
next generation completely before publishing it with a single attribute
assignment, so a concurrent reader sees either the old or the new corpus and
never a partially built one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from magi.corpus.models import Chunk


@dataclass(frozen=True)
class _Generation:
    number: int
    chunks: tuple[Chunk, ...]
    entity_names: tuple[str, ...]


class DocumentStore:
    """Holds the current corpus generation."""

    def __init__(self, chunks: Iterable[Chunk] | None = None) -> None:
        self._current = _Generation(number=0, chunks=(), entity_names=())
        if chunks is not None:
            self.replace(chunks)

    def replace(self, chunks: Iterable[Chunk]) -> None:
        """Publish *chunks* as the new corpus, discarding the previous one."""
        new_chunks = tuple(chunks)
        if any(c.score is not None for c in new_chunks):
            raise ValueError("Stored chunks must not carry a relevance score")
        self._current = _Generation(
            number=self._current.number + 1,
            chunks=new_chunks,
            entity_names=_distinct_entity_names(new_chunks),
        )

    def all(self) -> tuple[Chunk, ...]:
        """Return every chunk in insertion order."""
        return self._current.chunks

    def entity_names(self) -> tuple[str, ...]:
        """Distinct non-ecosystem ``protocol`` values, first-seen order."""
        return self._current.entity_names

    @property
    def generation(self) -> int:
        """Number of times the corpus has been published (0 = never loaded)."""
        return self._current.number

    def __len__(self) -> int:
        return len(self._current.chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self._current.chunks)


def _distinct_entity_names(chunks: tuple[Chunk, ...]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for chunk in chunks:
        if chunk.protocol and not chunk.is_ecosystem:
            seen.setdefault(chunk.protocol, None)
    return tuple(seen)
