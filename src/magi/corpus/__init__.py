"""In-memory retrieval corpus: chunk model and document store."""

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.corpus.store import DocumentStore

__all__ = ["ECOSYSTEM", "Chunk", "DocumentStore"]
