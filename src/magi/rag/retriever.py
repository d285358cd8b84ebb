"""Lexical retriever over the in-memory corpus.

This is the only interface the chat and social layers use:

  rag = SimpleRAG(Path("data/financial"))
  chunks = rag.find_relevant_documents("compare Morpho and Uniswap", limit=3)
  context = rag.format_context(chunks)

The corpus is loaded once, on ``initialize()`` or on the first query.
A comparison route short-circuits ranking and returns its single synthetic
chunk; every other route is ranked with ``ranker.rank``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from pathlib import Path

from magi.corpus.models import Chunk
from magi.corpus.store import DocumentStore
from magi.ingest.loader import IngestReport, load_corpus
from magi.rag.ranker import rank
from magi.rag.router import COMPARISON, QueryRouter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3
CONTEXT_SEPARATOR = "\n\n"


class SimpleRAG:
    """Corpus store plus router and ranker behind a two-call API.

    Args:
        data_dir: Directory of static corpus artifacts.
        store: Pre-populated store (tests, or callers that build their own
            corpus). When given, ``initialize()`` does not scan ``data_dir``.
    """

    def __init__(self, data_dir: Path | None = None, store: DocumentStore | None = None) -> None:
        self.data_dir = data_dir
        self.store = store if store is not None else DocumentStore()
        self.router = QueryRouter(self.store)
        self.report: IngestReport | None = None
        self._initialized = store is not None
        self._init_lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> IngestReport | None:
        """Load the corpus into the store. Calling it again is a no-op."""
        with self._init_lock:
            if self._initialized:
                return self.report
            if self.data_dir is None:
                raise ValueError("SimpleRAG needs a data_dir to load its corpus")
            self.report = load_corpus(self.data_dir)
            self.store.replace(self.report.chunks)
            self._initialized = True
            return self.report

    def find_relevant_documents(self, query: str, limit: int = DEFAULT_LIMIT) -> list[Chunk]:
        """Return at most *limit* chunks for *query*, best first.

        An empty list means nothing relevant was found; it is not an error.
        """
        if not self._initialized:
            self.initialize()

        route = self.router.route(query)
        if route.kind == COMPARISON:
            logger.info("Comparison query detected; returning synthetic comparison")
            return route.candidates[:limit] if limit > 0 else []

        if route.match:
            logger.debug("Routed query as %s (%s)", route.kind, route.match)
        results = rank(query, route.candidates, limit)
        logger.debug("Ranked %d candidates, returning %d", len(route.candidates), len(results))
        return results

    @staticmethod
    def format_context(chunks: Sequence[Chunk]) -> str:
        """Join chunk contents into one context blob for a prompt."""
        return CONTEXT_SEPARATOR.join(c.content for c in chunks)
