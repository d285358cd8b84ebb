"""Corpus scan: read the static data directory and dispatch each artifact.

Dispatch order and rules:
  <data_dir>/worldchain_protocol_stats/*.json  → ProtocolStatsLoader (read first)
  worldchain_protocols.json                     → ProtocolListLoader
  worldchain_mini_apps.json                     → MiniAppListLoader
  other *.json                                  → GenericJsonLoader
  *.md / *.txt                                  → NarrativeLoader
  anything else                                 → ignored

Files are visited in sorted name order so the corpus (and therefore every
tie-break downstream) is deterministic. A failing artifact is logged and
recorded in the report; it never aborts the scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from magi.corpus.models import Chunk
from magi.ingest.base import BaseLoader
from magi.ingest.generic_json import GenericJsonLoader
from magi.ingest.mini_apps import MiniAppListLoader
from magi.ingest.narrative import NarrativeLoader
from magi.ingest.protocols import ProtocolListLoader
from magi.ingest.stats import ProtocolStatsLoader

logger = logging.getLogger(__name__)

STATS_DIR = "worldchain_protocol_stats"
PROTOCOLS_FILE = "worldchain_protocols.json"
MINI_APPS_FILE = "worldchain_mini_apps.json"

_JSON_EXTS = {".json"}
_TEXT_EXTS = {".md", ".txt"}

# Shape problems surface as any of these from the loaders.
_ARTIFACT_ERRORS = (OSError, ValueError, KeyError, TypeError, AttributeError)


@dataclass
class IngestReport:
    """Outcome of one corpus scan.

    Attributes:
        chunks: Every chunk produced, in corpus order.
        loaded: Source names that produced at least one chunk.
        skipped: ``(source, reason)`` for artifacts that failed to load.
    """

    chunks: list[Chunk] = field(default_factory=list)
    loaded: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)

    def count_by_source(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for chunk in self.chunks:
            counts[chunk.source] = counts.get(chunk.source, 0) + 1
        return counts


def load_corpus(data_dir: Path) -> IngestReport:
    """Scan *data_dir* and return every chunk it yields.

    A missing directory is not an error: the report is empty and a warning
    is logged, so the bot can still answer from the entity cache.
    """
    report = IngestReport()
    if not data_dir.is_dir():
        logger.warning("Corpus directory %s does not exist; starting with an empty corpus", data_dir)
        return report

    stats_dir = data_dir / STATS_DIR
    if stats_dir.is_dir():
        stats_loader = ProtocolStatsLoader()
        for path in sorted(stats_dir.iterdir()):
            if path.is_file() and path.suffix.lower() in _JSON_EXTS:
                _ingest_file(path, f"{STATS_DIR}/{path.name}", stats_loader, report)

    for path in sorted(data_dir.iterdir()):
        if not path.is_file():
            continue
        loader = loader_for(path.name)
        if loader is None:
            logger.debug("Ignoring unsupported corpus file %s", path.name)
            continue
        _ingest_file(path, path.name, loader, report)

    logger.info(
        "Loaded %d chunks from %d files (%d skipped)",
        len(report.chunks),
        len(report.loaded),
        len(report.skipped),
    )
    return report


def loader_for(filename: str) -> BaseLoader | None:
    """Pick the loader for a top-level corpus file, or ``None`` if unsupported."""
    ext = Path(filename).suffix.lower()
    if ext in _JSON_EXTS:
        if filename == PROTOCOLS_FILE:
            return ProtocolListLoader()
        if filename == MINI_APPS_FILE:
            return MiniAppListLoader()
        return GenericJsonLoader()
    if ext in _TEXT_EXTS:
        return NarrativeLoader()
    return None


def _ingest_file(path: Path, source: str, loader: BaseLoader, report: IngestReport) -> None:
    try:
        content = path.read_text(encoding="utf-8")
        chunks = loader.load(content, source)
    except _ARTIFACT_ERRORS as exc:
        logger.error("Skipping corpus file %s: %s", source, exc)
        report.skipped.append((source, str(exc)))
        return

    if chunks:
        report.chunks.extend(chunks)
        report.loaded.append(source)
        logger.debug("Loaded %d chunks from %s", len(chunks), source)
