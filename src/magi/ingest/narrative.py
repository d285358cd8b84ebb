"""Narrative loader: H2-section splits for Markdown and plain-text notes.

Strategy:
- Every line starting with ``## `` opens a section; the section runs until
  the next such line. Deeper headings (``###``) stay inside their section.
- Each section becomes one chunk whose category is the heading text.
- Text before the first section (preamble) becomes an "Overview" chunk.
- A document without any ``## `` heading is kept whole as a single chunk.
- The ecosystem overview document additionally tags every chunk with the
  ecosystem as its protocol, so ecosystem-scoped queries always reach it.
"""

from __future__ import annotations

import re

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.ingest.base import BaseLoader

_SECTION_RE = re.compile(r"^## (.+)$", re.MULTILINE)

ECOSYSTEM_OVERVIEW_FILE = "worldchain_defi.md"
PREAMBLE_CATEGORY = "Overview"


class NarrativeLoader(BaseLoader):
    """Split free text into one chunk per ``## `` section."""

    def __init__(self, overview_file: str = ECOSYSTEM_OVERVIEW_FILE) -> None:
        self.overview_file = overview_file

    def load(self, content: str, filename: str) -> list[Chunk]:
        if not content.strip():
            return []

        protocol = ECOSYSTEM if filename == self.overview_file else None
        matches = list(_SECTION_RE.finditer(content))
        if not matches:
            return [
                Chunk(
                    content=content.strip(),
                    source=filename,
                    protocol=protocol,
                    category=PREAMBLE_CATEGORY if protocol else None,
                )
            ]

        chunks: list[Chunk] = []
        preamble = content[: matches[0].start()].strip()
        if preamble:
            chunks.append(
                Chunk(
                    content=preamble,
                    source=filename,
                    protocol=protocol,
                    category=PREAMBLE_CATEGORY,
                )
            )

        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
            section = content[match.start() : end].strip()
            chunks.append(
                Chunk(
                    content=section,
                    source=filename,
                    protocol=protocol,
                    category=match.group(1).strip(),
                )
            )
        return chunks
