"""Base loader interface for all corpus artifact types."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from magi.corpus.models import Chunk


class IngestError(ValueError):
    """Raised when an artifact cannot be turned into chunks."""


class BaseLoader(ABC):
    """Abstract base for all loaders.

    A loader turns the decoded text of one artifact into zero or more
    ``Chunk`` objects. Loaders are pure: they never touch the store or the
    filesystem. Shape errors are reported as ``IngestError`` so the corpus
    scan can log and skip the artifact.
    """

    @abstractmethod
    def load(self, content: str, filename: str) -> list[Chunk]:
        """Convert *content* into chunks.

        Args:
            content: Full decoded text of the artifact.
            filename: Name recorded as the chunk ``source``.

        Returns:
            Chunks in the order they should appear in the corpus.
        """

    @staticmethod
    def _parse_json(content: str, filename: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise IngestError(f"Invalid JSON in '{filename}': {exc}") from exc

    @staticmethod
    def _require_records(data: Any, filename: str, required: tuple[str, ...]) -> list[dict]:
        """Validate that *data* is a list of objects carrying *required* keys."""
        if not isinstance(data, list):
            raise IngestError(f"'{filename}' must contain a JSON array of objects")
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise IngestError(f"'{filename}' item {i} is not an object")
            missing = [k for k in required if not item.get(k)]
            if missing:
                raise IngestError(
                    f"'{filename}' item {i} is missing required field(s): {', '.join(missing)}"
                )
        return data


def group_by_category(records: list[dict]) -> dict[str, list[dict]]:
    """Group *records* by their ``Category`` field, preserving first-seen order."""
    groups: dict[str, list[dict]] = {}
    for record in records:
        groups.setdefault(record["Category"], []).append(record)
    return groups
