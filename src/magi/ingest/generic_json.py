"""Generic JSON loader: a readable outline for any other structured artifact."""

from __future__ import annotations

import json
from typing import Any

from magi.corpus.models import Chunk
from magi.ingest.base import BaseLoader


class GenericJsonLoader(BaseLoader):
    """Flatten a JSON object or array into a single outline chunk.

    - Scalars become ``- key: value`` bullets.
    - Nested objects are unrolled one level under a ``## key`` heading.
    - Arrays (nested or top-level) become a numbered list of each item's JSON text.
    - Bare scalar documents yield no chunk.
    """

    def load(self, content: str, filename: str) -> list[Chunk]:
        data = self._parse_json(content, filename)
        if isinstance(data, dict):
            return [Chunk(content=_outline(data, filename), source=filename)]
        if isinstance(data, list):
            lines = [f"# {filename}", *_numbered(data)]
            return [Chunk(content="\n".join(lines), source=filename)]
        return []


def _outline(data: dict[str, Any], title: str) -> str:
    lines = [f"# {title}"]
    for key, value in data.items():
        if isinstance(value, list):
            lines.append(f"## {key}")
            lines.extend(_numbered(value))
        elif isinstance(value, dict):
            lines.append(f"## {key}")
            lines.extend(f"- {sub_key}: {_scalar(sub)}" for sub_key, sub in value.items())
        else:
            lines.append(f"- {key}: {_scalar(value)}")
    return "\n".join(lines)


def _numbered(items: list[Any]) -> list[str]:
    return [
        f"{i}. {json.dumps(item, ensure_ascii=False)}"
        for i, item in enumerate(items, start=1)
    ]


def _scalar(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
