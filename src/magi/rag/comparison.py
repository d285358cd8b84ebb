"""Comparison synthesizer: one structured chunk comparing two or more protocols.

Metric values are scraped out of each protocol's existing chunks with the
small set of ``extract_*`` functions below. They are the only place that
knows the text layout of the loaders, so they can be swapped for structured
lookups without touching the router.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.ingest.stats import DETAIL_CATEGORY, SUMMARY_CATEGORY

logger = logging.getLogger(__name__)

COMPARISON_KEYWORDS: tuple[str, ...] = (
    "compare",
    "comparison",
    "versus",
    "vs",
    "vs.",
    "difference",
    "better",
    "worse",
    "best",
    "worst",
    "between",
    "which",
)

COMPARISON_SOURCE = "protocol_comparison"
COMPARISON_CATEGORY = "Comparison"
NOT_AVAILABLE = "N/A"

# An amount: optional sign and currency, digits with separators, optional suffix.
_VALUE = r"([+-]?\$?\d[\d,.]*[KMB%]?)"

_TVL_PATTERNS = (
    re.compile(r"tvl[:\s]+\$(\d[\d,.]*[KMB]?)", re.IGNORECASE),
    re.compile(r"total value locked[:\s]+\$(\d[\d,.]*[KMB]?)", re.IGNORECASE),
    re.compile(r"\$(\d[\d,.]*[KMB]?)\s+in\s+total value locked", re.IGNORECASE),
)
_USERS_COUNT_RE = re.compile(r"(\d[\d,]*)\s+(?:total\s+|unique\s+)?users", re.IGNORECASE)
_DESCRIPTION_MARKERS = ("is a", f"protocol on {ECOSYSTEM}")
# Loader bookkeeping labels, not protocol categories.
_NON_CATEGORY_LABELS = frozenset({DETAIL_CATEGORY, SUMMARY_CATEGORY})


def has_comparison_keyword(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in COMPARISON_KEYWORDS)


def mentioned_entities(query: str, entity_names: Sequence[str]) -> list[str]:
    """Catalog names that occur in *query* (case-insensitive), catalog order.

    Names differing only by case count once, under their first spelling.
    """
    lowered = query.lower()
    found: dict[str, str] = {}
    for name in entity_names:
        key = name.lower()
        if key in lowered and key not in found:
            found[key] = name
    return list(found.values())


def is_comparison_query(query: str, entity_names: Sequence[str]) -> bool:
    """True when *query* uses comparison language and names two or more entities."""
    return has_comparison_keyword(query) and len(mentioned_entities(query, entity_names)) >= 2


def build_comparison(
    query: str,
    chunks: Sequence[Chunk],
    entity_names: Sequence[str],
) -> Chunk | None:
    """Build the synthetic comparison chunk, or ``None`` if fewer than two
    mentioned entities have chunks of their own."""
    per_entity: dict[str, list[Chunk]] = {}
    for name in mentioned_entities(query, entity_names):
        own = [c for c in chunks if c.protocol and c.protocol.lower() == name.lower()]
        if own:
            per_entity[name] = own

    if len(per_entity) < 2:
        return None

    names = list(per_entity)
    logger.info("Building comparison for %s", ", ".join(names))
    rows = {name: _metrics(docs) for name, docs in per_entity.items()}
    return Chunk(
        content=_render(names, rows),
        source=COMPARISON_SOURCE,
        protocol="_vs_".join(names),
        category=COMPARISON_CATEGORY,
        score=1.0,
    )


# ------------------------------------------------------------------
# Extractors
# ------------------------------------------------------------------


def extract_category(chunks: Sequence[Chunk]) -> str:
    for chunk in chunks:
        if chunk.category and chunk.category not in _NON_CATEGORY_LABELS:
            return chunk.category
    return NOT_AVAILABLE


def extract_tvl(chunks: Sequence[Chunk]) -> str:
    for chunk in chunks:
        for pattern in _TVL_PATTERNS:
            match = pattern.search(chunk.content)
            if match:
                return "$" + _trim(match.group(1))
    return NOT_AVAILABLE


def extract_metric(chunks: Sequence[Chunk], *labels: str) -> str:
    """First ``<label>: <value>`` found for any of *labels*, searched chunk by chunk."""
    patterns = [re.compile(re.escape(label) + r"[:\s]+" + _VALUE, re.IGNORECASE) for label in labels]
    for chunk in chunks:
        for pattern in patterns:
            match = pattern.search(chunk.content)
            if match:
                return _trim(match.group(1))
    return NOT_AVAILABLE


def extract_users(chunks: Sequence[Chunk]) -> str:
    labelled = extract_metric(chunks, "Users", "Unique Users")
    if labelled != NOT_AVAILABLE:
        return labelled
    for chunk in chunks:
        match = _USERS_COUNT_RE.search(chunk.content)
        if match:
            return _trim(match.group(1))
    return NOT_AVAILABLE


def extract_description(chunks: Sequence[Chunk]) -> str:
    for chunk in chunks:
        for line in chunk.content.splitlines():
            if any(marker in line for marker in _DESCRIPTION_MARKERS):
                return line.strip()
    return "No description available"


def _trim(value: str) -> str:
    # "$1,234." at the end of a sentence
    return value.rstrip(".,")


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def _metrics(chunks: Sequence[Chunk]) -> dict[str, str]:
    return {
        "description": extract_description(chunks),
        "Category": extract_category(chunks),
        "TVL": extract_tvl(chunks),
        "24h Change": extract_metric(chunks, "24h Change", "1d Change", "Daily Change"),
        "24h Revenue": extract_metric(chunks, "24h Revenue", "Revenue 24h"),
        "Users": extract_users(chunks),
    }


_TABLE_ROWS = ("Category", "TVL", "24h Change", "24h Revenue", "Users")


def _render(names: list[str], rows: dict[str, dict[str, str]]) -> str:
    lines = [f"# Comparison: {' vs. '.join(names)}", "", "## Overview", ""]
    lines.extend(f"**{name}**: {rows[name]['description']}" for name in names)

    lines += ["", "## Key Metrics", ""]
    lines.append("| Metric | " + " | ".join(f"**{n}**" for n in names) + " |")
    lines.append("| ------ | " + " | ".join("-------" for _ in names) + " |")
    for metric in _TABLE_ROWS:
        lines.append(f"| {metric} | " + " | ".join(rows[n][metric] for n in names) + " |")

    lines += ["", "## Summary", "", _summary_sentence(names, rows)]
    return "\n".join(lines)


def _summary_sentence(names: list[str], rows: dict[str, dict[str, str]]) -> str:
    text = f"This comparison shows key metrics for {' and '.join(names)} on {ECOSYSTEM}."

    if all(rows[n]["TVL"] != NOT_AVAILABLE for n in names):
        tvl = " while ".join(f"{n} has {rows[n]['TVL']}" for n in names)
        text += f" Looking at TVL (Total Value Locked), {tvl}."

    with_users = [n for n in names if rows[n]["Users"] != NOT_AVAILABLE]
    if with_users:
        users = " compared to ".join(f"{n} has {rows[n]['Users']} users" for n in with_users)
        text += f" In terms of user adoption, {users}."

    return text
