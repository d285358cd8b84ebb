"""Per-protocol statistics loader: one detailed and one summary chunk per file.

Input: one JSON object per protocol (``worldchain_protocol_stats/<app>.json``)
with optional numeric fields. Sections of the detailed narrative are emitted
only when at least one of their fields is present; any key not known to a
section lands in "Other Metrics".
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.formatting import format_count
from magi.ingest.base import BaseLoader, IngestError

_NAME_KEY = "App Name"
_KNOWN_KEYS = frozenset(
    {
        "App Name",
        "Global Ranking",
        "Total Apps Ranked",
        "Impressions",
        "Impression Growth (%)",
        "Sessions",
        "Users",
        "Unique Users",
        "Verifications",
        "Total TVL (USD)",
        "Loans Issued",
        "Total USDC Repaid",
        "Total NFT Mints",
    }
)

DETAIL_CATEGORY = "Detailed Stats"
SUMMARY_CATEGORY = "Summary"


class ProtocolStatsLoader(BaseLoader):
    """Turn a single protocol statistics record into two chunks."""

    def load(self, content: str, filename: str) -> list[Chunk]:
        stats = self._parse_json(content, filename)
        if not isinstance(stats, dict):
            raise IngestError(f"'{filename}' must contain a JSON object")

        name = stats.get(_NAME_KEY) or PurePosixPath(filename).stem
        return [
            Chunk(
                content=_detailed(name, stats),
                source=filename,
                protocol=name,
                category=DETAIL_CATEGORY,
            ),
            Chunk(
                content=_summary(name, stats),
                source=filename,
                protocol=name,
                category=SUMMARY_CATEGORY,
            ),
        ]


def _detailed(name: str, stats: dict[str, Any]) -> str:
    sections = [f"# {name} - Detailed Statistics"]

    if stats.get("Global Ranking") is not None and stats.get("Total Apps Ranked") is not None:
        sections.append(
            f"{name} ranks #{stats['Global Ranking']} out of "
            f"{stats['Total Apps Ranked']} apps on {ECOSYSTEM}."
        )

    usage = []
    if stats.get("Impressions"):
        usage.append(f"{format_count(stats['Impressions'])} impressions")
    if stats.get("Impression Growth (%)") is not None:
        usage.append(f"{stats['Impression Growth (%)']}% impression growth")
    if stats.get("Sessions"):
        usage.append(f"{format_count(stats['Sessions'])} sessions")
    if usage:
        sections.append(f"## Usage Metrics\n{name} has generated {', '.join(usage)}.")

    users = []
    if stats.get("Users"):
        users.append(f"{format_count(stats['Users'])} total users")
    if stats.get("Unique Users"):
        users.append(f"{format_count(stats['Unique Users'])} unique users")
    if stats.get("Verifications"):
        users.append(f"{format_count(stats['Verifications'])} verifications")
    if users:
        sections.append(f"## User Base\n{name} has {' and '.join(users)}.")

    financial = []
    if stats.get("Total TVL (USD)"):
        financial.append(f"${format_count(stats['Total TVL (USD)'])} in Total Value Locked")
    if stats.get("Loans Issued"):
        financial.append(f"{format_count(stats['Loans Issued'])} loans issued")
    if stats.get("Total USDC Repaid"):
        financial.append(f"${format_count(stats['Total USDC Repaid'])} in USDC repaid")
    if financial:
        sections.append(f"## Financial Activity\n{name} has {' and '.join(financial)}.")

    other = []
    if stats.get("Total NFT Mints"):
        other.append(f"{format_count(stats['Total NFT Mints'])} NFT mints")
    other.extend(
        f"{key}: {value}"
        for key, value in stats.items()
        if key not in _KNOWN_KEYS and value is not None
    )
    if other:
        sections.append("## Other Metrics\n" + "\n".join(other))

    return "\n\n".join(sections)


def _summary(name: str, stats: dict[str, Any]) -> str:
    users = stats.get("Users")
    parts = [
        f"{name} is a {ECOSYSTEM} protocol with "
        f"{f'{format_count(users)} users' if users else 'a growing user base'}."
    ]
    if stats.get("Global Ranking"):
        parts.append(f"It ranks #{stats['Global Ranking']} among {ECOSYSTEM} apps.")
    if stats.get("Total TVL (USD)"):
        parts.append(f"It has ${format_count(stats['Total TVL (USD)'])} in Total Value Locked.")
    if stats.get("Loans Issued"):
        parts.append(f"The protocol has issued {format_count(stats['Loans Issued'])} loans.")
    return " ".join(parts)
