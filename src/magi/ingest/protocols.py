"""Protocol list loader: rankings, per-protocol, per-category and summary chunks.

Input: ``worldchain_protocols.json``, an array of records such as::

    {"Name": "Morpho", "Category": "Lending", "TVL": "$18.5M",
     "1d Change": "+2.1%", "Revenue 24h": "$4.2K", "Volume 24h": "",
     "Fees/Vol (raw)": ""}

Output order: one ranking table, one chunk per protocol, one chunk per
category, one ecosystem summary. Ranking and category ordering use
``parse_amount()`` on the (possibly formatted) TVL, stable on ties.
"""

from __future__ import annotations

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.formatting import format_compact, parse_amount
from magi.ingest.base import BaseLoader, group_by_category

_REQUIRED = ("Name", "Category")
_TOP_PER_CATEGORY = 5


class ProtocolListLoader(BaseLoader):
    """Chunk a structured list of protocol records."""

    def load(self, content: str, filename: str) -> list[Chunk]:
        protocols = self._require_records(self._parse_json(content, filename), filename, _REQUIRED)
        if not protocols:
            return []

        ranked = sorted(protocols, key=lambda p: parse_amount(p.get("TVL")), reverse=True)
        groups = group_by_category(protocols)

        chunks = [self._ranking_chunk(ranked, filename)]
        chunks.extend(self._protocol_chunk(p, filename) for p in protocols)
        chunks.extend(
            self._category_chunk(category, members, filename)
            for category, members in groups.items()
        )
        chunks.append(self._summary_chunk(protocols, ranked, groups, filename))
        return chunks

    @staticmethod
    def _ranking_chunk(ranked: list[dict], filename: str) -> Chunk:
        rows = [
            f"| {i} | {p['Name']} | {p['Category']} | {p.get('TVL', 'N/A')} "
            f"| {p.get('1d Change', 'N/A')} | {p.get('Revenue 24h') or 'N/A'} |"
            for i, p in enumerate(ranked, start=1)
        ]
        content = "\n".join(
            [
                f"# {ECOSYSTEM} Protocol Rankings by TVL",
                "",
                f"Current Total Value Locked (TVL) rankings for protocols on {ECOSYSTEM}:",
                "",
                "| Rank | Protocol | Category | TVL | 24h Change | 24h Revenue |",
                "| ---- | -------- | -------- | --- | ---------- | ----------- |",
                *rows,
            ]
        )
        return Chunk(content=content, source=filename, protocol=ECOSYSTEM, category="Rankings")

    @staticmethod
    def _protocol_chunk(protocol: dict, filename: str) -> Chunk:
        name = protocol["Name"]
        category = protocol["Category"]
        lines = [
            f"# {name}",
            "",
            f"{name} is a {category.lower()} protocol on {ECOSYSTEM}.",
            "",
            f"Current TVL: {protocol.get('TVL', 'N/A')}",
            f"24h Change: {protocol.get('1d Change', 'N/A')}",
        ]
        if protocol.get("Revenue 24h"):
            lines.append(f"24h Revenue: {protocol['Revenue 24h']}")
        if protocol.get("Volume 24h"):
            lines.append(f"24h Volume: {protocol['Volume 24h']}")
        if protocol.get("Fees/Vol (raw)"):
            lines.append(f"Fees/Volume Ratio: {protocol['Fees/Vol (raw)']}")
        return Chunk(content="\n".join(lines), source=filename, protocol=name, category=category)

    @staticmethod
    def _category_chunk(category: str, members: list[dict], filename: str) -> Chunk:
        ordered = sorted(members, key=lambda p: parse_amount(p.get("TVL")), reverse=True)
        total = sum(parse_amount(p.get("TVL")) for p in members)
        content = "\n".join(
            [
                f"# {category} Protocols on {ECOSYSTEM}",
                "",
                f"There are {len(members)} {category.lower()} protocols on {ECOSYSTEM} "
                f"with a combined TVL of ${format_compact(total)}.",
                "",
                "The top protocols in this category are:",
                *(
                    f"{i}. {p['Name']} (TVL: {p.get('TVL', 'N/A')})"
                    for i, p in enumerate(ordered[:_TOP_PER_CATEGORY], start=1)
                ),
            ]
        )
        return Chunk(content=content, source=filename, protocol=ECOSYSTEM, category=category)

    @staticmethod
    def _summary_chunk(
        protocols: list[dict],
        ranked: list[dict],
        groups: dict[str, list[dict]],
        filename: str,
    ) -> Chunk:
        total = sum(parse_amount(p.get("TVL")) for p in protocols)
        top = ranked[0]
        # max() keeps the first category on ties, i.e. first-seen order.
        busiest = max(groups, key=lambda c: len(groups[c]))
        content = "\n".join(
            [
                f"# {ECOSYSTEM} DeFi Ecosystem Overview",
                "",
                f"The {ECOSYSTEM} DeFi ecosystem currently has {len(protocols)} protocols "
                f"with a total TVL of ${format_compact(total)}.",
                "",
                "Key statistics:",
                f"- Top protocol by TVL: {top['Name']} ({top.get('TVL', 'N/A')})",
                f"- Number of categories: {len(groups)}",
                f"- Most populous category: {busiest} ({len(groups[busiest])} protocols)",
            ]
        )
        return Chunk(content=content, source=filename, protocol=ECOSYSTEM, category="Summary")
