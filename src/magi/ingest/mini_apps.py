"""Mini-app list loader: per-app, per-category and overview chunks."""

from __future__ import annotations

from magi.corpus.models import ECOSYSTEM, Chunk
from magi.ingest.base import BaseLoader, group_by_category

_REQUIRED = ("Name", "Category")
_OVERVIEW_SAMPLE = 5


class MiniAppListLoader(BaseLoader):
    """Chunk a structured list of ``{Name, Category, Description}`` records."""

    def load(self, content: str, filename: str) -> list[Chunk]:
        apps = self._require_records(self._parse_json(content, filename), filename, _REQUIRED)
        if not apps:
            return []

        chunks = [
            Chunk(
                content=(
                    f"{app['Name']} is a {app['Category'].lower()} mini app on {ECOSYSTEM}. "
                    f"{app.get('Description', '')}"
                ).strip(),
                source=filename,
                protocol=app["Name"],
                category=app["Category"],
            )
            for app in apps
        ]

        for category, members in group_by_category(apps).items():
            lines = [
                f"{ECOSYSTEM} offers {len(members)} {category} mini apps.",
                "",
                "These include:",
                *(f"- {app['Name']}: {app.get('Description', '')}" for app in members),
            ]
            chunks.append(
                Chunk(
                    content="\n".join(lines),
                    source=filename,
                    protocol=ECOSYSTEM,
                    category=category,
                )
            )

        by_name = sorted(apps, key=lambda a: a["Name"].lower())
        overview = [
            f"The World App ecosystem includes {len(apps)} mini apps across various categories.",
            "",
            "Some popular mini apps include:",
            *(
                f"- {app['Name']} ({app['Category']}): {app.get('Description', '')}"
                for app in by_name[:_OVERVIEW_SAMPLE]
            ),
            "",
            "Mini apps span categories like Identity, Finance, Games, DeFi, and more, "
            "creating a diverse ecosystem for Worldcoin users.",
        ]
        chunks.append(
            Chunk(
                content="\n".join(overview),
                source=filename,
                protocol=ECOSYSTEM,
                category="Mini Apps Overview",
            )
        )
        return chunks
