"""Entity records and cache snapshots.

Every ``EntityRecord`` is created by ``validate_entity()``, the single place
where missing or malformed upstream fields are coerced to safe defaults.
Records and snapshots are frozen; a refresh builds a new snapshot and swaps
the reference.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from magi.formatting import parse_amount

DEFAULT_NAME = "Unknown Protocol"
DEFAULT_DESCRIPTION = "No description available."
DEFAULT_CATEGORY = "DeFi"
DEFAULT_WEBSITE = "https://defillama.com"

SOURCE_API = "api"
SOURCE_LOCAL = "local"
_SOURCES = frozenset({SOURCE_API, SOURCE_LOCAL})


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EntityRecord:
    """A tracked protocol or mini app.

    ``tvl`` is either a non-negative number or a pre-formatted display
    string such as ``"$18.5M"``; ``tvl_value`` gives the number in both cases.
    """

    name: str
    description: str
    category: str
    tvl: float | str
    website: str
    chains: int
    change_1d: float
    change_7d: float
    last_updated: int
    source: str
    launched: str | None = None

    @property
    def tvl_value(self) -> float:
        return parse_amount(self.tvl)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tvl": self.tvl,
            "website": self.website,
            "chains": self.chains,
            "change_1d": self.change_1d,
            "change_7d": self.change_7d,
            "last_updated": self.last_updated,
            "source": self.source,
        }
        if self.launched is not None:
            data["launched"] = self.launched
        return data


def validate_entity(raw: Mapping[str, Any], now: int | None = None) -> EntityRecord:
    """Build an ``EntityRecord`` from a loosely-typed mapping.

    Never rejects: text fields fall back to placeholder text, numeric fields
    to 0, ``tvl`` is clamped to be non-negative and ``source`` defaults to
    ``"api"``. Applying it to a record's own ``to_dict()`` is the identity.
    """
    return EntityRecord(
        name=_text(raw.get("name"), DEFAULT_NAME),
        description=_text(raw.get("description"), DEFAULT_DESCRIPTION),
        category=_text(raw.get("category"), DEFAULT_CATEGORY),
        tvl=_tvl(raw.get("tvl")),
        website=_text(raw.get("website"), DEFAULT_WEBSITE),
        chains=_chain_count(raw.get("chains")),
        change_1d=_number(raw.get("change_1d")),
        change_7d=_number(raw.get("change_7d")),
        last_updated=_timestamp(raw.get("last_updated"), now),
        source=raw.get("source") if raw.get("source") in _SOURCES else SOURCE_API,
        launched=_text(raw.get("launched"), None),
    )


def _text(value: Any, default: str | None) -> Any:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _number(value: Any) -> float:
    return float(value) if _is_number(value) else 0.0


def _tvl(value: Any) -> float | str:
    if isinstance(value, str):
        text = value.strip()
        if "-" in text:
            return 0.0
        # Pre-formatted display value, shown as-is.
        if text.startswith("$") and any(ch.isdigit() for ch in text):
            return text
        try:
            value = float(text.replace(",", ""))
        except ValueError:
            return parse_amount(text)
    if _is_number(value):
        return max(0.0, float(value))
    return 0.0


def _chain_count(value: Any) -> int:
    if isinstance(value, (list, tuple)):
        return len(value)
    if _is_number(value):
        return max(0, int(value))
    if isinstance(value, str):
        digits = "".join(ch for ch in value.split(" ")[0] if ch.isdigit())
        return int(digits) if digits else 0
    return 0


def _timestamp(value: Any, now: int | None) -> int:
    if _is_number(value) and value > 0:
        return int(value)
    return now if now is not None else now_ms()


@dataclass(frozen=True)
class CacheSnapshot:
    """One published generation of the entity cache.

    Attributes:
        timestamp: Epoch ms of the last successful refresh (0 = never).
        version: Incremented on every successful refresh.
        entities: Canonical key → record; read-only.
        last_refresh_attempt: Epoch ms of the last attempt, successful or not.
        refresh_success: Outcome of the last refresh cycle.
    """

    timestamp: int = 0
    version: int = 1
    entities: Mapping[str, EntityRecord] = field(default_factory=lambda: MappingProxyType({}))
    last_refresh_attempt: int = 0
    refresh_success: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.entities, MappingProxyType):
            object.__setattr__(self, "entities", MappingProxyType(dict(self.entities)))

    def with_attempt(self, attempted_at: int, success: bool | None = None) -> CacheSnapshot:
        """Same entities and version, updated attempt bookkeeping."""
        return replace(
            self,
            last_refresh_attempt=attempted_at,
            refresh_success=self.refresh_success if success is None else success,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "version": self.version,
            "protocols": {key: rec.to_dict() for key, rec in self.entities.items()},
            "lastRefreshAttempt": self.last_refresh_attempt,
            "refreshSuccess": self.refresh_success,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheSnapshot:
        """Rebuild a snapshot from its persisted form.

        Raises:
            ValueError: If the document is not a snapshot.
        """
        protocols = data.get("protocols")
        if not isinstance(protocols, Mapping):
            raise ValueError("Cache document has no 'protocols' object")
        version = data.get("version", 1)
        if not _is_number(version):
            raise ValueError(f"Cache document has a non-numeric version: {version!r}")
        return cls(
            timestamp=int(data.get("timestamp") or 0),
            version=int(version),
            entities={
                str(key): validate_entity(raw)
                for key, raw in protocols.items()
                if isinstance(raw, Mapping)
            },
            last_refresh_attempt=int(data.get("lastRefreshAttempt") or 0),
            refresh_success=bool(data.get("refreshSuccess", False)),
        )
