"""Refresh/Cache Manager for tracked Worldchain protocols.

The manager owns one ``CacheSnapshot`` at a time and replaces it wholesale;
readers grab ``manager.snapshot`` once and keep a consistent view even while
a refresh is running. A refresh cycle:

1. record the attempt timestamp;
2. fetch the trending list from the provider (empty list = failed attempt);
3. fetch details for the top-N entries, skipping entries that fail;
4. add fallback records whose key is not already present, tagged ``local``;
5. publish a new snapshot with ``version + 1`` and persist it.

Failed attempts are retried with exponential backoff (tenacity). When every
attempt fails the previous entities keep serving and only
``refresh_success`` flips to ``False``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from magi.cache.aliases import ALIASES, normalize_name
from magi.cache.fallback import DEFAULT_FALLBACK_PROTOCOLS
from magi.cache.models import (
    SOURCE_LOCAL,
    CacheSnapshot,
    EntityRecord,
    now_ms,
    validate_entity,
)
from magi.cache.provider import EmptyResultError, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 5.0  # seconds
DEFAULT_TOP_N = 20

# Anything a misbehaving provider can throw at us during one attempt.
_RETRYABLE = (ProviderError, OSError, ValueError, TypeError, KeyError)


class CacheManager:
    """Versioned, atomically swapped cache of ``EntityRecord`` objects.

    Args:
        provider: Object with ``get_trending_protocols(limit)``,
            ``get_protocol_details(slug)`` and ``get_protocol_info(name)``
            (``DefiLlamaClient`` in production).
        cache_path: JSON file the snapshot is persisted to; ``None`` keeps
            the cache in memory only.
        fallback: Static records merged into every refresh.
        max_retries: Attempts per refresh cycle.
        base_delay: Seconds before the first retry; doubles per attempt.
        top_n: How many trending entries get detailed records.
        sleep: Injected for tests.
        clock: Returns epoch milliseconds; injected for tests.
    """

    def __init__(
        self,
        provider: Any,
        cache_path: Path | None = None,
        fallback: Iterable[dict[str, Any]] | None = None,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        top_n: int = DEFAULT_TOP_N,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.provider = provider
        self.cache_path = Path(cache_path) if cache_path is not None else None
        self.fallback = list(fallback) if fallback is not None else list(DEFAULT_FALLBACK_PROTOCOLS)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.top_n = top_n
        self._sleep = sleep
        self._clock = clock
        self._snapshot = CacheSnapshot()
        self._refresh_lock = threading.Lock()

    @property
    def snapshot(self) -> CacheSnapshot:
        """The currently published snapshot."""
        return self._snapshot

    @property
    def refreshing(self) -> bool:
        return self._refresh_lock.locked()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> CacheSnapshot:
        """Read the persisted snapshot; a missing or corrupt file is a cold start."""
        path = self.cache_path
        if path is None or not path.exists():
            logger.info("No cache file found; starting with an empty cache")
            return self._snapshot

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            snapshot = CacheSnapshot.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
            return self._snapshot

        self._snapshot = snapshot
        logger.info(
            "Loaded %d cached protocols (version %d) from %s",
            len(snapshot.entities),
            snapshot.version,
            path,
        )
        return snapshot

    def _persist(self, snapshot: CacheSnapshot) -> None:
        path = self.cache_path
        if path is None:
            return
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            logger.error("Could not write cache file %s: %s", path, exc)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """Run one refresh cycle. Returns ``True`` if a new snapshot was published.

        Returns ``False`` without doing anything when another refresh is
        already in flight, and ``False`` after all attempts failed. Upstream
        errors are logged, never raised.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Refresh already in progress; skipping")
            return False

        try:
            started = self._clock()
            self._snapshot = self._snapshot.with_attempt(started)
            logger.info("Refreshing protocol data (max %d attempts)", self.max_retries)

            try:
                entities = self._retrying()(self._fetch_entities)
            except _RETRYABLE as exc:
                logger.error("Refresh failed after %d attempts: %s", self.max_retries, exc)
                self._snapshot = self._snapshot.with_attempt(started, success=False)
                return False

            snapshot = CacheSnapshot(
                timestamp=self._clock(),
                version=self._snapshot.version + 1,
                entities=entities,
                last_refresh_attempt=started,
                refresh_success=True,
            )
            self._snapshot = snapshot
            logger.info(
                "Refreshed %d protocols (version %d)", len(entities), snapshot.version
            )
            self._persist(snapshot)
            return True
        finally:
            self._refresh_lock.release()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.base_delay),
            retry=retry_if_exception_type(_RETRYABLE),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    def _fetch_entities(self) -> dict[str, EntityRecord]:
        """One attempt: trending list, per-entry details, fallback merge."""
        trending = self.provider.get_trending_protocols(limit=self.top_n)
        if not trending:
            raise EmptyResultError("No trending protocols returned from provider")

        now = self._clock()
        fresh: dict[str, EntityRecord] = {}
        for entry in trending[: self.top_n]:
            name = entry.get("name")
            if not name:
                continue
            try:
                details = self._fetch_details(entry)
            except _RETRYABLE as exc:
                logger.warning("Skipping protocol %s: %s", name, exc)
                continue
            if details is None:
                logger.debug("No details for protocol %s", name)
                continue
            fresh[normalize_name(name)] = validate_entity(_merge_details(entry, details), now)

        for raw in self.fallback:
            key = normalize_name(raw.get("name"))
            if key and key not in fresh:
                fresh[key] = validate_entity(
                    {**raw, "source": SOURCE_LOCAL, "last_updated": now}, now
                )
        return fresh

    def _fetch_details(self, entry: dict[str, Any]) -> dict[str, Any] | None:
        slug = entry.get("slug")
        if slug:
            return self.provider.get_protocol_details(slug)
        return self.provider.get_protocol_info(entry["name"])

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find(self, name: str | None) -> EntityRecord | None:
        """Resolve a free-text *name* to a cached record, or ``None``.

        Tiers, first hit wins: normalized name, alias table, substring in
        either direction, then word overlap on words longer than 2 chars.
        """
        if not name or not name.strip():
            return None
        records = list(self._snapshot.entities.values())
        lowered = name.lower().strip()

        query_key = normalize_name(name)
        for record in records:
            if normalize_name(record.name) == query_key:
                return record

        for alias, canonical in ALIASES.items():
            if lowered == alias or alias in lowered:
                target = normalize_name(canonical)
                for record in records:
                    if normalize_name(record.name) == target:
                        return record

        for record in records:
            known = record.name.lower()
            if lowered in known or known in lowered:
                return record

        words = lowered.split()
        for record in records:
            known_words = record.name.lower().split()
            for word in words:
                if len(word) > 2 and any(kw in word or word in kw for kw in known_words):
                    return record

        return None

    def top_by_tvl(self, limit: int = 10) -> list[EntityRecord]:
        records = sorted(
            self._snapshot.entities.values(), key=lambda r: r.tvl_value, reverse=True
        )
        return records[: max(limit, 0)]

    def trending(self, limit: int = 5) -> list[EntityRecord]:
        """Records with the largest absolute 24h change."""
        records = sorted(
            self._snapshot.entities.values(), key=lambda r: abs(r.change_1d), reverse=True
        )
        return records[: max(limit, 0)]

    def stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        return {
            "protocol_count": len(snapshot.entities),
            "last_updated": _iso(snapshot.timestamp),
            "version": snapshot.version,
            "last_refresh_attempt": _iso(snapshot.last_refresh_attempt),
            "refresh_success": snapshot.refresh_success,
            "cache_age_ms": self._clock() - snapshot.timestamp if snapshot.timestamp else None,
        }


def _merge_details(entry: dict[str, Any], details: dict[str, Any]) -> dict[str, Any]:
    """Combine a listing entry with its detail record into raw entity fields."""
    name = entry["name"]
    return {
        "name": name,
        "description": details.get("description")
        or f"{name} is a protocol on WorldChain and other chains.",
        "tvl": details.get("tvl") or entry.get("tvl") or 0,
        "category": details.get("category") or entry.get("category"),
        "website": details.get("url") or entry.get("url"),
        "chains": details.get("chains") or entry.get("chains"),
        "change_1d": _first_number(details.get("change_1d"), entry.get("change_1d")),
        "change_7d": _first_number(details.get("change_7d"), entry.get("change_7d")),
    }


def _first_number(*values: Any) -> Any:
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return 0


def _iso(epoch_ms: int) -> str | None:
    if not epoch_ms:
        return None
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()
