"""DefiLlama client: the entity data provider behind cache refreshes.

Plain ``urllib`` over JSON. Transport, HTTP and decode failures all surface
as ``ProviderError`` so callers have a single exception to retry on.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.llama.fi"
DEFAULT_TIMEOUT = 30  # seconds
_USER_AGENT = "magi/0.1 (+https://defillama.com)"


class ProviderError(RuntimeError):
    """The entity data provider failed or returned something unusable."""


class EmptyResultError(ProviderError):
    """The provider answered with an empty candidate list."""


class DefiLlamaClient:
    """Read-only client for the public DefiLlama API."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_protocols(self) -> list[dict[str, Any]]:
        data = self._get("protocols")
        if not isinstance(data, list):
            raise ProviderError("Expected a list from /protocols")
        return [p for p in data if isinstance(p, dict)]

    def search_protocols(self, query: str) -> list[dict[str, Any]]:
        """Protocols whose name contains *query* (case-insensitive)."""
        needle = query.lower()
        return [p for p in self.list_protocols() if needle in str(p.get("name", "")).lower()]

    def get_protocol_details(self, slug: str) -> dict[str, Any]:
        """Detailed record for *slug*, with ``tvl`` reduced to the latest value."""
        data = self._get(f"protocol/{urllib.parse.quote(slug)}")
        if not isinstance(data, dict):
            raise ProviderError(f"Expected an object from /protocol/{slug}")
        return _latest_tvl(data)

    def get_protocol_info(
        self, name: str, protocols: list[dict[str, Any]] | None = None
    ) -> dict[str, Any] | None:
        """Details for the first protocol whose name contains *name*.

        Returns ``None`` when no listed protocol matches. Pass *protocols*
        to reuse an already-fetched listing.
        """
        listing = protocols if protocols is not None else self.list_protocols()
        needle = name.lower()
        for protocol in listing:
            if needle in str(protocol.get("name", "")).lower() and protocol.get("slug"):
                return self.get_protocol_details(str(protocol["slug"]))
        return None

    def get_trending_protocols(self, limit: int = 10) -> list[dict[str, Any]]:
        """Protocols sorted by absolute 24h TVL change, largest first."""
        movers = [p for p in self.list_protocols() if _is_number(p.get("change_1d"))]
        movers.sort(key=lambda p: abs(p["change_1d"]), reverse=True)
        return movers[:limit]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get(self, endpoint: str) -> Any:
        url = f"{self.base_url}/{endpoint}"
        request = urllib.request.Request(
            url, headers={"User-Agent": _USER_AGENT, "Accept": "application/json"}
        )
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            raise ProviderError(f"DefiLlama returned HTTP {exc.code} for {url}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise ProviderError(f"DefiLlama request failed for {url}: {exc}") from exc

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Failed to parse DefiLlama response from {url}: {exc}") from exc


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _latest_tvl(details: dict[str, Any]) -> dict[str, Any]:
    tvl = details.get("tvl")
    if isinstance(tvl, list):
        points = [p for p in tvl if isinstance(p, dict) and _is_number(p.get("totalLiquidityUSD"))]
        details = {**details, "tvl": points[-1]["totalLiquidityUSD"] if points else 0}
    return details
