"""Static fallback dataset merged into every refresh."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_PROTOCOLS: tuple[dict[str, Any], ...] = (
    {
        "name": "UniDex",
        "description": "Decentralized perpetual exchange on WorldChain offering cross-margin trading.",
        "tvl": "$12.8M",
        "category": "Derivatives",
        "website": "https://unidex.exchange",
        "launched": "February 2023 on WorldChain",
    },
    {
        "name": "Morpho",
        "description": "Lending protocol optimizing liquidity utilization on WorldChain.",
        "tvl": "$18.5M",
        "category": "Lending",
        "website": "https://morpho.org",
        "launched": "March 2023 on WorldChain",
    },
    {
        "name": "WorldSwap",
        "description": "AMM DEX protocol native to WorldChain ecosystem.",
        "tvl": "$25.2M",
        "category": "DEX",
        "website": "https://worldswap.xyz",
        "launched": "January 2023 on WorldChain",
    },
    {
        "name": "WorldStable",
        "description": "Decentralized stablecoin protocol on WorldChain.",
        "tvl": "$14.7M",
        "category": "Stablecoins",
        "website": "https://worldstable.xyz",
        "launched": "April 2023 on WorldChain",
    },
    {
        "name": "Identity Finance",
        "description": "DeFi protocol leveraging World ID verification for under-collateralized lending.",
        "tvl": "$8.3M",
        "category": "Lending",
        "website": "https://identity.finance",
        "launched": "May 2023 on WorldChain",
    },
)


def load_fallback(path: Path | None) -> list[dict[str, Any]]:
    """Return fallback records from *path*, or the built-in set.

    The file may hold a list of records or an object keyed by protocol id.
    An unreadable file is logged and the built-in set is used instead.
    """
    if path is None:
        return [dict(record) for record in DEFAULT_FALLBACK_PROTOCOLS]

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read fallback file %s (%s); using built-in set", path, exc)
        return [dict(record) for record in DEFAULT_FALLBACK_PROTOCOLS]

    if isinstance(data, dict):
        records = list(data.values())
    elif isinstance(data, list):
        records = data
    else:
        logger.warning("Fallback file %s is not a list or object; using built-in set", path)
        return [dict(record) for record in DEFAULT_FALLBACK_PROTOCOLS]
    return [dict(record) for record in records if isinstance(record, dict)]
