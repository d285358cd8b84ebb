"""Protocol name aliases and the canonical-key normalizer.

The canonical key is the only identity entity records have: lower-case,
alias-resolved, with every character outside ``[a-z0-9]`` removed.
"""

from __future__ import annotations

import re
from types import MappingProxyType

ALIASES = MappingProxyType(
    {
        "morpho blue": "morpho",
        "uniswap v3": "uniswap",
        "pooltogether v5": "pooltogether",
        "magnify finance": "magnify",
        "magnify cash": "magnify",
        "re7": "re7labs",
        "dackieswap dex": "dackieswap",
    }
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def _fold(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text.lower())


def resolve_alias(name: str | None) -> str | None:
    """Canonical name for the first alias *name* equals or contains, else ``None``."""
    if not name:
        return None
    lowered = name.lower().strip()
    for alias, canonical in ALIASES.items():
        if lowered == alias or alias in lowered:
            return canonical
    return None


def normalize_name(name: str | None) -> str:
    """Canonical lookup key for *name*.

    >>> normalize_name("Morpho Blue") == normalize_name("MORPHO") == "morpho"
    True
    """
    if not name:
        return ""
    canonical = resolve_alias(name)
    return _fold(canonical if canonical is not None else name.strip())
