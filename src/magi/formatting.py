"""Amount parsing and display helpers shared by the loaders, cache and CLI.

Upstream data mixes raw numbers (``18500000``) with pre-formatted strings
(``"$18.5M"``). Everything that sorts or sums amounts goes through
``parse_amount()``; everything that displays them goes through
``format_compact()`` or ``format_tvl()``.
"""

from __future__ import annotations

import math
import re

# "$1.2M", "45,678", "$3.4b": sign and surrounding text are ignored.
_AMOUNT_RE = re.compile(r"\$?([\d,]+\.?\d*)([KMB])?", re.IGNORECASE)

_MULTIPLIERS: dict[str, float] = {"K": 1e3, "M": 1e6, "B": 1e9}


def parse_amount(value: object) -> float:
    """Return the numeric value of *value*, expanding K/M/B suffixes.

    Numbers are returned unchanged (NaN becomes 0.0). Strings are scanned for
    the first amount; anything unparsable yields 0.0.

    Examples:
        >>> parse_amount("$1.2M")
        1200000.0
        >>> parse_amount("n/a")
        0.0
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) else float(value)
    if not isinstance(value, str):
        return 0.0

    match = _AMOUNT_RE.search(value)
    if not match:
        return 0.0
    digits = match.group(1).replace(",", "")
    try:
        base = float(digits)
    except ValueError:
        return 0.0
    suffix = (match.group(2) or "").upper()
    return base * _MULTIPLIERS.get(suffix, 1.0)


def format_compact(num: float) -> str:
    """Format *num* with one decimal and a K/M/B suffix (``1_250_000 → "1.2M"``)."""
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.1f}B"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return f"{num:g}"


def format_count(value: object) -> str:
    """Thousands-separated rendering for integer-ish statistics."""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.0f}" if value.is_integer() else f"{value:,}"
    return str(value)


def format_tvl(tvl: object) -> str:
    """Display form of a TVL value.

    Strings already starting with ``$`` pass through untouched; numbers get a
    two-decimal B/M/K suffix; falsy or unparsable values render as "Unknown".
    """
    if not tvl:
        return "Unknown"
    if isinstance(tvl, str) and tvl.startswith("$"):
        return tvl
    try:
        value = float(tvl)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "Unknown"
    if math.isnan(value):
        return "Unknown"

    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    return f"${value:.2f}"
