"""Tests for the comparison synthesizer and its metric extractors."""

from __future__ import annotations

from magi.corpus.models import Chunk
from magi.rag.comparison import (
    COMPARISON_SOURCE,
    NOT_AVAILABLE,
    build_comparison,
    extract_category,
    extract_metric,
    extract_tvl,
    extract_users,
    has_comparison_keyword,
    is_comparison_query,
    mentioned_entities,
)


def _chunk(content: str, protocol: str = "Morpho", category: str | None = None) -> Chunk:
    return Chunk(content=content, source="test.json", protocol=protocol, category=category)


# ------------------------------------------------------------------
# Detection
# ------------------------------------------------------------------


def test_comparison_keywords():
    assert has_comparison_keyword("Morpho vs Uniswap")
    assert has_comparison_keyword("Which is better?")
    assert not has_comparison_keyword("tell me about morpho")


def test_mentioned_entities_catalog_order():
    names = ("Morpho", "Uniswap", "Magnify")
    assert mentioned_entities("uniswap or morpho?", names) == ["Morpho", "Uniswap"]


def test_mentioned_entities_ignores_case_duplicates():
    names = ("Morpho", "morpho", "Uniswap")
    assert mentioned_entities("which morpho vault is best", names) == ["Morpho"]
    assert not is_comparison_query("which morpho vault is best", names)


def test_is_comparison_query_needs_two_entities():
    names = ("Morpho", "Uniswap")
    assert is_comparison_query("compare morpho and uniswap", names)
    assert not is_comparison_query("compare morpho", names)
    assert not is_comparison_query("morpho and uniswap", names)


# ------------------------------------------------------------------
# Extractors
# ------------------------------------------------------------------


def test_extract_tvl_patterns():
    assert extract_tvl([_chunk("Current TVL: $18.5M")]) == "$18.5M"
    assert extract_tvl([_chunk("Total Value Locked: $1,200,000.")]) == "$1,200,000"
    assert extract_tvl([_chunk("It has $2,500,000 in Total Value Locked.")]) == "$2,500,000"
    assert extract_tvl([_chunk("no numbers")]) == NOT_AVAILABLE


def test_extract_metric_labels_and_suffixes():
    chunks = [_chunk("24h Change: -1.3%\nRevenue 24h: $4.2K")]
    assert extract_metric(chunks, "24h Change") == "-1.3%"
    assert extract_metric(chunks, "24h Revenue", "Revenue 24h") == "$4.2K"
    assert extract_metric(chunks, "Volume") == NOT_AVAILABLE


def test_extract_users_labelled_then_count():
    assert extract_users([_chunk("Users: 3,400")]) == "3,400"
    assert extract_users([_chunk("Morpho has 12,500 total users.")]) == "12,500"
    assert extract_users([_chunk("no data")]) == NOT_AVAILABLE


def test_extract_category_skips_stats_labels():
    chunks = [
        _chunk("x", category="Detailed Stats"),
        _chunk("y", category="Summary"),
        _chunk("z", category="Lending"),
    ]
    assert extract_category(chunks) == "Lending"
    assert extract_category(chunks[:2]) == NOT_AVAILABLE


# ------------------------------------------------------------------
# build_comparison
# ------------------------------------------------------------------


def test_build_comparison_from_corpus(store):
    chunk = build_comparison("compare Morpho and Uniswap", store.all(), store.entity_names())

    assert chunk is not None
    assert chunk.category == "Comparison"
    assert chunk.source == COMPARISON_SOURCE
    assert chunk.protocol == "Morpho_vs_Uniswap"
    assert chunk.score == 1.0

    lines = chunk.content.splitlines()
    assert lines[0] == "# Comparison: Morpho vs. Uniswap"
    assert "| Category | Lending | DEX |" in lines
    assert "| TVL | $18,500,000 | $25.2M |" in lines
    assert "| 24h Change | +2.1% | -1.3% |" in lines
    assert "| 24h Revenue | $4.2K | N/A |" in lines
    assert "| Users | 12,500 | N/A |" in lines
    assert "Morpho has $18,500,000 while Uniswap has $25.2M" in chunk.content
    assert "In terms of user adoption, Morpho has 12,500 users." in chunk.content


def test_build_comparison_needs_two_resolvable_entities():
    chunks = [_chunk("Morpho TVL: $1M", protocol="Morpho")]
    assert build_comparison("compare Morpho and Uniswap", chunks, ("Morpho", "Uniswap")) is None


def test_summary_omits_tvl_when_any_missing():
    chunks = [
        _chunk("TVL: $1M", protocol="Morpho"),
        _chunk("Nothing measurable", protocol="Uniswap"),
    ]
    result = build_comparison("morpho vs uniswap", chunks, ("Morpho", "Uniswap"))
    assert result is not None
    assert "| TVL | $1M | N/A |" in result.content
    assert "Looking at TVL" not in result.content


def test_build_comparison_merges_case_variants():
    chunks = [
        _chunk("TVL: $1M", protocol="Morpho"),
        _chunk("Users: 500", protocol="morpho"),
        _chunk("TVL: $2M", protocol="Uniswap"),
    ]
    names = ("Morpho", "morpho", "Uniswap")
    assert build_comparison("which morpho vault is best", chunks, names) is None

    result = build_comparison("morpho vs uniswap", chunks, names)
    assert result is not None
    assert "| Users | 500 | N/A |" in result.content
