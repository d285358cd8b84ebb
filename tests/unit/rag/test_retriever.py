"""Tests for the SimpleRAG facade."""

from __future__ import annotations

import threading

import pytest

from magi.corpus.models import Chunk
from magi.corpus.store import DocumentStore
from magi.rag.retriever import SimpleRAG


def test_initialize_loads_corpus_once(corpus_dir):
    rag = SimpleRAG(corpus_dir)
    assert not rag.initialized

    report = rag.initialize()
    assert rag.initialized
    assert len(rag.store) == 18
    assert report is rag.report

    rag.initialize()
    assert rag.store.generation == 1


def test_initialize_without_data_dir_raises():
    with pytest.raises(ValueError, match="data_dir"):
        SimpleRAG().initialize()


def test_find_relevant_documents_initializes_lazily(corpus_dir):
    rag = SimpleRAG(corpus_dir)
    results = rag.find_relevant_documents("morpho lending")
    assert rag.initialized
    assert results


def test_concurrent_initialize_loads_once(corpus_dir):
    rag = SimpleRAG(corpus_dir)
    threads = [threading.Thread(target=rag.initialize) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert rag.store.generation == 1


@pytest.mark.parametrize("limit", [1, 2, 3, 10])
def test_never_more_than_limit(store, limit):
    rag = SimpleRAG(store=store)
    results = rag.find_relevant_documents("worldchain lending protocols", limit)
    assert len(results) <= limit


def test_results_sorted_descending_stable(store):
    rag = SimpleRAG(store=store)
    results = rag.find_relevant_documents("uniswap swap pools", limit=18)

    scores = [c.score for c in results]
    assert scores == sorted(scores, reverse=True)

    # Within equal scores, corpus order is kept.
    order = {c: i for i, c in enumerate(store.all())}
    for a, b in zip(results, results[1:]):
        if a.score == b.score:
            assert order[a.with_score(None)] < order[b.with_score(None)]


def test_comparison_query_returns_single_synthetic_chunk(store):
    rag = SimpleRAG(store=store)
    results = rag.find_relevant_documents("compare Morpho and Uniswap", limit=3)

    assert len(results) == 1
    (chunk,) = results
    assert chunk.category == "Comparison"
    assert chunk.score == 1.0
    for row in ("| TVL |", "| 24h Change |", "| Users |"):
        assert row in chunk.content


def test_no_relevance_floor(store):
    rag = SimpleRAG(store=store)
    results = rag.find_relevant_documents("xyzzy", limit=3)
    assert [c.score for c in results] == [0.0, 0.0, 0.0]
    assert [c.content for c in results] == [c.content for c in store.all()[:3]]


def test_empty_corpus_returns_empty_list():
    rag = SimpleRAG(store=DocumentStore())
    assert rag.find_relevant_documents("anything") == []


def test_category_query_on_ecosystem(store):
    rag = SimpleRAG(store=store)
    results = rag.find_relevant_documents("lending protocols on worldchain", limit=3)
    assert results
    assert all("lending" in c.content.lower() or c.category == "Lending" for c in results)


def test_format_context_joins_with_blank_line():
    chunks = [Chunk(content="first", source="a"), Chunk(content="second", source="b")]
    assert SimpleRAG.format_context(chunks) == "first\n\nsecond"
    assert SimpleRAG.format_context([]) == ""


def test_single_entity_with_case_variant_is_not_a_comparison(tmp_path):
    stats = tmp_path / "worldchain_protocol_stats"
    stats.mkdir()
    (stats / "morpho.json").write_text('{"Users": 12500}', encoding="utf-8")
    (tmp_path / "worldchain_protocols.json").write_text(
        '[{"Name": "Morpho", "Category": "Lending", "TVL": "$18.5M"}]', encoding="utf-8"
    )
    rag = SimpleRAG(tmp_path)

    results = rag.find_relevant_documents("which morpho vault is best", 5)

    assert results
    assert all(c.source != "protocol_comparison" for c in results)
