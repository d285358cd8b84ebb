"""Shared pytest fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from magi.corpus.store import DocumentStore
from magi.ingest.loader import load_corpus

PROTOCOLS = [
    {
        "Name": "Morpho",
        "Category": "Lending",
        "TVL": "$18.5M",
        "1d Change": "+2.1%",
        "Revenue 24h": "$4.2K",
        "Volume 24h": "",
        "Fees/Vol (raw)": "",
    },
    {
        "Name": "Uniswap",
        "Category": "DEX",
        "TVL": "$25.2M",
        "1d Change": "-1.3%",
        "Revenue 24h": "",
        "Volume 24h": "$3.4M",
        "Fees/Vol (raw)": "0.003",
    },
    {
        "Name": "PoolTogether",
        "Category": "Yield",
        "TVL": "$3.1M",
        "1d Change": "+0.5%",
    },
]

MINI_APPS = [
    {"Name": "Magnify Cash", "Category": "Finance", "Description": "Micro loans for verified humans."},
    {"Name": "Dollar Pool", "Category": "Finance", "Description": "Savings pool for WLD."},
]

MORPHO_STATS = {
    "App Name": "Morpho",
    "Global Ranking": 4,
    "Total Apps Ranked": 120,
    "Users": 12500,
    "Total TVL (USD)": 18500000,
}

OVERVIEW_MD = """\
# Worldchain DeFi

Worldchain is an L2 for humans, secured by World ID.

## Lending

Lending markets on Worldchain are led by Morpho.

## Trading

Swaps mostly route through Uniswap pools.
"""


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """Sample corpus directory exercising every loader."""
    root = tmp_path / "financial"
    stats = root / "worldchain_protocol_stats"
    stats.mkdir(parents=True)
    (root / "worldchain_protocols.json").write_text(json.dumps(PROTOCOLS), encoding="utf-8")
    (root / "worldchain_mini_apps.json").write_text(json.dumps(MINI_APPS), encoding="utf-8")
    (stats / "morpho.json").write_text(json.dumps(MORPHO_STATS), encoding="utf-8")
    (root / "worldchain_defi.md").write_text(OVERVIEW_MD, encoding="utf-8")
    (root / "notes.txt").write_text("Gas on Worldchain is sponsored for verified users.", encoding="utf-8")
    return root


@pytest.fixture
def store(corpus_dir: Path) -> DocumentStore:
    """DocumentStore loaded from the sample corpus."""
    return DocumentStore(load_corpus(corpus_dir).chunks)


@pytest.fixture
def listing() -> list[dict]:
    """Provider listing rows, already sorted by |change_1d|."""
    return [
        {"name": "Uniswap V3", "slug": "uniswap-v3", "category": "Dexes", "change_1d": -8.4,
         "chains": ["Ethereum", "World Chain"]},
        {"name": "Morpho Blue", "slug": "morpho-blue", "category": "Lending", "change_1d": 5.2,
         "chains": ["World Chain"]},
    ]
