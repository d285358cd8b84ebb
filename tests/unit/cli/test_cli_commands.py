"""Tests for the magi CLI commands (CliRunner, provider and LLM mocked)."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from magi.cli.main import app

runner = CliRunner()

CACHE = {
    "timestamp": 1_700_000_000_000,
    "version": 3,
    "protocols": {
        "morpho": {"name": "Morpho", "tvl": "$18.5M", "category": "Lending", "change_1d": 2.5,
                   "source": "local", "launched": "March 2023 on WorldChain"},
        "uniswap": {"name": "Uniswap V3", "tvl": 42_000_000, "category": "Dexes",
                    "change_1d": -8.4},
    },
    "lastRefreshAttempt": 1_700_000_000_000,
    "refreshSuccess": True,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def project(tmp_path: Path, corpus_dir: Path, monkeypatch) -> Path:
    """Project dir with magi.yaml pointing at the sample corpus; cwd moved there."""
    config = {
        "data": {"corpus_dir": str(corpus_dir), "cache_file": str(tmp_path / "cache.json")},
        "refresh": {"base_delay": 0, "max_retries": 2},
    }
    (tmp_path / "magi.yaml").write_text(yaml.dump(config), encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("magi.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in ("MAGI_GENERATION_MODEL", "MAGI_CORPUS_DIR", "MAGI_CACHE_FILE", "MAGI_PROVIDER_URL"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def seeded_cache(project: Path) -> Path:
    path = project / "cache.json"
    path.write_text(json.dumps(CACHE), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# magi --version / version
# ---------------------------------------------------------------------------


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "magi" in result.output


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("magi ")


# ---------------------------------------------------------------------------
# search / context / corpus
# ---------------------------------------------------------------------------


def test_search_comparison(project: Path) -> None:
    result = runner.invoke(app, ["search", "compare Morpho and Uniswap"])
    assert result.exit_code == 0, result.output
    assert "1.00" in result.output


def test_search_no_results(project: Path, tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    result = runner.invoke(app, ["search", "anything", "--corpus", str(empty)])
    assert result.exit_code == 0
    assert "No relevant documents found" in result.output


def test_search_missing_corpus(project: Path) -> None:
    result = runner.invoke(app, ["search", "morpho", "--corpus", "nope"])
    assert result.exit_code == 1
    assert "Corpus directory not found" in result.output


def test_context_prints_comparison_table(project: Path) -> None:
    result = runner.invoke(app, ["context", "compare Morpho and Uniswap"])
    assert result.exit_code == 0
    assert "| TVL | $18,500,000 | $25.2M |" in result.output
    assert "| Users | 12,500 | N/A |" in result.output


def test_context_respects_limit(project: Path) -> None:
    result = runner.invoke(app, ["context", "xyzzy", "--limit", "1"])
    assert result.exit_code == 0
    # first corpus chunk only: Morpho's detailed statistics
    assert result.output.startswith("# Morpho - Detailed Statistics")
    assert "Gas on Worldchain" not in result.output


def test_corpus_report(project: Path) -> None:
    result = runner.invoke(app, ["corpus"])
    assert result.exit_code == 0
    assert "Chunks:         18" in result.output


def test_invalid_config_exits_1(project: Path) -> None:
    (project / "magi.yaml").write_text(yaml.dump({"retrieval": {"limit": 0}}), encoding="utf-8")
    result = runner.invoke(app, ["search", "morpho"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# ask / insights
# ---------------------------------------------------------------------------


def test_ask_requires_api_key(project: Path, monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = runner.invoke(app, ["ask", "What is Morpho?"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_ask_prints_answer(project: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch("magi.cli.ask.ask", return_value="Morpho is a lending protocol.") as mock_ask:
        result = runner.invoke(app, ["ask", "What is Morpho?", "--model", "openai/gpt-4o"])

    assert result.exit_code == 0, result.output
    assert "Morpho is a lending protocol." in result.output
    assert mock_ask.call_args.args[1:3] == ("What is Morpho?", "openai/gpt-4o")


def test_ask_generation_error_exits_1(project: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch("magi.cli.ask.ask", side_effect=RuntimeError("rate limited")):
        result = runner.invoke(app, ["ask", "What is Morpho?"])

    assert result.exit_code == 1
    assert "Generation failed: rate limited" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_insights_failure_exits_1(project: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch("magi.cli.ask.generate_insights", return_value=None):
        result = runner.invoke(app, ["insights"])
    assert result.exit_code == 1
    assert "Generation failed" in result.output


def test_insights_with_day(project: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch("magi.cli.ask.generate_insights", return_value="Top 3 protocols.") as mock_gen:
        result = runner.invoke(app, ["insights", "--day", "2024-06-03"])
    assert result.exit_code == 0, result.output
    assert "top protocols" in result.output
    assert "Top 3 protocols." in result.output
    assert str(mock_gen.call_args.args[2]) == "2024-06-03"


def test_insights_bad_day(project: Path) -> None:
    result = runner.invoke(app, ["insights", "--day", "monday"])
    assert result.exit_code == 1
    assert "YYYY-MM-DD" in result.output


# ---------------------------------------------------------------------------
# refresh / lookup / top / trending / stats / watch
# ---------------------------------------------------------------------------


def _provider(listing) -> MagicMock:
    provider = MagicMock()
    provider.get_trending_protocols.return_value = listing
    provider.get_protocol_details.return_value = {"tvl": 1_000_000.0, "description": "From API."}
    return provider


def test_refresh_success_persists(project: Path, listing) -> None:
    with patch("magi.service.DefiLlamaClient", return_value=_provider(listing)):
        result = runner.invoke(app, ["refresh"])

    assert result.exit_code == 0, result.output
    assert "Cached 6 protocols" in result.output
    data = json.loads((project / "cache.json").read_text(encoding="utf-8"))
    assert data["refreshSuccess"] is True
    assert data["protocols"]["worldswap"]["source"] == "local"


def test_refresh_failure_exits_1(project: Path) -> None:
    with patch("magi.service.DefiLlamaClient", return_value=_provider([])):
        result = runner.invoke(app, ["refresh"])
    assert result.exit_code == 1
    assert "Refresh failed after 2 attempts" in result.output


def test_lookup_alias(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["lookup", "Uniswap V3"])
    assert result.exit_code == 0, result.output
    assert "Uniswap V3" in result.output
    assert "$42.00M" in result.output


def test_lookup_shows_launch(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["lookup", "morpho blue"])
    assert result.exit_code == 0
    assert "March 2023 on WorldChain" in result.output


def test_lookup_miss(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["lookup", "aave"])
    assert result.exit_code == 1
    assert "Protocol not found" in result.output


def test_top_orders_by_tvl(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["top"])
    assert result.exit_code == 0
    assert result.output.index("Uniswap V3") < result.output.index("Morpho")


def test_trending(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["trending", "--limit", "1"])
    assert result.exit_code == 0
    assert "Uniswap V3" in result.output
    assert "Morpho" not in result.output


def test_top_empty_cache(project: Path) -> None:
    result = runner.invoke(app, ["top"])
    assert result.exit_code == 0
    assert "Cache is empty" in result.output


def test_stats(seeded_cache: Path) -> None:
    result = runner.invoke(app, ["stats"])
    assert result.exit_code == 0
    assert "Version:        3" in result.output
    assert "Protocols:      2" in result.output


def test_watch_starts_and_stops_refresher(project: Path) -> None:
    refresher = MagicMock()
    refresher.running = False
    with patch("magi.cli.cache.build_refresher", return_value=refresher):
        result = runner.invoke(app, ["watch"])

    assert result.exit_code == 0, result.output
    refresher.start.assert_called_once()
    refresher.stop.assert_called_once()
