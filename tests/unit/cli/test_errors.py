"""Tests for MAGI rich error messages."""

from __future__ import annotations

import pytest

from magi.cli.errors import (
    err_config,
    err_empty_cache,
    err_generation_failed,
    err_no_api_key,
    err_no_corpus,
    err_protocol_not_found,
    err_refresh_failed,
)


def _has_action(msg: str) -> bool:
    return any(word in msg for word in ("Run:", "Set:", "Pass", "Fix", "Check", "export"))


@pytest.mark.parametrize(
    "msg",
    [
        err_config("refresh.max_retries must be at least 1, got 0"),
        err_empty_cache(),
        err_generation_failed("timeout"),
        err_no_api_key("openai"),
        err_no_corpus("data/financial"),
        err_protocol_not_found("aave"),
        err_refresh_failed(3),
    ],
)
def test_every_error_has_an_action(msg):
    assert _has_action(msg)


def test_no_api_key_names_env_var():
    assert "OPENAI_API_KEY" in err_no_api_key("openai")
    assert "TOGETHER_API_KEY" in err_no_api_key("together")


def test_refresh_failed_mentions_attempts():
    assert "after 5 attempts" in err_refresh_failed(5)


def test_protocol_not_found_mentions_name():
    assert "'aave'" in err_protocol_not_found("aave")
