"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from magi.rag.llm_client import complete, provider_of, validate_api_key


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_provider_of():
    assert provider_of("openai/gpt-4o-mini") == "openai"
    assert provider_of("Anthropic/claude-3-5-haiku") == "anthropic"
    assert provider_of("gpt-4o") == "openai"


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/gpt-4o-mini")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    validate_api_key("openai/gpt-4o-mini")  # should not raise


def test_validate_api_key_unknown_provider_uses_prefix(monkeypatch):
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="TOGETHER_API_KEY"):
        validate_api_key("together/llama-3")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/llama3")


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def test_complete_returns_content():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = "Morpho is a lending protocol."

    with patch("magi.rag.llm_client.litellm.completion", return_value=mock_response):
        result = complete("openai/gpt-4o-mini", [{"role": "user", "content": "Hi"}])

    assert result == "Morpho is a lending protocol."


def test_complete_returns_empty_string_on_none_content():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = None

    with patch("magi.rag.llm_client.litellm.completion", return_value=mock_response):
        assert complete("openai/gpt-4o-mini", []) == ""


def test_complete_passes_params_to_litellm():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = "ok"
    messages = [{"role": "user", "content": "Hi"}]

    with patch("magi.rag.llm_client.litellm.completion", return_value=mock_response) as mock_comp:
        complete("openai/gpt-4o-mini", messages, max_tokens=256, temperature=0.7, num_retries=5)

    mock_comp.assert_called_once_with(
        model="openai/gpt-4o-mini",
        messages=messages,
        max_tokens=256,
        temperature=0.7,
        num_retries=5,
    )
