"""LiteLLM completion wrapper with retry and API key validation.

Every language-model call (answers, scheduled insights) goes through
``complete()``. LiteLLM's built-in retry handles transient provider errors;
``validate_api_key()`` lets callers fail fast before building a prompt.
"""

from __future__ import annotations

import os

import litellm

litellm.suppress_debug_info = True

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,  # local
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Provider prefix of a ``provider/model`` string (bare names are OpenAI)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Raise ``EnvironmentError`` if the key env var for *model*'s provider is unset."""
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.2,
    num_retries: int = 3,
) -> str:
    """Call ``litellm.completion()`` and return the first choice's text.

    Raises:
        litellm.exceptions.APIError: On persistent failure after retries.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""
