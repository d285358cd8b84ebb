"""MAGI rich error messages.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from magi.cli.errors import err_no_api_key
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from magi.cache.manager import DEFAULT_MAX_RETRIES


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
        "groq": "GROQ_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_config(message: str) -> str:
    """magi.yaml or the global config is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix magi.yaml (or ~/.magi/config.yaml) and run the command again."
    )


def err_no_corpus(corpus_dir: str) -> str:
    """Corpus directory is missing."""
    return (
        f"[red]Error:[/] Corpus directory not found: '{corpus_dir}'\n"
        "  Pass --corpus DIR or set data.corpus_dir in magi.yaml."
    )


def err_empty_cache() -> str:
    """No protocols cached yet."""
    return (
        "[yellow]Cache is empty.[/] No protocols have been fetched yet.\n"
        "  Run:  magi refresh"
    )


def err_protocol_not_found(name: str) -> str:
    """Lookup missed on every tier."""
    return (
        f"[yellow]Protocol not found:[/] '{name}' is not in the protocol cache.\n"
        "  Run:  magi top  to see cached protocols, or  magi refresh  to update them."
    )


def err_refresh_failed(max_retries: int = DEFAULT_MAX_RETRIES) -> str:
    """Every refresh attempt failed; stale data is still served."""
    return (
        f"[red]Error:[/] Refresh failed after {max_retries} attempts.\n"
        "  Cached data was kept. Check network access to the provider\n"
        "  (provider.base_url in magi.yaml) and run:  magi refresh"
    )


def err_generation_failed(detail: str) -> str:
    """LLM call failed after retries."""
    return (
        f"[red]Error:[/] Generation failed: {detail}\n"
        "  Check your API key and generation.model in magi.yaml, then retry."
    )
