"""MAGI configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (MAGI_GENERATION_MODEL, MAGI_CORPUS_DIR,
                             MAGI_CACHE_FILE, MAGI_PROVIDER_URL)
  3. Per-project magi.yaml  (current directory)
  4. Global ~/.magi/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
Data paths must be local paths, not URLs.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_PATH: Path = Path.home() / ".magi" / "config.yaml"
_PROJECT_CONFIG_NAME: str = "magi.yaml"

# Key names that look like credentials; forbidden in global config.
# Does NOT match legitimate keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["data", "provider", "refresh", "retrieval", "generation"]
)

_URL_PREFIXES = ("http://", "https://", "ftp://", "//")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DataCfg:
    """Local data locations (magi.yaml: data:).

    Attributes:
        corpus_dir: Directory of static corpus files read at startup.
        cache_file: JSON file the protocol cache is persisted to.
        fallback_file: Optional JSON file replacing the built-in fallback set.
        playbook: Optional text file appended to the system prompt.
    """

    corpus_dir: str = "data/financial"
    cache_file: str = "data/protocols-cache.json"
    fallback_file: str | None = None
    playbook: str | None = None


@dataclass
class ProviderCfg:
    """Entity data provider (magi.yaml: provider:)."""

    base_url: str = "https://api.llama.fi"
    timeout: float = 30.0


@dataclass
class RefreshCfg:
    """Cache refresh policy (magi.yaml: refresh:)."""

    interval_hours: float = 4.0
    max_retries: int = 3
    base_delay: float = 5.0
    top_n: int = 20


@dataclass
class RetrievalCfg:
    """Retrieval configuration (magi.yaml: retrieval:)."""

    limit: int = 3


@dataclass
class GenerationCfg:
    """LLM generation configuration (magi.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"


@dataclass
class MagiConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    data: DataCfg = field(default_factory=DataCfg)
    provider: ProviderCfg = field(default_factory=ProviderCfg)
    refresh: RefreshCfg = field(default_factory=RefreshCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: MagiConfig) -> None:
    for name in ("corpus_dir", "cache_file", "fallback_file", "playbook"):
        value = getattr(cfg.data, name)
        if value and value.startswith(_URL_PREFIXES):
            raise ConfigError(
                f"data.{name} must be a local path, not a URL: '{value}'\n"
                "  Example: data.corpus_dir: data/financial"
            )
    if not cfg.provider.base_url.startswith(("http://", "https://")):
        raise ConfigError(
            f"provider.base_url must be an http(s) URL: '{cfg.provider.base_url}'"
        )
    if cfg.provider.timeout <= 0:
        raise ConfigError(f"provider.timeout must be positive, got {cfg.provider.timeout}")
    if cfg.refresh.interval_hours <= 0:
        raise ConfigError(
            f"refresh.interval_hours must be positive, got {cfg.refresh.interval_hours}"
        )
    if cfg.refresh.max_retries < 1:
        raise ConfigError(
            f"refresh.max_retries must be at least 1, got {cfg.refresh.max_retries}"
        )
    if cfg.refresh.base_delay < 0:
        raise ConfigError(
            f"refresh.base_delay must not be negative, got {cfg.refresh.base_delay}"
        )
    if cfg.refresh.top_n < 1:
        raise ConfigError(f"refresh.top_n must be at least 1, got {cfg.refresh.top_n}")
    if cfg.retrieval.limit < 1:
        raise ConfigError(f"retrieval.limit must be at least 1, got {cfg.retrieval.limit}")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _optional_str(value: Any, default: str | None) -> str | None:
    if value is None:
        return default
    return str(value) or None


def _cfg_from_dict(data: dict[str, Any]) -> MagiConfig:
    """Build a *MagiConfig* from a merged raw YAML dict."""
    cfg = MagiConfig()

    try:
        if "data" in data:
            d = data["data"] or {}
            cfg.data = DataCfg(
                corpus_dir=str(d.get("corpus_dir", cfg.data.corpus_dir)),
                cache_file=str(d.get("cache_file", cfg.data.cache_file)),
                fallback_file=_optional_str(d.get("fallback_file"), cfg.data.fallback_file),
                playbook=_optional_str(d.get("playbook"), cfg.data.playbook),
            )

        if "provider" in data:
            p = data["provider"] or {}
            cfg.provider = ProviderCfg(
                base_url=str(p.get("base_url", cfg.provider.base_url)),
                timeout=float(p.get("timeout", cfg.provider.timeout)),
            )

        if "refresh" in data:
            r = data["refresh"] or {}
            cfg.refresh = RefreshCfg(
                interval_hours=float(r.get("interval_hours", cfg.refresh.interval_hours)),
                max_retries=int(r.get("max_retries", cfg.refresh.max_retries)),
                base_delay=float(r.get("base_delay", cfg.refresh.base_delay)),
                top_n=int(r.get("top_n", cfg.refresh.top_n)),
            )

        if "retrieval" in data:
            rt = data["retrieval"] or {}
            cfg.retrieval = RetrievalCfg(limit=int(rt.get("limit", cfg.retrieval.limit)))

        if "generation" in data:
            g = data["generation"] or {}
            cfg.generation = GenerationCfg(model=str(g.get("model", cfg.generation.model)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: MagiConfig) -> MagiConfig:
    """Apply MAGI_* environment variable overrides (layer 2)."""
    if model := os.environ.get("MAGI_GENERATION_MODEL"):
        cfg.generation.model = model
    if corpus_dir := os.environ.get("MAGI_CORPUS_DIR"):
        cfg.data.corpus_dir = corpus_dir
    if cache_file := os.environ.get("MAGI_CACHE_FILE"):
        cfg.data.cache_file = cache_file
    if base_url := os.environ.get("MAGI_PROVIDER_URL"):
        cfg.provider.base_url = base_url
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse '{path}': {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"'{path}' must contain a mapping at the top level.")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> MagiConfig:
    """Load and return a merged *MagiConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *magi.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, a YAML
            file is malformed, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg
