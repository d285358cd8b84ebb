"""Build the retriever, cache manager and refresher from a ``MagiConfig``.

Front ends (the CLI here, chat bots elsewhere) receive these objects as
arguments; nothing in the package keeps them in module globals.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from magi.cache.fallback import load_fallback
from magi.cache.manager import CacheManager
from magi.cache.provider import DefiLlamaClient
from magi.cache.scheduler import PeriodicRefresher
from magi.config import MagiConfig
from magi.rag.retriever import SimpleRAG

logger = logging.getLogger(__name__)


def build_rag(cfg: MagiConfig, corpus_dir: Path | None = None) -> SimpleRAG:
    """Retriever over *corpus_dir* (default: ``data.corpus_dir``); not yet loaded."""
    return SimpleRAG(corpus_dir if corpus_dir is not None else Path(cfg.data.corpus_dir))


def build_cache_manager(
    cfg: MagiConfig,
    cache_file: Path | None = None,
    provider: Any = None,
) -> CacheManager:
    """Cache manager with its persisted snapshot already loaded."""
    if provider is None:
        provider = DefiLlamaClient(cfg.provider.base_url, timeout=cfg.provider.timeout)
    fallback_path = Path(cfg.data.fallback_file) if cfg.data.fallback_file else None
    manager = CacheManager(
        provider,
        cache_file if cache_file is not None else Path(cfg.data.cache_file),
        load_fallback(fallback_path),
        max_retries=cfg.refresh.max_retries,
        base_delay=cfg.refresh.base_delay,
        top_n=cfg.refresh.top_n,
    )
    manager.load()
    return manager


def build_refresher(cfg: MagiConfig, manager: CacheManager) -> PeriodicRefresher:
    return PeriodicRefresher(manager, interval_seconds=cfg.refresh.interval_hours * 3600)


def read_playbook(cfg: MagiConfig) -> str | None:
    """Contents of ``data.playbook``, or ``None`` if unset or unreadable."""
    if not cfg.data.playbook:
        return None
    path = Path(cfg.data.playbook)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read playbook %s: %s", path, exc)
        return None
