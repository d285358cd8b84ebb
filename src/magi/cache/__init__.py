"""Protocol cache: provider client, versioned snapshots and refresh."""

from magi.cache.aliases import ALIASES, normalize_name, resolve_alias
from magi.cache.fallback import DEFAULT_FALLBACK_PROTOCOLS, load_fallback
from magi.cache.manager import CacheManager
from magi.cache.models import CacheSnapshot, EntityRecord, validate_entity
from magi.cache.provider import DefiLlamaClient, EmptyResultError, ProviderError
from magi.cache.scheduler import PeriodicRefresher

__all__ = [
    "ALIASES",
    "DEFAULT_FALLBACK_PROTOCOLS",
    "CacheManager",
    "CacheSnapshot",
    "DefiLlamaClient",
    "EmptyResultError",
    "EntityRecord",
    "PeriodicRefresher",
    "ProviderError",
    "load_fallback",
    "normalize_name",
    "resolve_alias",
    "validate_entity",
]
