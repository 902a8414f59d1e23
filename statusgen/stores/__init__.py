"""Memory and runtime (on-disk) caches."""

from .memory_cache import CacheEntry, CacheKey, CacheManager, CacheMetrics
from .runtime_cache import (
    RUNTIME_CACHE_DOMAINS,
    RuntimeCacheDomain,
    generate_cache_helpers,
    generate_runtime_cache_snippet,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheManager",
    "CacheMetrics",
    "RUNTIME_CACHE_DOMAINS",
    "RuntimeCacheDomain",
    "generate_cache_helpers",
    "generate_runtime_cache_snippet",
]
