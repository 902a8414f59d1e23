"""In-process TTL cache for generated fragments and scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import time
from typing import Any, Callable, Dict, Optional

from ..logging import get_logger

FRAGMENT_TYPE = "template_fragment"
COMBINATION_TYPE = "template_combination"
SCRIPT_TYPE = "template"
FAMILY_TYPES = ("basics", "colors", "git", "usage", "system")

_TEMPLATE_TYPES = (FRAGMENT_TYPE, COMBINATION_TYPE, SCRIPT_TYPE)


@dataclass(frozen=True)
class CacheKey:
    type: str
    context: str
    created_at: float


@dataclass
class CacheEntry:
    """A cached value with its absolute expiry time and hit counter."""

    key: CacheKey
    value: Any
    expiry: float
    hits: int = 0


@dataclass
class CacheMetrics:
    """Last observed generation figures, kept for diagnostics."""

    script_size: int = 0
    generation_time: float = 0.0
    cache_hit_rate: float = 0.0
    feature_complexity: int = 0


@dataclass
class CacheManager:
    """Memory cache with per-type TTLs, lazy expiry, and hit-count eviction.

    Fragment-class entries (``template_fragment`` and the per-family types) live
    for ``fragment_ttl`` seconds; combinations and whole scripts for
    ``combination_ttl``; anything else for ``memory_ttl``.
    """

    memory_ttl: float = 5.0
    fragment_ttl: float = 300.0
    combination_ttl: float = 60.0
    max_entries: int = 100
    clock: Callable[[], float] = time.monotonic
    _entries: Dict[str, CacheEntry] = field(default_factory=dict, init=False, repr=False)
    _metrics: CacheMetrics = field(default_factory=CacheMetrics, init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger("cache")

    @staticmethod
    def key(cache_type: str, context: str) -> str:
        digest = hashlib.md5(context.encode("utf-8")).hexdigest()[:8]
        return f"{cache_type}_{digest}"

    def ttl_for(self, cache_type: str) -> float:
        if cache_type == FRAGMENT_TYPE or cache_type in FAMILY_TYPES:
            return self.fragment_ttl
        if cache_type in (COMBINATION_TYPE, SCRIPT_TYPE):
            return self.combination_ttl
        return self.memory_ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() > entry.expiry:
            del self._entries[key]
            return None
        entry.hits += 1
        return entry.value

    def set(self, key: str, value: Any, cache_type: str, context: str = "") -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self._evict()
        now = self.clock()
        self._entries[key] = CacheEntry(
            key=CacheKey(type=cache_type, context=context, created_at=now),
            value=value,
            expiry=now + self.ttl_for(cache_type),
        )

    def invalidate(self, cache_type: str, context: Optional[str] = None) -> int:
        """Drop entries of ``cache_type`` (optionally one context); returns the count removed."""
        if context is not None:
            return 1 if self._entries.pop(self.key(cache_type, context), None) else 0
        doomed = [key for key, entry in self._entries.items() if entry.key.type == cache_type]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def invalidate_templates(self) -> int:
        removed = sum(self.invalidate(cache_type) for cache_type in _TEMPLATE_TYPES)
        self.logger.debug("Invalidated %d template cache entries", removed)
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, Dict[str, int]]:
        summary: Dict[str, Dict[str, int]] = {}
        for entry in self._entries.values():
            bucket = summary.setdefault(entry.key.type, {"entries": 0, "hits": 0})
            bucket["entries"] += 1
            bucket["hits"] += entry.hits
        return summary

    def hit_rate(self) -> float:
        """Fraction of live entries that have been read at least once."""
        if not self._entries:
            return 0.0
        reused = sum(1 for entry in self._entries.values() if entry.hits > 0)
        return reused / len(self._entries)

    def update_metrics(self, **values: Any) -> None:
        for name, value in values.items():
            if not hasattr(self._metrics, name):
                raise AttributeError(f"Unknown cache metric '{name}'")
            setattr(self._metrics, name, value)
        self._metrics.cache_hit_rate = self.hit_rate()

    def metrics(self) -> CacheMetrics:
        return CacheMetrics(**vars(self._metrics))

    # ------------------------------------------------------------------
    # Internal helpers

    def _evict(self) -> None:
        now = self.clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expiry]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self.max_entries:
            return
        victims = max(1, int(self.max_entries * 0.2))
        ranked = sorted(self._entries.items(), key=lambda item: item[1].hits)
        for key, _entry in ranked[:victims]:
            del self._entries[key]
        self.logger.debug(
            "Evicted %d expired and %d least-used cache entries", len(expired), victims
        )


__all__ = [
    "COMBINATION_TYPE",
    "CacheEntry",
    "CacheKey",
    "CacheManager",
    "CacheMetrics",
    "FAMILY_TYPES",
    "FRAGMENT_TYPE",
    "SCRIPT_TYPE",
]
