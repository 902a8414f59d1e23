"""Tests for the in-process cache manager."""

from __future__ import annotations

import pytest

from statusgen.stores.memory_cache import (
    COMBINATION_TYPE,
    FRAGMENT_TYPE,
    SCRIPT_TYPE,
    CacheManager,
)


def test_key_is_type_prefixed_digest() -> None:
    key = CacheManager.key("git", "git:1|colors=1")

    prefix, digest = key.rsplit("_", 1)
    assert prefix == "git"
    assert len(digest) == 8
    assert CacheManager.key("git", "git:1|colors=1") == key
    assert CacheManager.key("git", "git:1|colors=0") != key


def test_ttl_depends_on_type() -> None:
    cache = CacheManager()

    assert cache.ttl_for(FRAGMENT_TYPE) == 300.0
    assert cache.ttl_for("usage") == 300.0
    assert cache.ttl_for(COMBINATION_TYPE) == 60.0
    assert cache.ttl_for(SCRIPT_TYPE) == 60.0
    assert cache.ttl_for("other") == 5.0


def test_entries_expire_lazily(clock) -> None:
    cache = CacheManager(clock=clock)
    cache.set("template_abc", "script", SCRIPT_TYPE)

    clock.advance(59)
    assert cache.get("template_abc") == "script"

    clock.advance(2)
    assert "template_abc" in cache
    assert cache.get("template_abc") is None
    assert "template_abc" not in cache


def test_hits_are_counted(clock) -> None:
    cache = CacheManager(clock=clock)
    cache.set("git_1", "fragment", "git")
    cache.set("git_2", "fragment", "git")

    cache.get("git_1")
    cache.get("git_1")
    cache.get("missing")

    assert cache.stats() == {"git": {"entries": 2, "hits": 2}}
    assert cache.hit_rate() == pytest.approx(0.5)


def test_eviction_prefers_expired_entries(clock) -> None:
    cache = CacheManager(clock=clock, max_entries=3)
    cache.set("short", 1, "other")
    cache.set("a", 2, FRAGMENT_TYPE)
    cache.set("b", 3, FRAGMENT_TYPE)
    clock.advance(10)

    cache.set("c", 4, FRAGMENT_TYPE)

    assert "short" not in cache
    assert len(cache) == 3


def test_eviction_drops_least_used_entries(clock) -> None:
    cache = CacheManager(clock=clock, max_entries=5)
    for index in range(5):
        cache.set(f"k{index}", index, FRAGMENT_TYPE)
    for index in range(1, 5):
        cache.get(f"k{index}")

    cache.set("new", 99, FRAGMENT_TYPE)

    assert "k0" not in cache
    assert "new" in cache
    assert len(cache) == 5


def test_overwriting_existing_key_does_not_evict(clock) -> None:
    cache = CacheManager(clock=clock, max_entries=2)
    cache.set("a", 1, FRAGMENT_TYPE)
    cache.set("b", 2, FRAGMENT_TYPE)

    cache.set("a", 3, FRAGMENT_TYPE)

    assert len(cache) == 2
    assert cache.get("a") == 3


def test_invalidate_by_type_and_context(clock) -> None:
    cache = CacheManager(clock=clock)
    cache.set(cache.key("git", "one"), 1, "git", "one")
    cache.set(cache.key("git", "two"), 2, "git", "two")
    cache.set(cache.key("usage", "one"), 3, "usage", "one")

    assert cache.invalidate("git", "one") == 1
    assert cache.invalidate("git", "one") == 0
    assert cache.invalidate("git") == 1
    assert len(cache) == 1


def test_invalidate_templates_keeps_family_fragments(clock) -> None:
    cache = CacheManager(clock=clock)
    cache.set("t", 1, SCRIPT_TYPE)
    cache.set("f", 2, FRAGMENT_TYPE)
    cache.set("c", 3, COMBINATION_TYPE)
    cache.set("g", 4, "git")

    assert cache.invalidate_templates() == 3
    assert list(cache.stats()) == ["git"]

    cache.clear()
    assert len(cache) == 0


def test_metrics_are_updated_and_copied(clock) -> None:
    cache = CacheManager(clock=clock)
    cache.set("a", 1, FRAGMENT_TYPE)
    cache.get("a")

    cache.update_metrics(script_size=120, feature_complexity=3)
    snapshot = cache.metrics()
    snapshot.script_size = 0

    assert cache.metrics().script_size == 120
    assert cache.metrics().cache_hit_rate == pytest.approx(1.0)
    with pytest.raises(AttributeError):
        cache.update_metrics(bogus=1)
