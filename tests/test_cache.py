"""Tests for the local read cache."""

import pytest

from shopledger.domain.cache import LocalReadCache


def test_get_returns_value_within_ttl(cache, clock):
    cache.put("credits:main:list", [1, 2])
    clock.advance(299)
    assert cache.get("credits:main:list") == [1, 2]
    assert "credits:main:list" in cache


def test_entry_expires_at_ttl(cache, clock):
    cache.put("credits:main:list", [1, 2])
    clock.advance(300)
    assert cache.get("credits:main:list") is None
    assert "credits:main:list" not in cache
    # Expired entry is dropped on access
    assert len(cache) == 0


def test_get_default_on_miss(cache):
    assert cache.get("missing", default="fallback") == "fallback"


def test_put_resets_expiry(cache, clock):
    cache.put("key", "old")
    clock.advance(200)
    cache.put("key", "new")
    clock.advance(200)
    assert cache.get("key") == "new"


def test_get_or_load_loads_once(cache):
    calls = []

    def loader():
        calls.append(1)
        return "value"

    assert cache.get_or_load("key", loader) == "value"
    assert cache.get_or_load("key", loader) == "value"
    assert len(calls) == 1


def test_get_or_load_caches_falsy_values(cache):
    calls = []

    def loader():
        calls.append(1)
        return []

    cache.get_or_load("key", loader)
    cache.get_or_load("key", loader)
    assert len(calls) == 1


def test_get_or_load_reloads_after_expiry(cache, clock):
    values = iter(["first", "second"])
    cache.get_or_load("key", lambda: next(values))
    clock.advance(301)
    assert cache.get_or_load("key", lambda: next(values)) == "second"


def test_invalidate_by_prefix(cache):
    cache.put("credits:main:list", 1)
    cache.put("credits:other:list", 2)
    cache.put("sales:main:recent", 3)

    removed = cache.invalidate("credits:main:")

    assert removed == 1
    assert "credits:main:list" not in cache
    assert cache.get("credits:other:list") == 2
    assert cache.get("sales:main:recent") == 3


def test_invalidate_everything(cache):
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.invalidate() == 2
    assert len(cache) == 0


def test_purge_expired(cache, clock):
    cache.put("old", 1)
    clock.advance(200)
    cache.put("fresh", 2)
    clock.advance(150)

    assert cache.purge_expired() == 1
    assert len(cache) == 1
    assert cache.get("fresh") == 2


@pytest.mark.parametrize("ttl", [0, -5])
def test_rejects_non_positive_ttl(ttl):
    with pytest.raises(ValueError):
        LocalReadCache(ttl_seconds=ttl)
