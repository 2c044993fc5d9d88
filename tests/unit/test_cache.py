"""Tests for the in-memory TTL cache."""

from datetime import timedelta

import pytest

from promptsmith.core.cache import MemoryCache, fingerprint


@pytest.fixture
def cache(clock):
    return MemoryCache(ttl=timedelta(minutes=10), max_entries=3, clock=clock)


class TestExpiry:
    """Entries expire lazily once their TTL has passed."""

    def test_hit_before_ttl(self, cache, clock):
        cache.set("k", "v")
        clock.advance(minutes=9, seconds=59)

        assert cache.get("k") == "v"

    def test_miss_at_ttl(self, cache, clock):
        cache.set("k", "v")
        clock.advance(minutes=10)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_refreshes_timestamp(self, cache, clock):
        cache.set("k", "v1")
        clock.advance(minutes=8)
        cache.set("k", "v2")
        clock.advance(minutes=8)

        assert cache.get("k") == "v2"

    def test_evict_expired(self, cache, clock):
        cache.set("old", 1)
        clock.advance(minutes=6)
        cache.set("new", 2)
        clock.advance(minutes=5)

        assert cache.evict_expired() == 1
        assert "old" not in cache
        assert "new" in cache


class TestBounds:
    """The cache never holds more than max_entries."""

    def test_oldest_entry_dropped(self, cache):
        for key in ("a", "b", "c", "d"):
            cache.set(key, key)

        assert len(cache) == 3
        assert cache.get("a") is None
        assert cache.get("d") == "d"

    def test_rewrite_moves_key_to_newest(self, cache):
        for key in ("a", "b", "c"):
            cache.set(key, key)
        cache.set("a", "again")
        cache.set("d", "d")

        assert cache.get("a") == "again"
        assert cache.get("b") is None

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            MemoryCache(ttl=timedelta(seconds=1), max_entries=0)


def test_evict_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    cache.evict("a")
    cache.evict("missing")

    assert "a" not in cache
    cache.clear()
    assert len(cache) == 0


def test_fingerprint_is_stable_and_separated():
    assert fingerprint("a", "b") == fingerprint("a", "b")
    assert fingerprint("ab", "c") != fingerprint("a", "bc")
    assert len(fingerprint("x")) == 64
