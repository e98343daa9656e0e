"""Tests for the in-memory cache."""

from attendance_ledger.services.cache import InMemoryCache
from tests.conftest import FakeClock


def test_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)

    cache.set("key", "value", ttl_seconds=10)
    assert cache.get("key") == "value"

    clock.advance(seconds=10)
    assert cache.get("key") is None


def test_cache_clear() -> None:
    cache = InMemoryCache(clock=FakeClock())
    cache.set("key", "value", ttl_seconds=10)

    cache.clear()

    assert cache.get("key") is None


def test_set_prunes_expired_entries() -> None:
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)
    cache.set("old", "value", ttl_seconds=10)
    clock.advance(seconds=11)

    cache.set("new", "value", ttl_seconds=10)

    assert "old" not in cache._entries
    assert cache.get("new") == "value"
