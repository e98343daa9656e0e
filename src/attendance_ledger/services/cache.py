"""Simple cache abstractions."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from attendance_ledger.services.clock import Clock, SystemClock


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """Thread-safe in-memory cache with per-entry expiry."""

    clock: Clock = field(default_factory=SystemClock)
    _entries: dict[str, _CacheEntry] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock.now() >= entry.expires_at:
                self._entries.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL, dropping entries that have expired."""
        now = self.clock.now()
        expires_at = now + timedelta(seconds=ttl_seconds)
        with self._lock:
            stale = [
                name for name, entry in self._entries.items() if now >= entry.expires_at
            ]
            for stale_key in stale:
                del self._entries[stale_key]
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def clear(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._entries.clear()
