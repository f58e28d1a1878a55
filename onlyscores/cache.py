# onlyscores/cache.py
"""
Thread-safe in-memory TTL cache for provider responses.

State is per process: every gunicorn worker keeps its own entries.
Instances are injected into the services that use them, so tests can pass a fresh one.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cached value and the timestamp after which it is stale."""
    expires_at: float
    value: Optional[T]


class TTLCache:
    """Key -> value store where each entry carries its own expiry."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """clock returns epoch seconds; tests pass a fake one."""
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[T]:
        """Return the cached value for key, or None if missing or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry and entry.value is not None and entry.expires_at > self._clock():
                return entry.value
        return None

    def set(self, key: str, value: T, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""
        with self._lock:
            self._store[key] = CacheEntry(expires_at=self._clock() + ttl_seconds, value=value)

    def get_or_set(self, key: str, ttl_seconds: int, loader: Callable[[], T]) -> T:
        """
        Return the live entry for key, or call loader and cache its result.

        Args:
            key: Cache key.
            ttl_seconds: Time-to-live for the entry.
            loader: Zero-argument callable producing a fresh value.

        Returns:
            The cached or newly loaded value.

        Loader exceptions propagate and nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = loader()
        self.set(key, value, ttl_seconds)
        return value

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._store.clear()
