from __future__ import annotations

import threading
import time
from typing import Protocol


class CacheStore(Protocol):
    """Key-value cache with per-entry TTL.

    Implementations must make each call atomic; callers never hold locks
    across calls.
    """

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCache:
    """Process-local cache store. Expired entries are dropped lazily on read."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._data: dict[str, tuple[float, bytes]] = {}

    def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._data[key] = (self._clock() + ttl_seconds, bytes(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


_cache: CacheStore = InMemoryCache()


def set_cache(cache: CacheStore) -> None:
    global _cache
    _cache = cache


def get_cache() -> CacheStore:
    return _cache
