"""Small in-memory TTL cache with tag invalidation for read-path views."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Generic, Iterable, TypeVar

T = TypeVar("T")


@dataclass
class _CacheItem(Generic[T]):
    value: T
    expires_at: float
    tags: frozenset[str] = field(default_factory=frozenset)


class TTLCache:
    """Thread-safe TTL cache keyed by string; entries may carry invalidation tags."""

    def __init__(self, default_ttl_seconds: int = 60) -> None:
        self.default_ttl_seconds = max(1, default_ttl_seconds)
        self._data: dict[str, _CacheItem[object]] = {}
        self._lock = Lock()

    def get(self, key: str) -> object | None:
        now = time.time()
        with self._lock:
            item = self._data.get(key)
            if not item:
                return None
            if item.expires_at < now:
                self._data.pop(key, None)
                return None
            return item.value

    def set(
        self,
        key: str,
        value: object,
        ttl_seconds: int | None = None,
        tags: Iterable[str] = (),
    ) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else max(1, ttl_seconds)
        with self._lock:
            self._data[key] = _CacheItem(value=value, expires_at=time.time() + ttl, tags=frozenset(tags))

    def invalidate(self, tags: Iterable[str]) -> int:
        """Drop every entry carrying one of ``tags`` (or keyed by one); returns the count removed."""
        wanted = set(tags)
        with self._lock:
            stale = [key for key, item in self._data.items() if key in wanted or item.tags & wanted]
            for key in stale:
                self._data.pop(key, None)
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
