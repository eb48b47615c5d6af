"""In-memory bounded FIFO cache.

Process-level store for hot data (travel estimates). Shared across concurrent
optimization requests, so every operation takes the lock. Eviction is by
insertion order: once ``max_size`` is exceeded the oldest entry goes first.
Reads do not refresh an entry's position.
"""

import threading
from collections import OrderedDict
from typing import Generic, TypeVar

V = TypeVar("V")


class BoundedFIFOCache(Generic[V]):
    """Thread-safe, size-bounded FIFO cache."""

    def __init__(self, max_size: int = 2000) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._cache: OrderedDict[str, V] = OrderedDict()
        self._max_size = max_size
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> V | None:
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def set(self, key: str, value: V) -> None:
        with self._lock:
            if key in self._cache:
                # Overwrite in place, keep original insertion slot
                self._cache[key] = value
                return
            self._cache[key] = value
            while len(self._cache) > self._max_size:
                self._cache.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def keys(self) -> list[str]:
        """Snapshot of keys, oldest first."""
        with self._lock:
            return list(self._cache.keys())

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses
