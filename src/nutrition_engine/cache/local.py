"""Bounded in-process cache for conversion factors and densities.

Each service owns its own instance, so tests get isolation by constructing a
fresh service and two engines in one process never share entries. Reads and
writes are guarded by a lock so the cache is safe to share between threads.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, TypeVar


K = TypeVar("K")
V = TypeVar("V")


class LocalCache(Generic[K, V]):
    """Thread-safe LRU mapping with a fixed capacity.

    Example:
        cache: LocalCache[tuple[str, str, str], Decimal] = LocalCache(max_items=512)
        cache.set(("cup", "ml", "general"), Decimal("236.588"))
        cache.get(("cup", "ml", "general"))
    """

    def __init__(self, max_items: int = 2048) -> None:
        if max_items < 1:
            msg = "max_items must be at least 1"
            raise ValueError(msg)
        self._max_items = max_items
        self._data: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: K) -> V | None:
        """Return the cached value, or None if absent."""
        with self._lock:
            if key not in self._data:
                self.misses += 1
                return None
            self._data.move_to_end(key)
            self.hits += 1
            return self._data[key]

    def set(self, key: K, value: V) -> None:
        """Store a value, evicting the least recently used entry when full."""
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self._max_items:
                self._data.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
