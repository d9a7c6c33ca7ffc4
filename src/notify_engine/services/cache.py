"""
TTL Cache

In-memory read-mostly cache with explicit invalidation.
Entries expire after ttl seconds; callers that mutate the underlying
data must invalidate the affected key themselves.
"""
import logging
import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

logger = logging.getLogger("notify.services.cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

MISSING = object()


class TTLCache(Generic[K, V]):
    """
    Small per-process cache.

    Values (None included) are stored with their
    insertion time and considered stale after ttl seconds.
    """

    def __init__(self, name: str, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[K, Tuple[float, Optional[V]]] = {}

    def get(self, key: K, default=MISSING):
        """Return the cached value, or default when missing/expired"""
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return default
        return value

    def contains(self, key: K) -> bool:
        return self.get(key) is not MISSING

    def set(self, key: K, value: Optional[V]):
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: K):
        """Drop one key"""
        if self._entries.pop(key, None) is not None:
            logger.info(f"Invalidated {self.name} cache entry: {key}")

    def clear(self):
        """Drop everything"""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {self.name} cache ({count} entries)")

    @property
    def cached_count(self) -> int:
        return len(self._entries)
