"""In-process read cache keyed by tuples, with prefix invalidation.

Reads are cached under keys such as ``("contracts", user_id)`` or
``("clauses", contract_id)``. Invalidating ``("contracts",)`` drops every
key that starts with ``"contracts"``, so a mutation can refresh all users'
lists without knowing who has one cached.

The cache is bounded: entries expire after ``ttl`` seconds, which also
caps how stale a view can be when another process wrote the row, and the
least recently used entry is evicted once ``max_entries`` is reached.
"""

import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Hashable, List, Tuple, TypeVar

from app.core.config import settings
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")
CacheKey = Tuple[Hashable, ...]


class QueryCache:
    """Keyed read cache shared by the data access services."""

    def __init__(
        self,
        max_entries: int = 2048,
        ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        # key -> (expires_at, value), least recently used first
        self._entries: OrderedDict[CacheKey, Tuple[float, Any]] = OrderedDict()

    async def get_or_load(self, key: CacheKey, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for ``key``, loading it on a miss.

        Failed loads are not cached.
        """
        entry = self._entries.get(key)
        if entry is not None:
            expires_at, value = entry
            if expires_at > self._clock():
                self._entries.move_to_end(key)
                return value
            del self._entries[key]

        value = await loader()
        self._store(key, value)
        return value

    def _store(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug(f"Evicted least recently used cache entry {evicted}")

    def invalidate(self, *prefixes: CacheKey) -> List[CacheKey]:
        """Drop every entry whose key starts with any of ``prefixes``.

        Returns:
            The keys that were dropped
        """
        dropped = [
            key for key in self._entries
            if any(key[:len(prefix)] == prefix for prefix in prefixes)
        ]
        for key in dropped:
            del self._entries[key]
        if dropped:
            LOGGER.debug(f"Invalidated {len(dropped)} cache entries for prefixes {prefixes}")
        return dropped

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry[0] > self._clock()

    def __len__(self) -> int:
        return len(self._entries)


query_cache = QueryCache(max_entries=settings.query_cache_max_entries, ttl=settings.query_cache_ttl)
