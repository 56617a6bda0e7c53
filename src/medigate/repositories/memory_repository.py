"""In-memory implementation of CacheStore.

A single process-wide ordered map guarded by one lock. It suits a
single gateway process serving requests from threads or from the event
loop. Multiple worker processes each get their own copy; use the Redis
repository to share entries between them.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from medigate.config import settings
from medigate.entities import CacheEntryEntity
from medigate.errors import CacheFailure
from medigate.logger import logger


class InMemoryCacheRepository:
    """TTL-bounded map with insertion-order eviction.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    - `get` serves an entry only while `now - stored_at < ttl` and drops
      stale entries it comes across.
    - `put` evicts the single oldest-inserted entry when the map is full.
      Overwriting a key counts as a fresh insertion.
    - The capacity check, eviction and insertion run under one lock.
    - Failures are logged and degrade to a miss; nothing is raised.

    Example:
        ```python
        store = InMemoryCacheRepository(name="clinicaltrials", ttl=3600, max_entries=50)
        store.put("diabetes|default-filters|pageSize=20", {"results": []})
        store.get("diabetes|default-filters|pageSize=20")
        ```
    """

    def __init__(
        self,
        name: str = "default",
        ttl: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            name: Store name used in logs and stats.
            ttl: Seconds an entry stays servable. Defaults to settings.
            max_entries: Capacity before eviction. Defaults to settings.
            clock: Monotonic clock in seconds; injectable for tests.
        """
        self._name = name
        self._ttl = ttl or settings.cache_ttl
        self._max_entries = max_entries or settings.cache_max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntryEntity] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._failures = 0

    @classmethod
    def create(
        cls,
        name: str = "default",
        ttl: float | None = None,
        max_entries: int | None = None,
    ) -> "InMemoryCacheRepository":
        """Factory method to create an InMemoryCacheRepository with defaults.

        Args:
            name: Store name.
            ttl: Entry TTL in seconds. If None, uses settings.
            max_entries: Capacity. If None, uses settings.

        Returns:
            Configured InMemoryCacheRepository
        """
        return cls(name=name, ttl=ttl, max_entries=max_entries)

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None if absent or stale."""
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    self._misses += 1
                    return None
                if not entry.is_fresh(self._clock(), self._ttl):
                    del self._entries[key]
                    self._misses += 1
                    return None
                self._hits += 1
                return entry.value
        except Exception as e:
            self._report_failure("get", key, e)
            return None

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite key, evicting the oldest entry if full."""
        try:
            with self._lock:
                if key in self._entries:
                    del self._entries[key]
                elif len(self._entries) >= self._max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    self._evictions += 1
                    logger.debug(
                        "Cache eviction",
                        extra={"store": self._name, "evicted_key": evicted},
                    )
                self._entries[key] = CacheEntryEntity(
                    key=key,
                    value=value,
                    stored_at=self._clock(),
                )
        except Exception as e:
            self._report_failure("put", key, e)

    def sweep(self) -> int:
        """Remove every entry whose age has reached the TTL."""
        try:
            with self._lock:
                now = self._clock()
                stale = [
                    key
                    for key, entry in self._entries.items()
                    if not entry.is_fresh(now, self._ttl)
                ]
                for key in stale:
                    del self._entries[key]
            return len(stale)
        except Exception as e:
            self._report_failure("sweep", None, e)
            return 0

    def clear(self) -> int:
        """Remove every entry."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Keys in insertion order, oldest first."""
        with self._lock:
            return list(self._entries)

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        """Get store statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "name": self._name,
                "backend": "memory",
                "size": len(self._entries),
                "max_entries": self._max_entries,
                "ttl": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / lookups if lookups else 0.0,
                "evictions": self._evictions,
                "failures": self._failures,
            }

    def _report_failure(self, operation: str, key: str | None, error: Exception) -> None:
        self._failures += 1
        logger.warning(
            f"Cache {operation} failed, treating as miss",
            extra={
                "store": self._name,
                "key": key,
                "error_category": CacheFailure.category,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
