"""Null implementation of CacheStore.

For deployments where every invocation is isolated (no shared memory
between requests) a process cache only adds overhead. This store
accepts writes and never hits.
"""

from typing import Any


class NullCacheRepository:
    """CacheStore that stores nothing."""

    def __init__(self, name: str = "default") -> None:
        self._name = name
        self._misses = 0

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: str) -> Any | None:
        self._misses += 1
        return None

    def put(self, key: str, value: Any) -> None:
        return None

    def sweep(self) -> int:
        return 0

    def clear(self) -> int:
        return 0

    def count(self) -> int:
        return 0

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        return {
            "name": self._name,
            "backend": "none",
            "size": 0,
            "hits": 0,
            "misses": self._misses,
        }
