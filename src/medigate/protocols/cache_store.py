"""Cache storage protocol.

Defines the interface for the TTL-bounded key/value stores that hold
transformed upstream payloads.

Implementations:
- In-memory ordered map guarded by a lock (default)
- Redis, shared between worker processes
- Null store that never hits, for isolated function invocations

Contract shared by every implementation:
- `get` returns a value only while `now - stored_at < ttl`
- `put` evicts the single oldest-inserted entry when at capacity
- no method raises; backend failures degrade to a miss
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends."""

    @property
    def name(self) -> str:
        """Store name used in logs and stats."""
        ...

    def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None if absent or stale."""
        ...

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite key, evicting the oldest entry if full."""
        ...

    def sweep(self) -> int:
        """Remove every stale entry.

        Returns:
            Number of entries removed
        """
        ...

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        ...

    def count(self) -> int:
        """Number of entries currently held (stale ones included)."""
        ...

    def health_check(self) -> bool:
        """Check if the backend is reachable."""
        ...

    def get_stats(self) -> dict:
        """Get store statistics (implementation-specific keys)."""
        ...
