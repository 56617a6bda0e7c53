"""Redis implementation of CacheStore.

Entries are JSON strings written with an expiry, so Redis enforces the
TTL itself. Insertion order lives in a Redis list next to the entries;
eviction pops from the head of that list. The capacity check, eviction
and insertion run inside one Lua script, which Redis executes
atomically, so concurrent gateway workers never overshoot capacity.

The script deletes evicted entries by key names it builds from the
entry prefix rather than from KEYS, so it needs a single Redis node
and does not run on Redis Cluster.
"""

import json
from typing import Any

import redis

from medigate.config import get_redis_client, settings
from medigate.errors import CacheFailure
from medigate.logger import logger

# KEYS[1] order list, KEYS[2] entry key
# ARGV[1] fingerprint, ARGV[2] ttl seconds, ARGV[3] payload, ARGV[4] capacity, ARGV[5] entry prefix
_PUT_SCRIPT = """
redis.call('LREM', KEYS[1], 0, ARGV[1])
local evicted = 0
while redis.call('LLEN', KEYS[1]) >= tonumber(ARGV[4]) do
    local oldest = redis.call('LPOP', KEYS[1])
    if not oldest then break end
    redis.call('DEL', ARGV[5] .. oldest)
    evicted = evicted + 1
end
redis.call('RPUSH', KEYS[1], ARGV[1])
redis.call('SET', KEYS[2], ARGV[3], 'EX', ARGV[2])
return evicted
"""


class RedisCacheRepository:
    """Redis-backed TTL cache with insertion-order eviction.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Values must be JSON-serialisable. Every Redis error is logged and
    turned into a miss (or a skipped write), never raised.

    Keys:
        ``medigate:<name>:entry:<fingerprint>``  the JSON payload (SET EX)
        ``medigate:<name>:order``                 fingerprints, oldest first
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        name: str = "default",
        ttl: int | None = None,
        max_entries: int | None = None,
    ) -> None:
        """Initialize the Redis cache repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            name: Store name, also used as key namespace.
            ttl: Time-to-live for entries in seconds.
            max_entries: Capacity before eviction.
        """
        self._client = redis_client or get_redis_client()
        self._name = name
        self._ttl = int(ttl or settings.cache_ttl)
        self._max_entries = max_entries or settings.cache_max_entries
        self._entry_prefix = f"medigate:{name}:entry:"
        self._order_key = f"medigate:{name}:order"
        self._put_script = self._client.register_script(_PUT_SCRIPT)
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._failures = 0

    @classmethod
    def create(
        cls,
        name: str = "default",
        ttl: int | None = None,
        max_entries: int | None = None,
    ) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository with defaults.

        Args:
            name: Store name.
            ttl: Entry TTL in seconds. If None, uses settings.
            max_entries: Capacity. If None, uses settings.

        Returns:
            Configured RedisCacheRepository
        """
        return cls(name=name, ttl=ttl, max_entries=max_entries)

    @property
    def name(self) -> str:
        return self._name

    def _entry_key(self, key: str) -> str:
        return f"{self._entry_prefix}{key}"

    def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None if absent or expired."""
        try:
            raw = self._client.get(self._entry_key(key))
        except redis.RedisError as e:
            self._report_failure("get", key, e)
            return None

        if raw is None:
            self._misses += 1
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            self._report_failure("decode", key, e)
            return None

        self._hits += 1
        return value

    def put(self, key: str, value: Any) -> None:
        """Insert or overwrite key, evicting the oldest entries if full."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            self._report_failure("encode", key, e)
            return

        try:
            evicted = self._put_script(
                keys=[self._order_key, self._entry_key(key)],
                args=[key, self._ttl, payload, self._max_entries, self._entry_prefix],
            )
        except redis.RedisError as e:
            self._report_failure("put", key, e)
            return

        self._evictions += int(evicted or 0)

    def sweep(self) -> int:
        """Drop order-list members whose entry Redis has already expired."""
        try:
            removed = 0
            for member in self._client.lrange(self._order_key, 0, -1):
                key = member.decode() if isinstance(member, bytes) else member
                if not self._client.exists(self._entry_key(key)):
                    removed += self._client.lrem(self._order_key, 0, key)
            return removed
        except redis.RedisError as e:
            self._report_failure("sweep", None, e)
            return 0

    def clear(self) -> int:
        """Delete every entry of this store."""
        try:
            count = 0
            for entry_key in self._client.scan_iter(match=f"{self._entry_prefix}*"):
                count += self._client.delete(entry_key)
            self._client.delete(self._order_key)
            return count
        except redis.RedisError as e:
            self._report_failure("clear", None, e)
            return 0

    def count(self) -> int:
        try:
            return int(self._client.llen(self._order_key))
        except redis.RedisError as e:
            self._report_failure("count", None, e)
            return 0

    def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def get_stats(self) -> dict:
        """Get store statistics."""
        lookups = self._hits + self._misses
        return {
            "name": self._name,
            "backend": "redis",
            "size": self.count(),
            "max_entries": self._max_entries,
            "ttl": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
            "evictions": self._evictions,
            "failures": self._failures,
        }

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client

    def _report_failure(self, operation: str, key: str | None, error: Exception) -> None:
        self._failures += 1
        if operation in ("get", "decode"):
            self._misses += 1
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
