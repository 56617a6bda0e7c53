import threading
from dataclasses import dataclass, field


@dataclass
class GatewayMetrics:
    """Track request outcomes for one gateway service."""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    upstream_calls: int = 0
    fallbacks_used: int = 0
    upstream_failures: int = 0
    total_upstream_time_ms: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests

    @property
    def avg_upstream_time_ms(self) -> float:
        """Calculate average upstream call time."""
        if self.upstream_calls == 0:
            return 0.0
        return self.total_upstream_time_ms / self.upstream_calls

    def record_hit(self) -> None:
        """Record a request served from cache."""
        with self._lock:
            self.total_requests += 1
            self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a request that had to go upstream."""
        with self._lock:
            self.total_requests += 1
            self.cache_misses += 1

    def record_upstream(self, duration_ms: float, attempts: int) -> None:
        """Record a successful upstream call and how many attempts it took."""
        with self._lock:
            self.upstream_calls += 1
            self.total_upstream_time_ms += duration_ms
            if attempts > 1:
                self.fallbacks_used += 1

    def record_upstream_failure(self) -> None:
        """Record an upstream call that exhausted every target."""
        with self._lock:
            self.upstream_failures += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "upstream_calls": self.upstream_calls,
            "fallbacks_used": self.fallbacks_used,
            "upstream_failures": self.upstream_failures,
            "avg_upstream_time_ms": self.avg_upstream_time_ms,
        }
