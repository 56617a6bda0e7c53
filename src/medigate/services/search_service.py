"""Search service: the cache-aside flow shared by every search provider.

    fingerprint -> cache lookup -> {hit: return}
                                -> {miss: upstream with fallback -> transform -> store -> return}
"""

import time
from collections.abc import Callable
from typing import Any

from medigate.entities import SearchOutcome
from medigate.errors import UpstreamError
from medigate.logger import logger
from medigate.metrics import GatewayMetrics
from medigate.protocols import CacheStore, SearchProvider

from .upstream_client import UpstreamClient


class SearchService:
    """Serve search requests from cache, falling back to the upstream API.

    This service depends on PROTOCOLS, not concrete implementations:
    - SearchProvider: ClinicalTrials.gov, Brave, ...
    - CacheStore: in-memory, Redis or null

    Only a successfully transformed envelope is stored. A failed or
    timed-out upstream call leaves the cache untouched.

    Example:
        ```python
        service = SearchService.create(
            provider=ClinicalTrialsProvider.create(),
            store=InMemoryCacheRepository.create(name="clinicaltrials"),
        )
        outcome = await service.search(ClinicalTrialsSearchRequest(q="diabetes"))
        outcome.cache_hit    # False the first time, True within the TTL
        ```
    """

    def __init__(
        self,
        provider: SearchProvider,
        store: CacheStore,
        upstream: UpstreamClient,
        metrics: GatewayMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the search service.

        Args:
            provider: Upstream search API adapter (required).
            store: Cache store dedicated to this provider (required).
            upstream: Client performing the fallback chain (required).
            metrics: Request counters. A fresh instance if None.
            clock: Clock used for searchTime; injectable for tests.
        """
        self._provider = provider
        self._store = store
        self._upstream = upstream
        self._metrics = metrics or GatewayMetrics()
        self._clock = clock

    @classmethod
    def create(
        cls,
        provider: SearchProvider,
        store: CacheStore,
        upstream: UpstreamClient | None = None,
    ) -> "SearchService":
        """Factory method to create SearchService with a default upstream client.

        Args:
            provider: Upstream search API adapter (required).
            store: Cache store (required).
            upstream: Shared upstream client. If None, a new one is created.

        Returns:
            Configured SearchService instance
        """
        return cls(provider=provider, store=store, upstream=upstream or UpstreamClient())

    @property
    def name(self) -> str:
        return self._provider.name

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def metrics(self) -> GatewayMetrics:
        return self._metrics

    def fingerprint(self, request: Any) -> str:
        """Cache key for an inbound request.

        Raises:
            ValidationError: If the query is missing or blank
        """
        return self._provider.fingerprint.build(self._provider.fingerprint_fields(request))

    async def search(self, request: Any) -> SearchOutcome:
        """Answer a search request.

        Args:
            request: Validated request DTO of the provider

        Returns:
            SearchOutcome with the envelope and whether it was cached

        Raises:
            ValidationError: If the request cannot be fingerprinted
            UpstreamTimeoutError: If the last target timed out
            UpstreamFailureError: If the last target failed otherwise
        """
        key = self.fingerprint(request)

        cached = self._store.get(key)
        if cached is not None:
            self._metrics.record_hit()
            logger.info(
                "Cache hit",
                extra={"service": self.name, "fingerprint": key},
            )
            return SearchOutcome(data=cached, cache_hit=True, fingerprint=key)

        self._metrics.record_miss()
        logger.info(
            "Cache miss",
            extra={"service": self.name, "fingerprint": key},
        )

        start_time = self._clock()
        try:
            result = await self._upstream.call_with_fallback(
                self._provider.targets(),
                self._provider.build_request(request),
            )
        except UpstreamError as e:
            self._metrics.record_upstream_failure()
            logger.error(
                "Upstream search failed",
                extra={
                    "service": self.name,
                    "error_category": e.category,
                    "attempts": len(e.attempts),
                },
            )
            raise

        self._metrics.record_upstream(result.elapsed_ms, len(result.attempts))

        try:
            data = self._provider.transform(result.value, request)
        except UpstreamError as e:
            self._metrics.record_upstream_failure()
            logger.error(
                "Upstream returned a malformed payload",
                extra={"service": self.name, "target": result.target, "error_category": e.category},
            )
            raise
        data["searchTime"] = round((self._clock() - start_time) * 1000)

        self._store.put(key, data)
        return SearchOutcome(data=data, cache_hit=False, fingerprint=key)

    def get_stats(self) -> dict[str, Any]:
        """Store statistics plus request metrics for this service."""
        return {
            "store": self._store.get_stats(),
            "requests": self._metrics.to_dict(),
        }
