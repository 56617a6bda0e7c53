"""HTTP handlers for cache operations.

These endpoints span every service: statistics, health and clearing
act on all stores at once.
"""

from fastapi import HTTPException, status

from medigate.dto import CacheClearResponse, CacheStatsResponse, HealthCheckResponse
from medigate.logger import logger
from medigate.services import SearchService, SpeechService


class CacheHandler:
    """HTTP handlers for cache operations.

    Example:
        ```python
        handler = CacheHandler(
            services={"clinicaltrials": ct_service, "speech": speech_service},
            backend="memory",
        )

        @app.get("/cache/stats", response_model=CacheStatsResponse)
        async def stats():
            return await handler.get_stats()
        ```
    """

    def __init__(
        self,
        services: dict[str, SearchService | SpeechService],
        backend: str,
    ) -> None:
        """Initialize the cache handler.

        Args:
            services: Services by name; each owns one cache store.
            backend: Configured cache backend, reported by the health check.
        """
        self._services = services
        self._backend = backend

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            stores = {}
            requests = {}
            for name, service in self._services.items():
                stats = service.get_stats()
                stores[name] = stats["store"]
                requests[name] = stats["requests"]
            return CacheStatsResponse(stores=stores, services=requests)

        except Exception as e:
            logger.exception("Failed to collect cache stats")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to get stats",
            ) from e

    async def clear_cache(self) -> CacheClearResponse:
        """Handle DELETE /cache requests.

        Raises:
            HTTPException: If an error occurs during clearing
        """
        try:
            count = sum(service.store.clear() for service in self._services.values())
            logger.info("Cache cleared", extra={"deleted_count": count})
            return CacheClearResponse(
                success=True,
                deleted_count=count,
                message="Cache cleared successfully",
            )

        except Exception as e:
            logger.exception("Failed to clear cache")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to clear cache",
            ) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        is_healthy = all(service.store.health_check() for service in self._services.values())

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
            cache_backend=self._backend,
        )

    def sweep(self) -> int:
        """Drop expired entries from every store."""
        removed = 0
        for name, service in self._services.items():
            count = service.store.sweep()
            if count:
                logger.info("Swept expired cache entries", extra={"store": name, "removed": count})
            removed += count
        return removed
