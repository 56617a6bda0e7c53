"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class SearchResponse(BaseModel):
    """Response DTO for search endpoints.

    ``data`` is the normalised envelope produced by the transformers:
    ``{results, totalCount, query, provider, searchTime, ...}``.
    """

    success: bool = Field(True, description="Whether the search succeeded")
    data: dict[str, Any] = Field(..., description="Normalised search result envelope")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Error category, e.g. 'upstream_timeout'")
    message: str = Field(..., description="Human-readable description")
    timestamp: str = Field(..., description="ISO 8601 time the error was produced")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    stores: dict[str, dict[str, Any]] = Field(..., description="Per-store statistics")
    services: dict[str, dict[str, Any]] = Field(..., description="Per-service request metrics")


class CacheClearResponse(BaseModel):
    """Response DTO for clearing the caches."""

    success: bool
    deleted_count: int = Field(..., ge=0)
    message: str


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether every cache backend is reachable")
    cache_backend: str = Field(..., description="Configured cache backend")
