"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Annotated

import httpx
from fastapi import Depends, FastAPI, Request

from medigate.config import settings
from medigate.handlers import CacheHandler, SearchHandler, SpeechHandler
from medigate.logger import logger
from medigate.protocols import CacheStore
from medigate.repositories import (
    BraveSearchProvider,
    ClinicalTrialsProvider,
    ElevenLabsSpeechProvider,
    InMemoryCacheRepository,
    NullCacheRepository,
    RedisCacheRepository,
)
from medigate.services import SearchService, SpeechService, UpstreamClient


def _from_state(request: Request, attribute: str):
    value = getattr(request.app.state, attribute, None)
    if value is None:
        raise RuntimeError(f"{attribute} not initialized. Check lifespan setup.")
    return value


def get_clinicaltrials_handler(request: Request) -> SearchHandler:
    """Dependency injection for the ClinicalTrials.gov SearchHandler."""
    return _from_state(request, "clinicaltrials_handler")


def get_brave_handler(request: Request) -> SearchHandler:
    """Dependency injection for the Brave SearchHandler."""
    return _from_state(request, "brave_handler")


def get_speech_handler(request: Request) -> SpeechHandler:
    """Dependency injection for SpeechHandler."""
    return _from_state(request, "speech_handler")


def get_cache_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler."""
    return _from_state(request, "cache_handler")


def build_store(name: str, ttl: int, backend: str | None = None) -> CacheStore:
    """Create the cache store for one service according to CACHE_BACKEND.

    Args:
        name: Store name (also the Redis key namespace).
        ttl: Entry TTL in seconds.
        backend: memory, redis or none. Defaults to settings.

    Returns:
        A CacheStore implementation
    """
    backend = backend or settings.cache_backend
    if backend == "redis":
        return RedisCacheRepository.create(name=name, ttl=ttl)
    if backend == "none":
        return NullCacheRepository(name=name)
    return InMemoryCacheRepository.create(name=name, ttl=ttl)


async def sweep_periodically(handler: CacheHandler, interval: float) -> None:
    """Background task removing expired entries every `interval` seconds."""
    while True:
        await asyncio.sleep(interval)
        try:
            handler.sweep()
        except Exception:
            logger.exception("Cache sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. One shared httpx client and upstream client
    2. One cache store per service, per CACHE_BACKEND
    3. Services and their handlers
    4. The background sweeper task

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Stops the sweeper, closes the HTTP client and removes all
        services from app.state on shutdown
    """
    http_client = httpx.AsyncClient(
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )
    upstream = UpstreamClient(http_client=http_client)

    clinicaltrials_service = SearchService.create(
        provider=ClinicalTrialsProvider.create(),
        store=build_store("clinicaltrials", settings.clinicaltrials_cache_ttl),
        upstream=upstream,
    )
    brave_service = SearchService.create(
        provider=BraveSearchProvider.create(),
        store=build_store("brave", settings.brave_cache_ttl),
        upstream=upstream,
    )
    speech_service = SpeechService.create(
        provider=ElevenLabsSpeechProvider.create(),
        store=build_store("speech", settings.cache_ttl),
        http_client=http_client,
    )
    cache_handler = CacheHandler(
        services={
            "clinicaltrials": clinicaltrials_service,
            "brave": brave_service,
            "speech": speech_service,
        },
        backend=settings.cache_backend,
    )

    # Store in app.state (FastAPI pattern)
    app.state.clinicaltrials_handler = SearchHandler(search_service=clinicaltrials_service)
    app.state.brave_handler = SearchHandler(search_service=brave_service)
    app.state.speech_handler = SpeechHandler(speech_service=speech_service)
    app.state.cache_handler = cache_handler

    sweeper = asyncio.create_task(
        sweep_periodically(cache_handler, settings.cache_sweep_interval)
    )

    health = await cache_handler.health_check()
    logger.info(
        "MediGate started",
        extra={
            "cache_backend": settings.cache_backend,
            "cache_max_entries": settings.cache_max_entries,
            "cache_sweep_interval": settings.cache_sweep_interval,
            "brave_keys": len(settings.brave_api_keys),
            "clinicaltrials_mirror": bool(settings.clinicaltrials_mirror_url),
            "speech_configured": bool(settings.elevenlabs_api_key),
            "cache_healthy": health.cache_healthy,
        },
    )

    yield

    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await http_client.aclose()

    del app.state.clinicaltrials_handler
    del app.state.brave_handler
    del app.state.speech_handler
    del app.state.cache_handler
    logger.info("MediGate shut down")


# Type aliases for cleaner dependency injection
ClinicalTrialsHandlerDep = Annotated[SearchHandler, Depends(get_clinicaltrials_handler)]
BraveHandlerDep = Annotated[SearchHandler, Depends(get_brave_handler)]
SpeechHandlerDep = Annotated[SpeechHandler, Depends(get_speech_handler)]
CacheHandlerDep = Annotated[CacheHandler, Depends(get_cache_handler)]
