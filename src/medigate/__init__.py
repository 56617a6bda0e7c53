"""MediGate - caching gateway for medical search and text-to-speech APIs.

This package provides a layered architecture:

Layers:
    - protocols: Interface contracts (CacheStore, SearchProvider, SpeechProvider)
    - repositories: Cache stores and upstream API adapters
    - services: Business logic (cache-aside search, cached speech, fallback client)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts and upstream schemas)
    - entities: Domain models (internal)

Usage:
    ```python
    from medigate.repositories import ClinicalTrialsProvider, InMemoryCacheRepository
    from medigate.services import SearchService

    service = SearchService.create(
        provider=ClinicalTrialsProvider.create(),
        store=InMemoryCacheRepository.create(name="clinicaltrials"),
    )
    ```

For HTTP API:
    ```python
    from medigate.api.app import app
    ```
"""

from medigate.config import get_redis_client, settings
from medigate.entities import CacheEntryEntity, SearchOutcome, SpeechOutcome, UpstreamTarget
from medigate.errors import (
    GatewayError,
    UnknownError,
    UpstreamFailureError,
    UpstreamTimeoutError,
    ValidationError,
)
from medigate.fingerprint import FingerprintBuilder
from medigate.handlers import CacheHandler, SearchHandler, SpeechHandler
from medigate.protocols import CacheStore, SearchProvider, SpeechProvider
from medigate.repositories import (
    BraveSearchProvider,
    ClinicalTrialsProvider,
    ElevenLabsSpeechProvider,
    InMemoryCacheRepository,
    NullCacheRepository,
    RedisCacheRepository,
)
from medigate.services import SearchService, SpeechService, UpstreamClient

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CacheStore",
    "SearchProvider",
    "SpeechProvider",
    # Services (business logic)
    "SearchService",
    "SpeechService",
    "UpstreamClient",
    "FingerprintBuilder",
    # Handlers (HTTP)
    "CacheHandler",
    "SearchHandler",
    "SpeechHandler",
    # Repositories (data access)
    "InMemoryCacheRepository",
    "NullCacheRepository",
    "RedisCacheRepository",
    "BraveSearchProvider",
    "ClinicalTrialsProvider",
    "ElevenLabsSpeechProvider",
    # Entities (domain models)
    "CacheEntryEntity",
    "SearchOutcome",
    "SpeechOutcome",
    "UpstreamTarget",
    # Errors
    "GatewayError",
    "ValidationError",
    "UpstreamTimeoutError",
    "UpstreamFailureError",
    "UnknownError",
]
