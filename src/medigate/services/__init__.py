"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from medigate.services import SearchService

    search = SearchService.create(
        provider=ClinicalTrialsProvider.create(),
        store=InMemoryCacheRepository.create(name="clinicaltrials"),
    )
    ```
"""

from .search_service import SearchService
from .speech_service import SpeechService
from .upstream_client import UpstreamClient, truncate_text

__all__ = [
    "SearchService",
    "SpeechService",
    "UpstreamClient",
    "truncate_text",
]
