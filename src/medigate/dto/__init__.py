"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract (requests and
responses) and the lenient schemas of upstream payloads.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    BraveFilters,
    BraveSearchRequest,
    ClinicalTrialsFilters,
    ClinicalTrialsSearchRequest,
    PodcastAudioRequest,
    PodcastSegment,
    SpeechRequest,
)
from .responses import (
    CacheClearResponse,
    CacheStatsResponse,
    ErrorResponse,
    HealthCheckResponse,
    SearchResponse,
)

__all__ = [
    "BraveFilters",
    "BraveSearchRequest",
    "ClinicalTrialsFilters",
    "ClinicalTrialsSearchRequest",
    "PodcastAudioRequest",
    "PodcastSegment",
    "SpeechRequest",
    "CacheClearResponse",
    "CacheStatsResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "SearchResponse",
]
