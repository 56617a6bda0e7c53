"""Domain entities for internal representation.

These are frozen dataclasses used by services and repositories. They
are NOT used for API contracts - use the DTOs from the dto package for
that.
"""

from .cache_entry import CacheEntryEntity
from .outcome import SearchOutcome, SpeechOutcome
from .upstream import UpstreamAttempt, UpstreamRequest, UpstreamResponse, UpstreamResult, UpstreamTarget

__all__ = [
    "CacheEntryEntity",
    "SearchOutcome",
    "SpeechOutcome",
    "UpstreamAttempt",
    "UpstreamRequest",
    "UpstreamResponse",
    "UpstreamResult",
    "UpstreamTarget",
]
