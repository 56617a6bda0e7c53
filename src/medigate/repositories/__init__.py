"""Repository layer for data access.

Two kinds of adapters live here, both behind protocol-based interfaces:

- Cache stores (in-memory, Redis, null) satisfying CacheStore
- Upstream providers (ClinicalTrials.gov, Brave, ElevenLabs) satisfying
  SearchProvider or SpeechProvider

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from medigate.protocols import CacheStore, SearchProvider, SpeechProvider

from .brave_provider import BraveSearchProvider
from .clinicaltrials_provider import ClinicalTrialsProvider
from .elevenlabs_provider import ElevenLabsSpeechProvider
from .memory_repository import InMemoryCacheRepository
from .null_repository import NullCacheRepository
from .redis_repository import RedisCacheRepository

__all__ = [
    "CacheStore",
    "SearchProvider",
    "SpeechProvider",
    "InMemoryCacheRepository",
    "NullCacheRepository",
    "RedisCacheRepository",
    "BraveSearchProvider",
    "ClinicalTrialsProvider",
    "ElevenLabsSpeechProvider",
]
