"""Protocol interfaces for swappable implementations.

Protocols use structural typing, so any class with matching methods
satisfies them without inheriting. This keeps services independent of
concrete backends (in-memory vs Redis cache, ClinicalTrials vs Brave
search) and lets tests pass in small fakes.
"""

from .cache_store import CacheStore
from .upstream_provider import SearchProvider, SpeechProvider

__all__ = [
    "CacheStore",
    "SearchProvider",
    "SpeechProvider",
]
