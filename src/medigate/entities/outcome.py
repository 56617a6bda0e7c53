"""Service outcome entities."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one search request.

    Attributes:
        data: Normalised envelope, byte-identical on a cache hit
        cache_hit: Whether the envelope came from the cache
        fingerprint: Cache key the request mapped to
    """

    data: dict[str, Any]
    cache_hit: bool
    fingerprint: str


@dataclass(frozen=True)
class SpeechOutcome:
    """Audio rendered for one text or a whole podcast script."""

    audio: bytes
    segments: int = 1
    cache_hits: int = 0
    voices: list[str] = field(default_factory=list)

    @property
    def cache_hit(self) -> bool:
        """True only when every segment came from the cache."""
        return self.cache_hits == self.segments
