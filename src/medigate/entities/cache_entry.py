"""Cache entry domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntryEntity:
    """A transformed payload stored under a request fingerprint.

    Entries are never mutated; overwriting a key replaces the entry.

    Attributes:
        key: The request fingerprint
        value: The transformed, ready-to-return payload
        stored_at: Clock reading at insertion time (seconds)
    """

    key: str
    value: Any
    stored_at: float

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was stored."""
        return now - self.stored_at

    def is_fresh(self, now: float, ttl: float) -> bool:
        """An entry is servable iff its age is strictly below the TTL."""
        return self.age(now) < ttl
