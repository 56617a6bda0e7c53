"""Upstream provider protocols.

A provider knows everything specific to one third-party API: which
request fields matter for caching, which targets to try, how to phrase
the outbound call and how to normalise the answer. Services stay
generic and only orchestrate.
"""

from typing import Any, Protocol, runtime_checkable

from medigate.entities import UpstreamRequest, UpstreamTarget
from medigate.fingerprint import FingerprintBuilder


@runtime_checkable
class SearchProvider(Protocol):
    """Protocol for search APIs whose JSON answers are cached."""

    name: str
    fingerprint: FingerprintBuilder

    def fingerprint_fields(self, request: Any) -> dict[str, Any]:
        """Extract the semantically relevant fields of an inbound request."""
        ...

    def targets(self) -> list[UpstreamTarget]:
        """Ordered targets, primary first."""
        ...

    def build_request(self, request: Any) -> UpstreamRequest:
        """Translate the inbound request into an outbound call."""
        ...

    def transform(self, payload: Any, request: Any) -> dict[str, Any]:
        """Normalise the upstream payload into the result envelope."""
        ...


@runtime_checkable
class SpeechProvider(Protocol):
    """Protocol for text-to-speech APIs returning audio bytes."""

    name: str
    model: str
    max_input_chars: int

    def voice_for(self, speaker: str) -> str:
        """Resolve a speaker role to a voice ID."""
        ...

    def targets(self, voice_id: str) -> list[UpstreamTarget]:
        """Targets for a voice: the voice itself, then the fallback voice."""
        ...

    def build_request(self, text: str) -> UpstreamRequest:
        """Outbound call synthesising text."""
        ...
