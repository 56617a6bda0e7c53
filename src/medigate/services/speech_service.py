"""Speech service: cached text-to-speech for single texts and podcasts.

Audio is cached per segment, keyed by the text, the voice and the model,
so a podcast that repeats a line or re-renders after an edit only
synthesises the segments that changed.
"""

import base64
import hashlib
from typing import Any

from medigate.entities import SpeechOutcome
from medigate.errors import UpstreamError, ValidationError
from medigate.fingerprint import normalize_value
from medigate.logger import logger
from medigate.metrics import GatewayMetrics
from medigate.protocols import CacheStore, SpeechProvider

from .upstream_client import UpstreamClient


class SpeechService:
    """Render text to audio through a SpeechProvider.

    The upstream client passed in is expected to carry the provider's
    input limit (``max_input_chars``); ``create`` wires it that way.

    Example:
        ```python
        service = SpeechService.create(
            provider=ElevenLabsSpeechProvider.create(),
            store=InMemoryCacheRepository.create(name="speech"),
        )
        outcome = await service.synthesize("Welcome to the show", speaker="host")
        outcome.audio    # audio/mpeg bytes
        ```
    """

    def __init__(
        self,
        provider: SpeechProvider,
        store: CacheStore,
        upstream: UpstreamClient,
        metrics: GatewayMetrics | None = None,
    ) -> None:
        """Initialize the speech service.

        Args:
            provider: Text-to-speech API adapter (required).
            store: Cache store for rendered segments (required).
            upstream: Client performing the voice fallback chain (required).
            metrics: Request counters. A fresh instance if None.
        """
        self._provider = provider
        self._store = store
        self._upstream = upstream
        self._metrics = metrics or GatewayMetrics()

    @classmethod
    def create(
        cls,
        provider: SpeechProvider,
        store: CacheStore,
        http_client: Any = None,
    ) -> "SpeechService":
        """Factory method wiring an upstream client with the provider's input limit.

        Args:
            provider: Text-to-speech API adapter (required).
            store: Cache store (required).
            http_client: Shared httpx.AsyncClient. If None, one is created lazily.

        Returns:
            Configured SpeechService instance
        """
        upstream = UpstreamClient(
            http_client=http_client,
            max_input_chars=provider.max_input_chars,
        )
        return cls(provider=provider, store=store, upstream=upstream)

    @property
    def name(self) -> str:
        return self._provider.name

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def metrics(self) -> GatewayMetrics:
        return self._metrics

    @property
    def upstream(self) -> UpstreamClient:
        return self._upstream

    def fingerprint(self, text: str, voice_id: str) -> str:
        """Cache key of one rendered segment.

        Raises:
            ValidationError: If the text is blank
        """
        # Case matters to pronunciation, so only whitespace is normalised
        normalized = normalize_value(text, fold_case=False)
        if normalized is None:
            raise ValidationError("'text' is required")
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        return f"{voice_id}|{self._provider.model}|{digest}"

    async def _render(self, text: str, voice_id: str) -> tuple[bytes, bool]:
        key = self.fingerprint(text, voice_id)

        cached = self._store.get(key)
        if cached is not None:
            self._metrics.record_hit()
            logger.info("Cache hit", extra={"service": self.name, "voice": voice_id})
            return base64.b64decode(cached), True

        self._metrics.record_miss()
        logger.info("Cache miss", extra={"service": self.name, "voice": voice_id})

        try:
            result = await self._upstream.call_with_fallback(
                self._provider.targets(voice_id),
                self._provider.build_request(text),
            )
        except UpstreamError as e:
            self._metrics.record_upstream_failure()
            logger.error(
                "Speech synthesis failed",
                extra={
                    "service": self.name,
                    "voice": voice_id,
                    "error_category": e.category,
                    "attempts": len(e.attempts),
                },
            )
            raise

        self._metrics.record_upstream(result.elapsed_ms, len(result.attempts))

        audio = result.value
        if result.fallback_used:
            # Only audio from the requested voice may sit under its key
            logger.warning(
                "Fallback voice used, segment not cached",
                extra={"service": self.name, "voice": voice_id, "target": result.target},
            )
            return audio, False

        # Stores hold JSON-safe values
        self._store.put(key, base64.b64encode(audio).decode("ascii"))
        return audio, False

    async def synthesize(self, text: str, speaker: str = "host") -> SpeechOutcome:
        """Render one text with the voice of a speaker role.

        Raises:
            ValidationError: If the text is blank
            UpstreamTimeoutError | UpstreamFailureError: If every voice failed
        """
        voice_id = self._provider.voice_for(speaker)
        audio, hit = await self._render(text, voice_id)
        return SpeechOutcome(audio=audio, segments=1, cache_hits=int(hit), voices=[voice_id])

    async def synthesize_podcast(self, segments: list[tuple[str, str]]) -> SpeechOutcome:
        """Render a script segment by segment and concatenate the audio.

        Segments are synthesised sequentially, each with its own voice
        fallback chain, and joined in script order. The first segment
        that fails aborts the whole podcast.

        Args:
            segments: (speaker, text) pairs in script order

        Returns:
            SpeechOutcome with the concatenated audio

        Raises:
            ValidationError: If the script is empty or a segment is blank
            UpstreamTimeoutError | UpstreamFailureError: If a segment failed
        """
        if not segments:
            raise ValidationError("At least one segment is required")

        chunks: list[bytes] = []
        voices: list[str] = []
        cache_hits = 0
        for speaker, text in segments:
            voice_id = self._provider.voice_for(speaker)
            audio, hit = await self._render(text, voice_id)
            chunks.append(audio)
            voices.append(voice_id)
            cache_hits += int(hit)

        logger.info(
            "Podcast rendered",
            extra={
                "service": self.name,
                "segments": len(segments),
                "cache_hits": cache_hits,
                "bytes": sum(len(chunk) for chunk in chunks),
            },
        )
        return SpeechOutcome(
            audio=b"".join(chunks),
            segments=len(segments),
            cache_hits=cache_hits,
            voices=voices,
        )

    def get_stats(self) -> dict[str, Any]:
        """Store statistics plus request metrics for this service."""
        return {
            "store": self._store.get_stats(),
            "requests": self._metrics.to_dict(),
        }
