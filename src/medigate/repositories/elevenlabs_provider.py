"""ElevenLabs text-to-speech provider.

Every synthesis is tried with the requested voice first and with the
configured fallback voice second. Text longer than the provider limit
is cut by the upstream client before the first attempt.
"""

from medigate.config import settings
from medigate.entities import UpstreamRequest, UpstreamTarget


class ElevenLabsSpeechProvider:
    """ElevenLabs implementation of the SpeechProvider protocol."""

    name = "elevenlabs"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        voices: dict[str, str] | None = None,
        fallback_voice: str | None = None,
        max_input_chars: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: ElevenLabs API key. Without one no target is produced.
            base_url: text-to-speech endpoint; the voice ID is appended.
            model: Model ID sent with every request.
            voices: Speaker role to voice ID.
            fallback_voice: Voice tried when the requested voice fails.
            max_input_chars: Longest text the API accepts.
            timeout: Per-call timeout in seconds.
        """
        self._api_key = api_key if api_key is not None else settings.elevenlabs_api_key
        self._base_url = (base_url or settings.elevenlabs_base_url).rstrip("/")
        self.model = model or settings.elevenlabs_model
        self._voices = voices or settings.voices
        self._fallback_voice = fallback_voice if fallback_voice is not None else settings.voice_fallback
        self.max_input_chars = max_input_chars or settings.tts_max_chars
        self._timeout = timeout or settings.tts_timeout

    @classmethod
    def create(cls) -> "ElevenLabsSpeechProvider":
        """Factory method using the configured key and voices."""
        return cls()

    def voice_for(self, speaker: str) -> str:
        """Resolve a speaker role; unknown roles use the host voice."""
        return self._voices.get(speaker) or self._voices["host"]

    def targets(self, voice_id: str) -> list[UpstreamTarget]:
        if not self._api_key:
            return []

        chain = [voice_id]
        if self._fallback_voice and self._fallback_voice != voice_id:
            chain.append(self._fallback_voice)

        return [
            UpstreamTarget(
                name=f"elevenlabs-voice-{voice}",
                url=f"{self._base_url}/{voice}",
                headers={"xi-api-key": self._api_key, "Accept": "audio/mpeg"},
                timeout=self._timeout,
            )
            for voice in chain
        ]

    def build_request(self, text: str) -> UpstreamRequest:
        return UpstreamRequest(
            method="POST",
            body={
                "text": text,
                "model_id": self.model,
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
            },
            response_type="bytes",
        )
