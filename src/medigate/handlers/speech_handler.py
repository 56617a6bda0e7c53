"""HTTP handlers for speech endpoints."""

from fastapi.responses import Response

from medigate.dto import PodcastAudioRequest, SpeechRequest
from medigate.entities import SpeechOutcome
from medigate.errors import GatewayError, UnknownError
from medigate.logger import logger
from medigate.services import SpeechService

AUDIO_MEDIA_TYPE = "audio/mpeg"


class SpeechHandler:
    """HTTP handler returning raw audio bodies."""

    def __init__(self, speech_service: SpeechService) -> None:
        """Initialize the speech handler.

        Args:
            speech_service: The speech service for business logic (required).
        """
        self._speech = speech_service

    @property
    def service(self) -> SpeechService:
        return self._speech

    async def synthesize(self, request: SpeechRequest) -> Response:
        """Handle POST /speech requests."""
        try:
            outcome = await self._speech.synthesize(request.text, speaker=request.voice)
        except GatewayError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during speech synthesis")
            raise UnknownError() from e
        return self._audio_response(outcome)

    async def synthesize_podcast(self, request: PodcastAudioRequest) -> Response:
        """Handle POST /speech/podcast requests."""
        try:
            outcome = await self._speech.synthesize_podcast(
                [(segment.speaker, segment.text) for segment in request.segments]
            )
        except GatewayError:
            raise
        except Exception as e:
            logger.exception("Unexpected error during podcast rendering")
            raise UnknownError() from e
        return self._audio_response(outcome)

    @staticmethod
    def _audio_response(outcome: SpeechOutcome) -> Response:
        return Response(
            content=outcome.audio,
            media_type=AUDIO_MEDIA_TYPE,
            headers={
                "X-Cache": "HIT" if outcome.cache_hit else "MISS",
                "X-Segments": str(outcome.segments),
            },
        )
