"""
Tests for cached speech synthesis.
"""

import asyncio
import json

import httpx
import pytest

from conftest import RecordingTransport
from medigate.errors import UpstreamFailureError, ValidationError
from medigate.repositories import ElevenLabsSpeechProvider, InMemoryCacheRepository
from medigate.services import SpeechService

BASE_URL = "https://tts.test/v1/text-to-speech"


def voice_of(request: httpx.Request) -> str:
    return request.url.path.rsplit("/", 1)[-1]


def echo_voice(request: httpx.Request) -> httpx.Response:
    """Answer with audio bytes naming the voice and text that produced them."""
    text = json.loads(request.content)["text"]
    return httpx.Response(200, content=f"[{voice_of(request)}:{text}]".encode())


def make_service(handler, clock, max_input_chars=5000):
    transport = RecordingTransport(handler)
    provider = ElevenLabsSpeechProvider(
        api_key="xi-key",
        base_url=BASE_URL,
        model="eleven_multilingual_v2",
        voices={"host": "host-voice", "expert": "expert-voice"},
        fallback_voice="fallback-voice",
        max_input_chars=max_input_chars,
    )
    service = SpeechService.create(
        provider=provider,
        store=InMemoryCacheRepository(name="speech", ttl=3600, max_entries=100, clock=clock),
        http_client=httpx.AsyncClient(transport=transport),
    )
    return service, transport


def test_synthesize_uses_speaker_voice(clock):
    service, transport = make_service(echo_voice, clock)

    outcome = asyncio.run(service.synthesize("Welcome", speaker="expert"))

    assert outcome.audio == b"[expert-voice:Welcome]"
    assert voice_of(transport.requests[0]) == "expert-voice"
    assert transport.requests[0].headers["xi-api-key"] == "xi-key"


def test_fallback_voice_on_failure(clock):
    def handler(request):
        if voice_of(request) == "host-voice":
            return httpx.Response(422, json={"detail": "voice unavailable"})
        return echo_voice(request)

    service, transport = make_service(handler, clock)

    outcome = asyncio.run(service.synthesize("Welcome"))

    assert outcome.audio == b"[fallback-voice:Welcome]"
    assert [voice_of(r) for r in transport.requests] == ["host-voice", "fallback-voice"]


def test_primary_voice_recovers(clock):
    host_down = True

    def handler(request):
        if host_down and voice_of(request) == "host-voice":
            return httpx.Response(503)
        return echo_voice(request)

    service, transport = make_service(handler, clock)

    first = asyncio.run(service.synthesize("Welcome"))
    assert first.audio == b"[fallback-voice:Welcome]"
    assert service.store.count() == 0

    host_down = False
    clock.advance(60)
    second = asyncio.run(service.synthesize("Welcome"))

    assert second.audio == b"[host-voice:Welcome]"
    assert second.cache_hit is False
    assert transport.calls == 3


def test_every_voice_failed(clock):
    service, transport = make_service(lambda request: httpx.Response(500), clock)

    with pytest.raises(UpstreamFailureError) as exc_info:
        asyncio.run(service.synthesize("Welcome"))

    assert transport.calls == 2
    assert len(exc_info.value.attempts) == 2


@pytest.mark.parametrize(("length", "sent"), [(5000, 5000), (5001, 5000)])
def test_truncation_boundary(clock, length, sent):
    service, transport = make_service(lambda request: httpx.Response(200, content=b"mp3"), clock)

    asyncio.run(service.synthesize("a" * length))

    assert len(json.loads(transport.requests[0].content)["text"]) == sent


def test_repeated_text_is_cached(clock):
    service, transport = make_service(echo_voice, clock)

    first = asyncio.run(service.synthesize("Welcome"))
    second = asyncio.run(service.synthesize("Welcome"))

    assert transport.calls == 1
    assert second.audio == first.audio
    assert second.cache_hit is True


def test_voice_is_part_of_the_key(clock):
    service, transport = make_service(echo_voice, clock)

    asyncio.run(service.synthesize("Welcome", speaker="host"))
    asyncio.run(service.synthesize("Welcome", speaker="expert"))

    assert transport.calls == 2
    assert service.fingerprint("Welcome", "host-voice") != service.fingerprint("Welcome", "expert-voice")


def test_case_is_part_of_the_key(clock):
    service, _ = make_service(echo_voice, clock)

    assert service.fingerprint("US", "host-voice") != service.fingerprint("us", "host-voice")
    assert service.fingerprint(" Hello  world ", "host-voice") == service.fingerprint("Hello world", "host-voice")


def test_blank_text_rejected(clock):
    service, transport = make_service(echo_voice, clock)

    with pytest.raises(ValidationError):
        asyncio.run(service.synthesize("   "))

    assert transport.calls == 0


class TestPodcast:
    def test_segments_concatenated_in_order(self, clock):
        service, transport = make_service(echo_voice, clock)

        outcome = asyncio.run(
            service.synthesize_podcast(
                [
                    ("host", "Today: statins."),
                    ("expert", "They lower LDL."),
                    ("host", "Thanks!"),
                ]
            )
        )

        assert outcome.audio == (
            b"[host-voice:Today: statins.][expert-voice:They lower LDL.][host-voice:Thanks!]"
        )
        assert outcome.segments == 3
        assert outcome.voices == ["host-voice", "expert-voice", "host-voice"]
        assert transport.calls == 3

    def test_repeated_segment_rendered_once(self, clock):
        service, transport = make_service(echo_voice, clock)

        outcome = asyncio.run(
            service.synthesize_podcast([("host", "Welcome back."), ("expert", "Hi."), ("host", "Welcome back.")])
        )

        assert transport.calls == 2
        assert outcome.cache_hits == 1
        assert outcome.cache_hit is False

    def test_each_segment_has_its_own_fallback(self, clock):
        def handler(request):
            if voice_of(request) == "expert-voice":
                return httpx.Response(503)
            return echo_voice(request)

        service, _ = make_service(handler, clock)

        outcome = asyncio.run(service.synthesize_podcast([("host", "Q?"), ("expert", "A.")]))

        assert outcome.audio == b"[host-voice:Q?][fallback-voice:A.]"

    def test_failed_segment_aborts(self, clock):
        def handler(request):
            if json.loads(request.content)["text"] == "broken":
                return httpx.Response(500)
            return echo_voice(request)

        service, _ = make_service(handler, clock)

        with pytest.raises(UpstreamFailureError):
            asyncio.run(service.synthesize_podcast([("host", "fine"), ("host", "broken")]))

    def test_empty_script_rejected(self, clock):
        service, _ = make_service(echo_voice, clock)

        with pytest.raises(ValidationError):
            asyncio.run(service.synthesize_podcast([]))
