"""
Tests for the cache-aside search flow.
"""

import asyncio

import httpx
import pytest

from conftest import RecordingTransport, brave_payload, clinicaltrials_payload, study
from medigate.dto import BraveSearchRequest, ClinicalTrialsSearchRequest
from medigate.errors import UpstreamFailureError, UpstreamTimeoutError
from medigate.repositories import BraveSearchProvider, ClinicalTrialsProvider, InMemoryCacheRepository
from medigate.services import SearchService, UpstreamClient

TWENTY_STUDIES = clinicaltrials_payload(
    *[study(f"NCT{i:08d}") for i in range(20)],
    total=1432,
)


def make_service(handler, clock, mirror=None, ttl=3600, max_entries=100):
    transport = RecordingTransport(handler)
    store = InMemoryCacheRepository(name="clinicaltrials", ttl=ttl, max_entries=max_entries, clock=clock)
    service = SearchService(
        provider=ClinicalTrialsProvider(base_url="https://ct.test/api/v2/studies", mirror_url=mirror),
        store=store,
        upstream=UpstreamClient(http_client=httpx.AsyncClient(transport=transport)),
        clock=clock,
    )
    return service, store, transport


def diabetes() -> ClinicalTrialsSearchRequest:
    return ClinicalTrialsSearchRequest.model_validate({"q": "diabetes"})


def test_diabetes_end_to_end(clock):
    service, store, transport = make_service(lambda request: httpx.Response(200, json=TWENTY_STUDIES), clock)

    first = asyncio.run(service.search(diabetes()))

    assert transport.calls == 1
    assert first.cache_hit is False
    assert first.fingerprint == "diabetes|default-filters|pageSize=20"
    assert len(first.data["results"]) == 20
    assert store.keys() == ["diabetes|default-filters|pageSize=20"]

    clock.advance(3599)
    second = asyncio.run(service.search(diabetes()))

    assert transport.calls == 1
    assert second.cache_hit is True
    assert second.data == first.data
    assert len(second.data["results"]) == 20

    clock.advance(1)
    third = asyncio.run(service.search(diabetes()))

    assert transport.calls == 2
    assert third.cache_hit is False


def test_equivalent_requests_share_an_entry(clock):
    service, _, transport = make_service(lambda request: httpx.Response(200, json=TWENTY_STUDIES), clock)

    asyncio.run(service.search(diabetes()))
    asyncio.run(
        service.search(
            ClinicalTrialsSearchRequest.model_validate(
                {"query": "  Diabetes ", "pageSize": 20, "status": "RECRUITING", "requestId": "abc"}
            )
        )
    )

    assert transport.calls == 1


def test_search_time_is_reported(clock):
    def handler(request):
        clock.advance(0.25)
        return httpx.Response(200, json=TWENTY_STUDIES)

    service, _, _ = make_service(handler, clock)

    outcome = asyncio.run(service.search(diabetes()))

    assert outcome.data["searchTime"] == 250


def test_mirror_used_when_primary_fails(clock):
    def handler(request):
        if request.url.host == "ct.test":
            return httpx.Response(503, text="maintenance")
        return httpx.Response(200, json=TWENTY_STUDIES)

    service, _, transport = make_service(handler, clock, mirror="https://mirror.test/api/v2/studies")

    outcome = asyncio.run(service.search(diabetes()))

    assert transport.calls == 2
    assert len(outcome.data["results"]) == 20
    assert service.metrics.fallbacks_used == 1


def test_failure_is_not_cached(clock):
    responses = iter([httpx.Response(502, text="bad gateway"), httpx.Response(200, json=TWENTY_STUDIES)])
    service, store, transport = make_service(lambda request: next(responses), clock)

    with pytest.raises(UpstreamFailureError):
        asyncio.run(service.search(diabetes()))
    assert store.count() == 0

    outcome = asyncio.run(service.search(diabetes()))

    assert transport.calls == 2
    assert outcome.cache_hit is False


def test_timeout_is_not_cached(clock):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    service, store, _ = make_service(handler, clock)

    with pytest.raises(UpstreamTimeoutError):
        asyncio.run(service.search(diabetes()))

    assert store.count() == 0
    assert service.metrics.upstream_failures == 1


def test_capacity_evicts_oldest_query(clock):
    service, store, transport = make_service(
        lambda request: httpx.Response(200, json=TWENTY_STUDIES),
        clock,
        max_entries=2,
    )

    for query in ("diabetes", "asthma", "migraine"):
        asyncio.run(service.search(ClinicalTrialsSearchRequest.model_validate({"q": query})))

    assert [key.split("|")[0] for key in store.keys()] == ["asthma", "migraine"]

    asyncio.run(service.search(diabetes()))
    assert transport.calls == 4


def test_brave_key_rotation(clock):
    def handler(request):
        if request.headers["X-Subscription-Token"] == "exhausted":
            return httpx.Response(429, json={"error": "rate limit"})
        return httpx.Response(200, json=brave_payload())

    transport = RecordingTransport(handler)
    service = SearchService(
        provider=BraveSearchProvider(api_keys=["exhausted", "spare"], base_url="https://brave.test/search"),
        store=InMemoryCacheRepository(name="brave", ttl=900, max_entries=10, clock=clock),
        upstream=UpstreamClient(http_client=httpx.AsyncClient(transport=transport)),
        clock=clock,
    )

    outcome = asyncio.run(service.search(BraveSearchRequest.model_validate({"q": "statins"})))

    assert transport.calls == 2
    assert outcome.data["provider"] == "brave"
    assert transport.requests[0].url.params["q"] == "statins medical"


def test_stats(clock):
    service, _, _ = make_service(lambda request: httpx.Response(200, json=TWENTY_STUDIES), clock)

    asyncio.run(service.search(diabetes()))
    asyncio.run(service.search(diabetes()))

    stats = service.get_stats()
    assert stats["store"]["size"] == 1
    assert stats["requests"]["cache_hits"] == 1
    assert stats["requests"]["cache_misses"] == 1
    assert stats["requests"]["upstream_calls"] == 1


def test_malformed_body_is_not_cached(clock):
    responses = iter([httpx.Response(200, json="maintenance"), httpx.Response(200, json=TWENTY_STUDIES)])
    service, store, transport = make_service(lambda request: next(responses), clock)

    with pytest.raises(UpstreamFailureError):
        asyncio.run(service.search(diabetes()))

    assert store.count() == 0
    assert service.metrics.upstream_failures == 1

    outcome = asyncio.run(service.search(diabetes()))

    assert transport.calls == 2
    assert len(outcome.data["results"]) == 20
