#!/usr/bin/env python3
"""
Demo script for MediGate.

This script searches ClinicalTrials.gov (no API key needed) through the
cache-aside flow and shows the difference between a miss and a hit.
"""

import asyncio
import time

from medigate.dto import ClinicalTrialsSearchRequest
from medigate.errors import UpstreamError
from medigate.fingerprint import FingerprintBuilder
from medigate.repositories import ClinicalTrialsProvider, InMemoryCacheRepository
from medigate.services import SearchService


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_fingerprints() -> None:
    """Show which requests share a cache key."""
    print_section("Request Fingerprints")

    builder = FingerprintBuilder(
        query_field="query",
        filter_defaults={"status": "RECRUITING", "phase": None},
        pagination_defaults={"pageSize": 20, "pageToken": None},
    )

    requests = [
        {"query": "diabetes"},
        {"query": "  Diabetes ", "pageSize": 20, "requestId": "abc-123"},
        {"query": "diabetes", "status": "RECRUITING"},
        {"query": "diabetes", "phase": "PHASE3"},
        {"query": "diabetes", "pageToken": "NF0g5Jq"},
    ]

    for request in requests:
        print(f"  {request!s:<65} -> {builder.build(request)}")


async def demo_search_cache() -> None:
    """Search twice and compare upstream vs cached latency."""
    print_section("Cache-Aside Search (ClinicalTrials.gov)")

    service = SearchService.create(
        provider=ClinicalTrialsProvider.create(),
        store=InMemoryCacheRepository.create(name="clinicaltrials", ttl=300, max_entries=10),
    )

    queries = ["diabetes", "diabetes", "Diabetes ", "asthma"]

    for query in queries:
        request = ClinicalTrialsSearchRequest.model_validate({"q": query, "pageSize": 5})
        start = time.time()
        outcome = await service.search(request)
        duration = (time.time() - start) * 1000

        label = "✓ CACHE HIT" if outcome.cache_hit else "✗ Cache miss"
        print(f"\n  Query: '{query}'")
        print(f"  {label} ({duration:.2f}ms)")
        print(f"  Key: {outcome.fingerprint}")
        print(f"  Results: {len(outcome.data['results'])} of {outcome.data['totalCount']}")
        for result in outcome.data["results"][:2]:
            print(f"    - {result['nctId']}: {result['title'][:55]}")

    print("\n📊 Stats:")
    stats = service.get_stats()
    print(f"  Store size: {stats['store']['size']}")
    print(f"  Hit rate: {stats['requests']['hit_rate']:.2%}")
    print(f"  Avg upstream time: {stats['requests']['avg_upstream_time_ms']:.2f}ms")


def main() -> None:
    """Run all demos."""
    print("\n🚀 MediGate Demo")
    print("=" * 70)

    try:
        demo_fingerprints()
        asyncio.run(demo_search_cache())

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except UpstreamError as e:
        print(f"\n❌ Upstream error ({e.category}): {e.message}")
        print("\nCheck your network connection or set CLINICALTRIALS_BASE_URL.")


if __name__ == "__main__":
    main()
