"""Brave web search provider.

One upstream target per configured API key, tried in the configured
order. Queries without a medical keyword get " medical" appended so
results lean towards clinical sources.
"""

from typing import Any

from medigate.config import settings
from medigate.dto import BraveSearchRequest
from medigate.entities import UpstreamRequest, UpstreamTarget
from medigate.fingerprint import FingerprintBuilder
from medigate.transformers import transform_brave

MEDICAL_KEYWORDS = (
    "medical",
    "medicine",
    "clinical",
    "patient",
    "treatment",
    "diagnosis",
    "study",
    "research",
)

FRESHNESS = {
    "pastDay": "pd",
    "pastWeek": "pw",
    "pastMonth": "pm",
}

DEFAULT_COUNT = 20
DEFAULT_OFFSET = 0


def enhance_query(query: str) -> str:
    """Append a medical context word unless one is already present."""
    query = query.strip()
    if any(keyword in query.lower() for keyword in MEDICAL_KEYWORDS):
        return query
    return f"{query} medical"


class BraveSearchProvider:
    """Brave Search implementation of the SearchProvider protocol."""

    name = "brave"

    def __init__(
        self,
        api_keys: tuple[str, ...] | list[str] | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_keys: Subscription tokens, primary first. Defaults to settings.
            base_url: Web search endpoint. Defaults to settings.
            timeout: Per-call timeout in seconds. Defaults to settings.
        """
        self._api_keys = tuple(api_keys if api_keys is not None else settings.brave_api_keys)
        self._base_url = base_url or settings.brave_base_url
        self._timeout = timeout or settings.upstream_timeout
        self.fingerprint = FingerprintBuilder(
            query_field="query",
            filter_defaults={"recency": None},
            pagination_defaults={"count": DEFAULT_COUNT, "offset": DEFAULT_OFFSET},
        )

    @classmethod
    def create(cls) -> "BraveSearchProvider":
        """Factory method using the configured keys."""
        return cls(api_keys=settings.brave_api_keys)

    def fingerprint_fields(self, request: BraveSearchRequest) -> dict[str, Any]:
        filters = request.filters
        return {
            "query": request.query,
            "recency": filters.recency if filters else None,
            "count": filters.limit if filters else None,
            "offset": filters.offset if filters else None,
        }

    def targets(self) -> list[UpstreamTarget]:
        return [
            UpstreamTarget(
                name=f"brave-key-{index}",
                url=self._base_url,
                headers={"Accept": "application/json", "X-Subscription-Token": key},
                timeout=self._timeout,
            )
            for index, key in enumerate(self._api_keys, start=1)
        ]

    def build_request(self, request: BraveSearchRequest) -> UpstreamRequest:
        filters = request.filters
        params: dict[str, Any] = {
            "q": enhance_query(request.query),
            "country": "US",
            "search_lang": "en",
            "ui_lang": "en",
            "count": (filters.limit if filters else None) or DEFAULT_COUNT,
            "offset": (filters.offset if filters else None) or DEFAULT_OFFSET,
            "safesearch": "moderate",
            "text_decorations": True,
            "spellcheck": True,
        }
        if filters and filters.recency:
            params["freshness"] = FRESHNESS[filters.recency]
        return UpstreamRequest(method="GET", params=params)

    def transform(self, payload: Any, request: BraveSearchRequest) -> dict[str, Any]:
        return transform_brave(payload, request.query)
