"""ClinicalTrials.gov search provider.

Translates a ClinicalTrialsSearchRequest into a call to the public
studies API (v2) and normalises the answer. The API needs no
credential; an optional mirror URL acts as the fallback target.
"""

from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

from medigate.config import settings
from medigate.dto import ClinicalTrialsSearchRequest
from medigate.entities import UpstreamRequest, UpstreamTarget
from medigate.fingerprint import FingerprintBuilder
from medigate.transformers import transform_clinicaltrials

USER_AGENT = "MediGate/0.1 (medical research application)"

DEFAULT_STATUS = "RECRUITING"
DEFAULT_STUDY_TYPE = "INTERVENTIONAL"
DEFAULT_PAGE_SIZE = 20

RECENCY_DAYS = {
    "pastYear": 365,
    "past2Years": 2 * 365,
    "past5Years": 5 * 365,
}


class ClinicalTrialsProvider:
    """ClinicalTrials.gov implementation of the SearchProvider protocol.

    Example:
        ```python
        provider = ClinicalTrialsProvider.create()
        provider.fingerprint.build(provider.fingerprint_fields(request))
        # 'diabetes|default-filters|pageSize=20'
        ```
    """

    name = "clinicaltrials"

    def __init__(
        self,
        base_url: str | None = None,
        mirror_url: str | None = None,
        timeout: float | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the provider.

        Args:
            base_url: Studies endpoint. Defaults to settings.
            mirror_url: Optional fallback endpoint with the same API.
            timeout: Per-call timeout in seconds. Defaults to settings.
            today: Date source for recency filters; injectable for tests.
        """
        self._base_url = base_url or settings.clinicaltrials_base_url
        self._mirror_url = mirror_url
        self._timeout = timeout or settings.upstream_timeout
        self._today = today
        self.fingerprint = FingerprintBuilder(
            query_field="query",
            filter_defaults={
                "condition": None,
                "intervention": None,
                "phase": None,
                "status": DEFAULT_STATUS,
                "type": DEFAULT_STUDY_TYPE,
                "recency": None,
            },
            pagination_defaults={
                "pageSize": DEFAULT_PAGE_SIZE,
                "pageToken": None,
            },
        )

    @classmethod
    def create(cls) -> "ClinicalTrialsProvider":
        """Factory method using the configured endpoints."""
        return cls(
            base_url=settings.clinicaltrials_base_url,
            mirror_url=settings.clinicaltrials_mirror_url,
            timeout=settings.upstream_timeout,
        )

    def fingerprint_fields(self, request: ClinicalTrialsSearchRequest) -> dict[str, Any]:
        # The recency token is fingerprinted, not the start date derived from it
        return {
            "query": request.query,
            "condition": request.condition,
            "intervention": request.intervention,
            "phase": request.phase,
            "status": request.status,
            "type": request.type,
            "recency": request.filters.recency if request.filters else None,
            "pageSize": request.effective_page_size,
            "pageToken": request.page_token,
        }

    def targets(self) -> list[UpstreamTarget]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        targets = [
            UpstreamTarget(
                name="clinicaltrials",
                url=self._base_url,
                headers=headers,
                timeout=self._timeout,
            )
        ]
        if self._mirror_url:
            targets.append(
                UpstreamTarget(
                    name="clinicaltrials-mirror",
                    url=self._mirror_url,
                    headers=headers,
                    timeout=self._timeout,
                )
            )
        return targets

    def build_request(self, request: ClinicalTrialsSearchRequest) -> UpstreamRequest:
        params: dict[str, Any] = {
            "query.term": request.query.strip(),
            "filter.overallStatus": request.status or DEFAULT_STATUS,
            "pageSize": request.effective_page_size or DEFAULT_PAGE_SIZE,
            "format": "json",
        }
        if request.condition:
            params["query.cond"] = request.condition
        if request.intervention:
            params["query.intr"] = request.intervention

        # Phase, study type and start date go through the Essie expression filter
        advanced = [f"AREA[StudyType]{request.type or DEFAULT_STUDY_TYPE}"]
        if request.phase:
            advanced.append(f"AREA[Phase]{request.phase}")
        start = self.recency_start(request)
        if start is not None:
            advanced.append(f"AREA[StartDate]RANGE[{start.isoformat()},MAX]")
        params["filter.advanced"] = " AND ".join(advanced)

        if request.page_token:
            params["pageToken"] = request.page_token

        return UpstreamRequest(method="GET", params=params)

    def recency_start(self, request: ClinicalTrialsSearchRequest) -> date | None:
        """Earliest study start date implied by the recency filter."""
        recency = request.filters.recency if request.filters else None
        if recency is None:
            return None
        return self._today() - timedelta(days=RECENCY_DAYS[recency])

    def transform(self, payload: Any, request: ClinicalTrialsSearchRequest) -> dict[str, Any]:
        return transform_clinicaltrials(payload, request.query)
