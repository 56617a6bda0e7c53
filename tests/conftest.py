"""Shared test fixtures."""

from collections.abc import Callable

import httpx
import pytest


class FakeClock:
    """Manually advanced clock standing in for time.monotonic."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def clock():
    """A fake clock starting at t=1000s."""
    return FakeClock()


def study(nct_id: str = "NCT01234567", **overrides) -> dict:
    """A ClinicalTrials.gov v2 study with the fields the transformer reads."""
    protocol = {
        "identificationModule": {
            "nctId": nct_id,
            "briefTitle": "Metformin in Type 2 Diabetes",
            "officialTitle": "A Randomized Trial of Metformin in Adults With Type 2 Diabetes",
        },
        "statusModule": {
            "overallStatus": "RECRUITING",
            "startDateStruct": {"date": "2020-01-15", "type": "ACTUAL"},
            "completionDateStruct": {"date": "2023-07-15", "type": "ESTIMATED"},
            "studyFirstPostDateStruct": {"date": "2019-12-01"},
            "lastUpdatePostDateStruct": {"date": "2024-03-02"},
        },
        "sponsorCollaboratorsModule": {"leadSponsor": {"name": "University Hospital", "class": "OTHER"}},
        "descriptionModule": {"briefSummary": "Evaluates glycemic control with metformin."},
        "conditionsModule": {"conditions": ["Type 2 Diabetes"], "keywords": ["insulin resistance"]},
        "designModule": {
            "studyType": "INTERVENTIONAL",
            "phases": ["PHASE3"],
            "enrollmentInfo": {"count": 250, "type": "ESTIMATED"},
        },
        "armsInterventionsModule": {"interventions": [{"type": "DRUG", "name": "Metformin"}]},
        "outcomesModule": {"primaryOutcomes": [{"measure": "HbA1c change", "timeFrame": "12 months"}]},
        "eligibilityModule": {
            "sex": "ALL",
            "minimumAge": "18 Years",
            "maximumAge": "75 Years",
            "healthyVolunteers": False,
        },
        "contactsLocationsModule": {"locations": [{"city": "Boston"}, {"city": "Denver"}]},
    }
    protocol.update(overrides)
    return {"protocolSection": protocol, "hasResults": False}


def clinicaltrials_payload(*studies: dict, total: int | None = None, next_page: str | None = None) -> dict:
    studies = list(studies) or [study()]
    payload: dict = {"studies": studies, "totalCount": total if total is not None else len(studies)}
    if next_page:
        payload["nextPageToken"] = next_page
    return payload


def brave_payload() -> dict:
    return {
        "query": {"original": "statins medical", "altered": "statin medical"},
        "web": {
            "results": [
                {
                    "title": "Statins - Mayo Clinic",
                    "url": "https://www.mayoclinic.org/statins",
                    "description": "Statins lower cholesterol.",
                    "age": "2024-01-02",
                },
                {
                    "title": "Statin therapy",
                    "url": "https://www.nih.gov/statins",
                    "description": "NIH overview.",
                },
            ]
        },
        "mixed": {
            "main": [
                {"type": "web", "url": "https://www.mayoclinic.org/statins", "title": "duplicate"},
                {"type": "web", "url": "https://medlineplus.gov/statins.html", "title": "MedlinePlus"},
            ]
        },
    }
