"""
Tests for upstream payload transformers.
"""

import pytest

from conftest import brave_payload, clinicaltrials_payload, study
from medigate.errors import UpstreamFailureError
from medigate.transformers import (
    duration_label,
    enrollment_category,
    evidence_level_from_phases,
    specialty_from_terms,
    transform_brave,
    transform_clinicaltrials,
)


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, "small"),
        (99, "small"),
        (100, "medium"),
        (499, "medium"),
        (500, "large"),
        (999, "large"),
        (1000, "very-large"),
        (25000, "very-large"),
        (None, None),
        (-1, None),
    ],
)
def test_enrollment_category(count, expected):
    assert enrollment_category(count) == expected


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        ("2020-01", "2020-09", "8 months"),
        ("2020-01-15", "2020-02-15", "1 month"),
        ("2020-01-15", "2020-02-14", "0 months"),
        ("2020-01", "2021-01", "1 year"),
        ("2020-01-15", "2023-07-15", "3.5 years"),
        ("2020-01", "2022-03", "2.2 years"),
        (None, "2022-03", None),
        ("2020-01", None, None),
        ("someday", "2022-03", None),
        ("2022-03", "2020-01", None),
    ],
)
def test_duration_label(start, end, expected):
    assert duration_label(start, end) == expected


def test_specialty_and_evidence():
    assert specialty_from_terms(["Type 2 Diabetes"]) == "endocrinology"
    assert specialty_from_terms(["Breast Cancer"]) == "oncology"
    assert specialty_from_terms([]) == "general"
    assert evidence_level_from_phases(["PHASE3"]) == "high"
    assert evidence_level_from_phases(["PHASE2", "PHASE3"]) == "moderate"
    assert evidence_level_from_phases(["NA"]) == "other"
    assert evidence_level_from_phases(None) == "other"


class TestTransformClinicalTrials:
    def test_envelope(self):
        data = transform_clinicaltrials(clinicaltrials_payload(total=42, next_page="tok"), "diabetes")

        assert data["provider"] == "clinicaltrials"
        assert data["query"] == "diabetes"
        assert data["totalCount"] == 42
        assert data["nextPageToken"] == "tok"
        assert len(data["results"]) == 1

    def test_result_fields(self):
        result = transform_clinicaltrials(clinicaltrials_payload(), "diabetes")["results"][0]

        assert result["id"] == "ct-NCT01234567"
        assert result["url"] == "https://clinicaltrials.gov/study/NCT01234567"
        assert result["title"] == "Metformin in Type 2 Diabetes"
        assert result["relevanceScore"] == 1.0
        assert result["evidenceLevel"] == "high"
        assert result["specialty"] == "endocrinology"
        assert result["leadSponsor"] == "University Hospital"
        assert result["interventions"] == ["Metformin"]
        assert result["primaryOutcome"] == "HbA1c change"
        assert result["enrollmentCount"] == 250
        assert result["enrollmentCategory"] == "medium"
        assert result["durationLabel"] == "3.5 years"
        assert result["locationCount"] == 2
        assert result["hasResults"] is False
        assert "Conditions: Type 2 Diabetes." in result["snippet"]

    def test_relevance_decreases(self):
        payload = clinicaltrials_payload(study("NCT00000001"), study("NCT00000002"))
        scores = [r["relevanceScore"] for r in transform_clinicaltrials(payload, "x")["results"]]
        assert scores == [1.0, 0.98]

    def test_missing_sub_fields_yield_none(self):
        bare = {"protocolSection": {"identificationModule": {"nctId": "NCT09999999"}}}

        result = transform_clinicaltrials({"studies": [bare]}, "x")["results"][0]

        assert result["enrollmentCategory"] is None
        assert result["durationLabel"] is None
        assert result["leadSponsor"] is None
        assert result["title"] == "Untitled Study"
        assert result["snippet"] == "No summary available"
        assert result["locationCount"] == 0

    def test_null_sub_fields_yield_none(self):
        nulls = study(designModule=None, statusModule={"startDateStruct": None})

        result = transform_clinicaltrials(clinicaltrials_payload(nulls), "x")["results"][0]

        assert result["enrollmentCount"] is None
        assert result["enrollmentCategory"] is None
        assert result["durationLabel"] is None

    def test_unusable_studies_are_skipped(self):
        payload = {"studies": [{"protocolSection": {}}, {"protocolSection": "garbage"}, study()]}

        data = transform_clinicaltrials(payload, "x")

        assert [r["nctId"] for r in data["results"]] == ["NCT01234567"]
        assert data["totalCount"] == 1

    def test_null_study_does_not_empty_the_page(self):
        data = transform_clinicaltrials({"studies": [study(), None, "oops"], "totalCount": 2}, "x")

        assert [r["nctId"] for r in data["results"]] == ["NCT01234567"]
        assert data["totalCount"] == 2

    def test_empty_payload(self):
        data = transform_clinicaltrials({}, "x")

        assert data["results"] == []
        assert data["totalCount"] == 0

    @pytest.mark.parametrize("raw", [None, "maintenance", [], {"studies": "oops"}, {"totalCount": "many"}])
    def test_malformed_payload_fails(self, raw):
        with pytest.raises(UpstreamFailureError):
            transform_clinicaltrials(raw, "x")


class TestTransformBrave:
    def test_web_then_deduplicated_mixed(self):
        data = transform_brave(brave_payload(), "statins")

        urls = [r["url"] for r in data["results"]]
        assert urls == [
            "https://www.mayoclinic.org/statins",
            "https://www.nih.gov/statins",
            "https://medlineplus.gov/statins.html",
        ]
        assert data["totalCount"] == 3
        assert data["provider"] == "brave"

    def test_source_and_scores(self):
        results = transform_brave(brave_payload(), "statins")["results"]

        assert results[0]["source"] == "www.mayoclinic.org"
        assert results[0]["relevanceScore"] == 1.0
        assert results[1]["relevanceScore"] == 0.95
        assert all(0.0 <= r["relevanceScore"] <= 1.0 for r in results)

    def test_query_altered(self):
        data = transform_brave(brave_payload(), "statins")

        assert data["query"] == "statins medical"
        assert data["queryAltered"] is True

    def test_missing_sections(self):
        data = transform_brave({"web": None}, "statins")

        assert data["results"] == []
        assert data["query"] == "statins"
        assert data["queryAltered"] is False

    def test_null_result_is_skipped(self):
        raw = {"web": {"results": [{"title": "Statins", "url": "https://www.nih.gov/statins"}, None]}}

        data = transform_brave(raw, "statins")

        assert [r["url"] for r in data["results"]] == ["https://www.nih.gov/statins"]

    @pytest.mark.parametrize("raw", [None, "maintenance", {"web": {"results": "oops"}}])
    def test_malformed_payload_fails(self, raw):
        with pytest.raises(UpstreamFailureError):
            transform_brave(raw, "statins")
