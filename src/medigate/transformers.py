"""Response transformers.

Pure functions from upstream payloads to the gateway's result envelope::

    {"results": [...], "totalCount": int, "query": str, "provider": str, ...}

Nothing here raises on missing or null upstream fields: a derived
field whose inputs are absent comes out as None, and a study or result
that cannot be parsed at all is skipped. A payload that is not a
response object of the expected shape raises UpstreamFailureError, so
it is reported as a failed call and never cached.
"""

import re
from typing import Any
from urllib.parse import urlparse

import pydantic

from medigate.dto.upstream import (
    BravePayload,
    BraveResult,
    ClinicalTrialsPayload,
    ProtocolSection,
    Study,
    UpstreamModel,
)
from medigate.errors import UpstreamFailureError
from medigate.logger import logger

CLINICALTRIALS_STUDY_URL = "https://clinicaltrials.gov/study/"

# Upper bounds (exclusive) of each enrollment bucket; anything above is very-large
ENROLLMENT_BUCKETS: tuple[tuple[int, str], ...] = (
    (100, "small"),
    (500, "medium"),
    (1000, "large"),
)

SPECIALTY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "cardiology": ("heart", "cardiac", "cardiovascular", "myocardial", "coronary", "arrhythmia", "hypertension"),
    "oncology": ("cancer", "tumor", "neoplasm", "carcinoma", "sarcoma", "lymphoma", "leukemia", "melanoma"),
    "neurology": ("brain", "neurological", "alzheimer", "parkinson", "stroke", "epilepsy", "multiple sclerosis"),
    "endocrinology": ("diabetes", "thyroid", "hormone", "endocrine", "insulin", "metabolic"),
    "psychiatry": ("depression", "anxiety", "bipolar", "schizophrenia", "ptsd", "mental health"),
    "rheumatology": ("arthritis", "rheumatoid", "lupus", "autoimmune", "joint", "inflammatory"),
    "infectious_disease": ("infection", "viral", "bacterial", "antibiotic", "vaccine", "covid", "hiv"),
    "pulmonology": ("lung", "respiratory", "asthma", "copd", "pneumonia", "pulmonary"),
    "gastroenterology": ("digestive", "gastrointestinal", "liver", "stomach", "intestinal", "crohn"),
    "nephrology": ("kidney", "renal", "dialysis", "nephritis"),
    "ob-gyn": ("pregnancy", "obstetric", "gynecologic", "reproductive", "fertility", "contraception"),
}

PHASE_EVIDENCE_LEVELS = {
    "PHASE4": "high",
    "PHASE3": "high",
    "PHASE2": "moderate",
    "PHASE1": "low",
    "EARLY_PHASE1": "low",
}

_PARTIAL_DATE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?")


def _parse(model: type[UpstreamModel], raw: Any) -> Any | None:
    """Validate raw upstream data, returning None instead of raising."""
    if raw is None:
        return None
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as e:
        logger.warning(
            "Skipping malformed upstream item",
            extra={"schema": model.__name__, "error_count": e.error_count()},
        )
        return None


def _parse_payload(model: type[UpstreamModel], raw: Any, provider: str) -> Any:
    """Validate a top-level payload; a malformed one fails the call."""
    if not isinstance(raw, dict):
        raise UpstreamFailureError(
            f"{provider} returned a malformed response body", target=provider
        )
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as e:
        raise UpstreamFailureError(
            f"{provider} returned a malformed response body", target=provider
        ) from e


def enrollment_category(count: int | None) -> str | None:
    """Bucket an enrollment count into small/medium/large/very-large."""
    if count is None or count < 0:
        return None
    for upper, label in ENROLLMENT_BUCKETS:
        if count < upper:
            return label
    return "very-large"


def _month_index(value: str | None) -> tuple[int, int] | None:
    """Parse ``YYYY-MM`` or ``YYYY-MM-DD`` into (months since year 0, day)."""
    if not value:
        return None
    match = _PARTIAL_DATE.match(value.strip())
    if match is None:
        return None
    year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3) or 1)
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return year * 12 + (month - 1), day


def duration_label(start: str | None, end: str | None) -> str | None:
    """Elapsed time between two dates, in months under a year, else years.

    Examples:
        ("2020-01", "2020-09")       -> "8 months"
        ("2020-01-15", "2023-07-15") -> "3.5 years"
    """
    start_index = _month_index(start)
    end_index = _month_index(end)
    if start_index is None or end_index is None:
        return None

    months = end_index[0] - start_index[0]
    if end_index[1] < start_index[1]:
        months -= 1
    if months < 0:
        return None

    if months < 12:
        return f"{months} month" if months == 1 else f"{months} months"

    years = round(months / 12, 1)
    return f"{years:g} year" if years == 1 else f"{years:g} years"


def specialty_from_terms(terms: list[str]) -> str:
    """First specialty whose keywords occur in the conditions/keywords."""
    text = " ".join(terms).lower()
    for specialty, keywords in SPECIALTY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return specialty
    return "general"


def evidence_level_from_phases(phases: list[str] | None) -> str:
    if not phases:
        return "other"
    return PHASE_EVIDENCE_LEVELS.get(phases[0], "other")


def _trial_snippet(section: ProtocolSection) -> str:
    summary = (section.descriptionModule and section.descriptionModule.briefSummary) or ""
    conditions = (section.conditionsModule and section.conditionsModule.conditions) or []
    phases = (section.designModule and section.designModule.phases) or []

    snippet = summary[:200]
    if conditions:
        snippet += f" Conditions: {', '.join(conditions[:3])}."
    if phases:
        snippet += f" Phase: {phases[0].replace('PHASE', 'Phase ')}."
    return snippet.strip() or "No summary available"


def _date(struct: Any) -> str | None:
    return struct.date if struct is not None else None


def transform_study(study: Study, index: int) -> dict[str, Any] | None:
    """Normalise one ClinicalTrials.gov study. Studies without an NCT ID are skipped."""
    section = study.protocolSection or ProtocolSection()
    ident = section.identificationModule
    if ident is None or not ident.nctId:
        return None

    status = section.statusModule
    design = section.designModule
    conditions = section.conditionsModule
    sponsor = section.sponsorCollaboratorsModule
    eligibility = section.eligibilityModule
    outcomes = section.outcomesModule
    interventions = section.armsInterventionsModule and section.armsInterventionsModule.interventions
    locations = section.contactsLocationsModule and section.contactsLocationsModule.locations

    condition_list = (conditions and conditions.conditions) or []
    keyword_list = (conditions and conditions.keywords) or []
    phases = (design and design.phases) or []
    enrollment = design.enrollmentInfo.count if design and design.enrollmentInfo else None
    start_date = _date(status and status.startDateStruct)
    completion_date = _date(status and status.completionDateStruct) or _date(
        status and status.primaryCompletionDateStruct
    )
    lead = sponsor.leadSponsor if sponsor else None
    primary_outcomes = (outcomes and outcomes.primaryOutcomes) or []

    return {
        "id": f"ct-{ident.nctId}",
        "title": ident.briefTitle or ident.officialTitle or "Untitled Study",
        "url": f"{CLINICALTRIALS_STUDY_URL}{ident.nctId}",
        "snippet": _trial_snippet(section),
        "source": "clinicaltrials.gov",
        "provider": "clinicaltrials",
        "relevanceScore": round(max(1.0 - index * 0.02, 0.0), 4),
        "evidenceLevel": evidence_level_from_phases(phases),
        "specialty": specialty_from_terms(condition_list + keyword_list),
        "contentType": "clinical_trial",
        "publicationDate": _date(status and status.studyFirstPostDateStruct),
        "nctId": ident.nctId,
        "officialTitle": ident.officialTitle,
        "overallStatus": status.overallStatus if status else None,
        "lastUpdateDate": _date(status and status.lastUpdatePostDateStruct),
        "startDate": start_date,
        "completionDate": completion_date,
        "durationLabel": duration_label(start_date, completion_date),
        "leadSponsor": lead.name if lead else None,
        "studyType": design.studyType if design else None,
        "phases": phases,
        "conditions": condition_list,
        "keywords": keyword_list,
        "interventions": [i.name for i in interventions or [] if i.name],
        "primaryOutcome": primary_outcomes[0].measure if primary_outcomes else None,
        "sex": eligibility.sex if eligibility else None,
        "minimumAge": eligibility.minimumAge if eligibility else None,
        "maximumAge": eligibility.maximumAge if eligibility else None,
        "healthyVolunteers": eligibility.healthyVolunteers if eligibility else None,
        "enrollmentCount": enrollment,
        "enrollmentCategory": enrollment_category(enrollment),
        "locationCount": len(locations or []),
        "hasResults": bool(study.hasResults),
    }


def transform_clinicaltrials(raw: Any, query: str) -> dict[str, Any]:
    """Normalise a ClinicalTrials.gov studies response.

    Raises:
        UpstreamFailureError: If the body is not a studies response object
    """
    payload = _parse_payload(ClinicalTrialsPayload, raw, "clinicaltrials")

    results = []
    for raw_study in payload.studies or []:
        study = _parse(Study, raw_study)
        if study is None:
            continue
        item = transform_study(study, len(results))
        if item is not None:
            results.append(item)

    return {
        "results": results,
        "totalCount": payload.totalCount if payload.totalCount is not None else len(results),
        "query": query,
        "provider": "clinicaltrials",
        "nextPageToken": payload.nextPageToken,
    }


def _hostname(url: str) -> str | None:
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def _brave_item(result: BraveResult, item_id: str, score: float) -> dict[str, Any]:
    return {
        "id": item_id,
        "title": result.title,
        "url": result.url,
        "snippet": result.description,
        "source": _hostname(result.url or ""),
        "provider": "brave",
        "relevanceScore": round(min(max(score, 0.0), 1.0), 4),
        "evidenceLevel": "web_article",
        "publicationDate": result.age,
        "specialty": "general",
        "contentType": "web_article",
    }


def transform_brave(raw: Any, query: str) -> dict[str, Any]:
    """Normalise a Brave web search response.

    Web results come first; mixed results are appended unless their URL
    is already present.

    Raises:
        UpstreamFailureError: If the body is not a search response object
    """
    payload = _parse_payload(BravePayload, raw, "brave")

    results: list[dict[str, Any]] = []
    seen: set[str] = set()

    web_results = (payload.web and payload.web.results) or []
    for index, raw_result in enumerate(web_results):
        result = _parse(BraveResult, raw_result)
        if result is None or not result.url:
            continue
        results.append(_brave_item(result, f"brave-{index}", 1.0 - index * 0.05))
        seen.add(result.url)

    mixed_results = (payload.mixed and payload.mixed.main) or []
    for index, raw_result in enumerate(mixed_results):
        result = _parse(BraveResult, raw_result)
        if result is None or not result.url or result.url in seen:
            continue
        results.append(_brave_item(result, f"brave-mixed-{index}", 1.1 - index * 0.05))
        seen.add(result.url)

    original = payload.query.original if payload.query else None
    altered = payload.query.altered if payload.query else None

    return {
        "results": results,
        "totalCount": len(results),
        "query": original or query,
        "queryAltered": bool(altered) and altered != original,
        "provider": "brave",
    }
