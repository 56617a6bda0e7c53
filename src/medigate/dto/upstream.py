"""Schemas of the third-party payloads the gateway consumes.

Upstream schemas are not contractually stable, so every field here is
optional and unknown fields are ignored. Transformers read these models
instead of probing raw dictionaries.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UpstreamModel(BaseModel):
    """Lenient base: unknown fields are dropped, nothing is required."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ClinicalTrials.gov API v2 (/api/v2/studies)


class DateStruct(UpstreamModel):
    date: str | None = None
    type: str | None = None


class IdentificationModule(UpstreamModel):
    nctId: str | None = None
    briefTitle: str | None = None
    officialTitle: str | None = None


class StatusModule(UpstreamModel):
    overallStatus: str | None = None
    startDateStruct: DateStruct | None = None
    primaryCompletionDateStruct: DateStruct | None = None
    completionDateStruct: DateStruct | None = None
    studyFirstPostDateStruct: DateStruct | None = None
    lastUpdatePostDateStruct: DateStruct | None = None


class Sponsor(UpstreamModel):
    name: str | None = None
    sponsor_class: str | None = Field(None, alias="class")


class SponsorCollaboratorsModule(UpstreamModel):
    leadSponsor: Sponsor | None = None
    collaborators: list[Sponsor] | None = None


class DescriptionModule(UpstreamModel):
    briefSummary: str | None = None
    detailedDescription: str | None = None


class ConditionsModule(UpstreamModel):
    conditions: list[str] | None = None
    keywords: list[str] | None = None


class EnrollmentInfo(UpstreamModel):
    count: int | None = None
    type: str | None = None


class DesignModule(UpstreamModel):
    studyType: str | None = None
    phases: list[str] | None = None
    enrollmentInfo: EnrollmentInfo | None = None


class Intervention(UpstreamModel):
    type: str | None = None
    name: str | None = None
    description: str | None = None


class ArmsInterventionsModule(UpstreamModel):
    interventions: list[Intervention] | None = None


class Outcome(UpstreamModel):
    measure: str | None = None
    description: str | None = None
    timeFrame: str | None = None


class OutcomesModule(UpstreamModel):
    primaryOutcomes: list[Outcome] | None = None
    secondaryOutcomes: list[Outcome] | None = None


class EligibilityModule(UpstreamModel):
    sex: str | None = None
    minimumAge: str | None = None
    maximumAge: str | None = None
    healthyVolunteers: bool | None = None


class Location(UpstreamModel):
    facility: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    status: str | None = None


class ContactsLocationsModule(UpstreamModel):
    locations: list[Location] | None = None


class ProtocolSection(UpstreamModel):
    identificationModule: IdentificationModule | None = None
    statusModule: StatusModule | None = None
    sponsorCollaboratorsModule: SponsorCollaboratorsModule | None = None
    descriptionModule: DescriptionModule | None = None
    conditionsModule: ConditionsModule | None = None
    designModule: DesignModule | None = None
    armsInterventionsModule: ArmsInterventionsModule | None = None
    outcomesModule: OutcomesModule | None = None
    eligibilityModule: EligibilityModule | None = None
    contactsLocationsModule: ContactsLocationsModule | None = None


class Study(UpstreamModel):
    protocolSection: ProtocolSection | None = None
    hasResults: bool | None = None


class ClinicalTrialsPayload(UpstreamModel):
    """Top level of a studies search response.

    ``studies`` is kept raw so one malformed study cannot reject the page.
    """

    studies: list[Any] | None = None
    totalCount: int | None = None
    nextPageToken: str | None = None


# Brave Search API (/res/v1/web/search). Result lists stay raw, like studies.


class BraveQuery(UpstreamModel):
    original: str | None = None
    altered: str | None = None


class BraveResult(UpstreamModel):
    type: str | None = None
    title: str | None = None
    url: str | None = None
    description: str | None = None
    age: str | None = None
    language: str | None = None


class BraveWeb(UpstreamModel):
    results: list[Any] | None = None


class BraveMixed(UpstreamModel):
    main: list[Any] | None = None


class BravePayload(UpstreamModel):
    query: BraveQuery | None = None
    web: BraveWeb | None = None
    mixed: BraveMixed | None = None
