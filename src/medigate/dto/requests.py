"""Request DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TrialPhase = Literal["EARLY_PHASE1", "PHASE1", "PHASE2", "PHASE3", "PHASE4"]
TrialStatus = Literal[
    "ACTIVE_NOT_RECRUITING",
    "COMPLETED",
    "ENROLLING_BY_INVITATION",
    "NOT_YET_RECRUITING",
    "RECRUITING",
    "SUSPENDED",
    "TERMINATED",
    "WITHDRAWN",
]
StudyType = Literal["INTERVENTIONAL", "OBSERVATIONAL", "PATIENT_REGISTRY"]
Speaker = Literal["host", "expert"]


class SearchRequestBase(BaseModel):
    """Common shape of search requests: a query plus optional fields.

    The query is accepted as either ``q`` or ``query``. Unknown fields
    (client timestamps, request ids, ...) are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: str = Field(..., alias="q", description="Free-text search query", min_length=1)

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Search query is required")
        return value


class ClinicalTrialsFilters(BaseModel):
    """Optional filter block sent by the frontend."""

    model_config = ConfigDict(extra="ignore")

    recency: Literal["pastYear", "past2Years", "past5Years"] | None = None
    limit: int | None = Field(None, ge=1, le=100, description="Overrides pageSize")


class ClinicalTrialsSearchRequest(SearchRequestBase):
    """Request DTO for ClinicalTrials.gov search.

    Unset status/type fall back to RECRUITING/INTERVENTIONAL.
    """

    condition: str | None = None
    intervention: str | None = None
    phase: TrialPhase | None = None
    status: TrialStatus | None = None
    type: StudyType | None = None
    page_size: int | None = Field(None, alias="pageSize", ge=1, le=100)
    page_token: str | None = Field(None, alias="pageToken")
    filters: ClinicalTrialsFilters | None = None

    @property
    def effective_page_size(self) -> int | None:
        if self.filters and self.filters.limit:
            return self.filters.limit
        return self.page_size


class BraveFilters(BaseModel):
    """Optional filter block for web search."""

    model_config = ConfigDict(extra="ignore")

    limit: int | None = Field(None, ge=1, le=20)
    offset: int | None = Field(None, ge=0, le=9)
    recency: Literal["pastDay", "pastWeek", "pastMonth"] | None = None


class BraveSearchRequest(SearchRequestBase):
    """Request DTO for Brave web search."""

    filters: BraveFilters | None = None


class SpeechRequest(BaseModel):
    """Request DTO for synthesising one piece of text."""

    model_config = ConfigDict(extra="ignore")

    text: str = Field(..., min_length=1, description="Text to synthesise (truncated to the provider limit)")
    voice: Speaker = Field("host", description="Speaker role whose voice is used")


class PodcastSegment(BaseModel):
    """One line of a podcast script."""

    speaker: Speaker = "host"
    text: str = Field(..., min_length=1)


class PodcastAudioRequest(BaseModel):
    """Request DTO for rendering a whole script into one audio file."""

    model_config = ConfigDict(extra="ignore")

    segments: list[PodcastSegment] = Field(..., min_length=1, max_length=200)
