"""Upstream call domain entities."""

from dataclasses import dataclass, field
from typing import Any, Literal

ResponseType = Literal["json", "bytes"]


@dataclass(frozen=True)
class UpstreamTarget:
    """One reachable endpoint/credential pair.

    Targets are built per request from configuration, primary first,
    and tried in order by the upstream client.

    Attributes:
        name: Identifier used in logs and attempt records (never the credential)
        url: Absolute URL of the endpoint
        headers: Headers sent with every call, including the credential
        timeout: Seconds allowed for one call against this target
    """

    name: str
    url: str
    headers: dict[str, str] = field(default_factory=dict, repr=False)
    timeout: float = 15.0


@dataclass(frozen=True)
class UpstreamRequest:
    """Target-independent description of an outbound call."""

    method: str = "GET"
    params: dict[str, Any] | None = None
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    response_type: ResponseType = "json"


@dataclass(frozen=True)
class UpstreamResponse:
    """Successful (2xx) response from a single target."""

    target: str
    status_code: int
    value: Any
    elapsed_ms: float


@dataclass(frozen=True)
class UpstreamAttempt:
    """Record of one call against one target."""

    target: str
    outcome: Literal["success", "timeout", "failure"]
    elapsed_ms: float
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class UpstreamResult:
    """Outcome of a fallback chain that ended in success."""

    value: Any
    target: str
    status_code: int
    attempts: list[UpstreamAttempt]

    @property
    def fallback_used(self) -> bool:
        return len(self.attempts) > 1

    @property
    def elapsed_ms(self) -> float:
        return sum(attempt.elapsed_ms for attempt in self.attempts)
