"""Error taxonomy for the gateway.

Every error the gateway can surface maps to a category string and an
HTTP status. Handlers never inspect messages; they rely on the class.

    ValidationError        400  malformed or missing input, never retried
    UpstreamTimeoutError   504  outbound call exceeded its budget
    UpstreamFailureError   502  non-2xx status or transport failure
    CacheFailure           --   internal only, degrades to a cache miss
    UnknownError           500  anything uncategorised
"""

from typing import Any


class GatewayError(Exception):
    """Base class for errors raised by gateway components."""

    category = "internal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Inbound request is malformed or missing a required field."""

    category = "validation_error"
    status_code = 400


class UpstreamError(GatewayError):
    """Common base for failures of an outbound call.

    Attributes:
        target: Name of the upstream target that produced the error.
        upstream_status: HTTP status returned by the upstream, if any.
        attempts: Every attempt made before giving up (set by the fallback loop).
    """

    def __init__(
        self,
        message: str,
        target: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.target = target
        self.upstream_status = upstream_status
        self.attempts: list[Any] = []


class UpstreamTimeoutError(UpstreamError):
    """Outbound call exceeded its timeout."""

    category = "upstream_timeout"
    status_code = 504


class UpstreamFailureError(UpstreamError):
    """Outbound call returned a non-2xx status or could not be sent."""

    category = "upstream_failure"
    status_code = 502


class CacheFailure(GatewayError):
    """Cache backend failed. Logged, never surfaced to the caller."""

    category = "cache_failure"


class UnknownError(GatewayError):
    """Uncategorised failure. The message returned to clients is generic."""

    category = "internal_error"
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)
