"""Outbound HTTP client with ordered fallback targets.

This is the only component allowed to retry. A retry is never a second
call to the same target: it is the next target in the list (secondary
API key, fallback voice, mirror endpoint).
"""

import asyncio
import dataclasses
import time

import httpx

from medigate.entities import (
    UpstreamAttempt,
    UpstreamRequest,
    UpstreamResponse,
    UpstreamResult,
    UpstreamTarget,
)
from medigate.errors import UpstreamError, UpstreamFailureError, UpstreamTimeoutError
from medigate.logger import logger

# Longest upstream error body echoed into an error message
_ERROR_BODY_LIMIT = 200


def truncate_text(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters. No word-boundary awareness."""
    if len(text) <= limit:
        return text
    return text[:limit]


class UpstreamClient:
    """Calls third-party APIs through an ordered list of targets.

    Example:
        ```python
        client = UpstreamClient()
        result = await client.call_with_fallback(
            [
                UpstreamTarget(name="brave-key-1", url=url, headers={...}),
                UpstreamTarget(name="brave-key-2", url=url, headers={...}),
            ],
            UpstreamRequest(params={"q": "diabetes"}),
        )
        result.value       # parsed JSON of the first successful target
        result.attempts    # one UpstreamAttempt per target tried
        ```
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        max_input_chars: int | None = None,
        text_field: str = "text",
    ) -> None:
        """Initialize the upstream client.

        Args:
            http_client: Shared httpx client. If None, one is created lazily.
            max_input_chars: Provider input limit; the text field of the JSON
                body is truncated to this length before any attempt.
            text_field: Name of the JSON body field subject to truncation.
        """
        self._client = http_client
        self._owns_client = http_client is None
        self._max_input_chars = max_input_chars
        self._text_field = text_field

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    def prepare(self, request: UpstreamRequest) -> UpstreamRequest:
        """Apply the input size limit to the request body."""
        if self._max_input_chars is None or not request.body:
            return request
        text = request.body.get(self._text_field)
        if not isinstance(text, str) or len(text) <= self._max_input_chars:
            return request

        logger.info(
            "Truncating upstream input",
            extra={"original_chars": len(text), "max_chars": self._max_input_chars},
        )
        body = {**request.body, self._text_field: truncate_text(text, self._max_input_chars)}
        return dataclasses.replace(request, body=body)

    async def call(self, target: UpstreamTarget, request: UpstreamRequest) -> UpstreamResponse:
        """Perform one call against one target.

        Args:
            target: The endpoint/credential to call
            request: What to send

        Returns:
            UpstreamResponse for a 2xx answer

        Raises:
            UpstreamTimeoutError: If the call exceeds `target.timeout`
            UpstreamFailureError: On a non-2xx status, a transport error or
                an undecodable JSON body
        """
        start_time = time.monotonic()
        try:
            # wait_for cancels the in-flight request on expiry; its result is dropped
            response = await asyncio.wait_for(
                self.client.request(
                    request.method,
                    target.url,
                    params=request.params,
                    json=request.body,
                    headers={**request.headers, **target.headers},
                    timeout=target.timeout,
                ),
                timeout=target.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(
                f"{target.name} did not answer within {target.timeout:g}s",
                target=target.name,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFailureError(
                f"{target.name} request failed: {e}",
                target=target.name,
            ) from e

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if not response.is_success:
            raise UpstreamFailureError(
                f"{target.name} returned {response.status_code}: "
                f"{response.text[:_ERROR_BODY_LIMIT]}",
                target=target.name,
                upstream_status=response.status_code,
            )

        if request.response_type == "bytes":
            value = response.content
        else:
            try:
                value = response.json()
            except ValueError as e:
                raise UpstreamFailureError(
                    f"{target.name} returned a body that is not JSON",
                    target=target.name,
                    upstream_status=response.status_code,
                ) from e

        return UpstreamResponse(
            target=target.name,
            status_code=response.status_code,
            value=value,
            elapsed_ms=elapsed_ms,
        )

    async def call_with_fallback(
        self,
        targets: list[UpstreamTarget],
        request: UpstreamRequest,
    ) -> UpstreamResult:
        """Try each target in order and return the first success.

        Args:
            targets: Ordered targets, primary first
            request: What to send (truncated once, before the first attempt)

        Returns:
            UpstreamResult with the value and every attempt made

        Raises:
            UpstreamTimeoutError | UpstreamFailureError: The last target's
                error, with `attempts` listing all len(targets) attempts
        """
        if not targets:
            raise UpstreamFailureError("No upstream target is configured")

        request = self.prepare(request)
        attempts: list[UpstreamAttempt] = []
        last_error: UpstreamError | None = None

        for target in targets:
            start_time = time.monotonic()
            try:
                response = await self.call(target, request)
            except UpstreamError as e:
                attempt = UpstreamAttempt(
                    target=target.name,
                    outcome="timeout" if isinstance(e, UpstreamTimeoutError) else "failure",
                    elapsed_ms=(time.monotonic() - start_time) * 1000,
                    status_code=e.upstream_status,
                    error=e.message,
                )
                attempts.append(attempt)
                last_error = e
                logger.warning(
                    "Upstream attempt failed",
                    extra={
                        "target": target.name,
                        "outcome": attempt.outcome,
                        "status_code": attempt.status_code,
                        "elapsed_ms": round(attempt.elapsed_ms, 2),
                        "attempt": len(attempts),
                        "remaining": len(targets) - len(attempts),
                    },
                )
                continue

            attempts.append(
                UpstreamAttempt(
                    target=target.name,
                    outcome="success",
                    elapsed_ms=response.elapsed_ms,
                    status_code=response.status_code,
                )
            )
            logger.info(
                "Upstream attempt succeeded",
                extra={
                    "target": target.name,
                    "outcome": "success",
                    "status_code": response.status_code,
                    "elapsed_ms": round(response.elapsed_ms, 2),
                    "attempt": len(attempts),
                },
            )
            return UpstreamResult(
                value=response.value,
                target=target.name,
                status_code=response.status_code,
                attempts=attempts,
            )

        assert last_error is not None
        last_error.attempts = attempts
        raise last_error

    async def close(self) -> None:
        """Close the async HTTP client if this instance created it.

        Should be called when shutting down the application.
        """
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
