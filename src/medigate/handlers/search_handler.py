"""HTTP handlers for search endpoints.

Handlers convert between DTOs (API contracts) and service calls.
Typed gateway errors pass through untouched and are rendered by the
application's exception handlers; anything else becomes UnknownError.
"""

from fastapi.responses import JSONResponse

from medigate.dto import SearchResponse
from medigate.dto.requests import SearchRequestBase
from medigate.errors import GatewayError, UnknownError
from medigate.logger import logger
from medigate.services import SearchService


class SearchHandler:
    """HTTP handler for one search provider.

    Example:
        ```python
        handler = SearchHandler(search_service=service)

        @app.post("/search/clinicaltrials")
        async def search(request: ClinicalTrialsSearchRequest):
            return await handler.search(request)
        ```
    """

    def __init__(self, search_service: SearchService) -> None:
        """Initialize the search handler.

        Args:
            search_service: The search service for business logic (required).
        """
        self._search = search_service

    @property
    def service(self) -> SearchService:
        return self._search

    async def search(self, request: SearchRequestBase) -> JSONResponse:
        """Handle POST /search/<provider> requests.

        Returns:
            ``{success: true, data}`` with an ``X-Cache: HIT|MISS`` header

        Raises:
            GatewayError: Typed failure, rendered by the exception handlers
        """
        try:
            outcome = await self._search.search(request)
        except GatewayError:
            raise
        except Exception as e:
            logger.exception(
                "Unexpected error during search",
                extra={"service": self._search.name},
            )
            raise UnknownError() from e

        body = SearchResponse(data=outcome.data)
        return JSONResponse(
            content=body.model_dump(),
            headers={"X-Cache": "HIT" if outcome.cache_hit else "MISS"},
        )
