from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from medigate.api.dependencies import (
    BraveHandlerDep,
    CacheHandlerDep,
    ClinicalTrialsHandlerDep,
    SpeechHandlerDep,
    lifespan,
)
from medigate.config import settings
from medigate.dto import (
    BraveSearchRequest,
    CacheClearResponse,
    CacheStatsResponse,
    ClinicalTrialsSearchRequest,
    ErrorResponse,
    HealthCheckResponse,
    PodcastAudioRequest,
    SpeechRequest,
)
from medigate.errors import GatewayError, UnknownError, ValidationError
from medigate.logger import logger

VERSION = "0.1.0"

# Routes that accept POST only and answer OPTIONS without side effects
GATEWAY_ROUTES = (
    "/search/clinicaltrials",
    "/search/brave",
    "/speech",
    "/speech/podcast",
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

HTTP_ERROR_CATEGORIES = {
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def error_response(
    status_code: int,
    category: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the `{error, message, timestamp}` body every failure uses."""
    body = ErrorResponse(
        error=category,
        message=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning(
        "Request failed",
        extra={
            "path": request.url.path,
            "error_category": exc.category,
            "status_code": exc.status_code,
        },
    )
    return error_response(exc.status_code, exc.category, exc.message)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(ValidationError.status_code, ValidationError.category, message)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    category = HTTP_ERROR_CATEGORIES.get(exc.status_code, "http_error")
    return error_response(exc.status_code, category, str(exc.detail), headers=exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    error = UnknownError()
    return error_response(error.status_code, error.category, error.message)


async def preflight() -> Response:
    """Answer CORS preflight without touching cache or upstream."""
    return Response(content="ok", media_type="text/plain", headers=CORS_HEADERS)


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        use_lifespan: Wire services through the lifespan. Tests pass False
            and populate app.state themselves.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="MediGate API",
        description="Caching gateway for medical search and text-to-speech APIs",
        version=VERSION,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, handle_gateway_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)

    for path in GATEWAY_ROUTES:
        app.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "MediGate API",
            "version": VERSION,
            "description": "Caching gateway for medical search and text-to-speech APIs",
            "endpoints": {
                "clinicaltrials": "/search/clinicaltrials",
                "brave": "/search/brave",
                "speech": "/speech",
                "podcast": "/speech/podcast",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: CacheHandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post("/search/clinicaltrials")
    async def search_clinicaltrials(
        request: ClinicalTrialsSearchRequest,
        handler: ClinicalTrialsHandlerDep,
    ) -> JSONResponse:
        """Search ClinicalTrials.gov studies."""
        return await handler.search(request)

    @app.post("/search/brave")
    async def search_brave(
        request: BraveSearchRequest,
        handler: BraveHandlerDep,
    ) -> JSONResponse:
        """Search the web through Brave, biased towards medical sources."""
        return await handler.search(request)

    @app.post("/speech")
    async def speech(request: SpeechRequest, handler: SpeechHandlerDep) -> Response:
        """Synthesise one text to audio/mpeg."""
        return await handler.synthesize(request)

    @app.post("/speech/podcast")
    async def podcast(request: PodcastAudioRequest, handler: SpeechHandlerDep) -> Response:
        """Render a podcast script into a single audio/mpeg body."""
        return await handler.synthesize_podcast(request)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def cache_stats(handler: CacheHandlerDep) -> CacheStatsResponse:
        """Per-store and per-service cache statistics."""
        return await handler.get_stats()

    @app.delete("/cache", response_model=CacheClearResponse)
    async def clear_cache(handler: CacheHandlerDep) -> CacheClearResponse:
        """Clear every cache store."""
        return await handler.clear_cache()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "medigate.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
