"""
HTTP API adapter for the placeholder service.

Architectural role:
- Expose placeholder, status-check and status-poll interfaces.
- Enforce adapter-level input validation (dimension range, path format).
- Delegate generation bookkeeping to `GenerationCoordinator` and lookups to
  `ResultCache`.
- Render responses as redirects, SVG documents, header-only status or JSON.

Endpoint responsibilities:
- `GET /api/placeholder`: query-string form (`w|width`, `h|height`, `text|t`).
- `GET /api/placeholder/params/{W}x{H}`: path form with `text|t` query.
- `HEAD` on both placeholder routes: status check without enqueueing.
- `GET /api/status/{image_id}`: JSON status poll by fingerprint.
- `GET /healthz`: cache and coordinator counters.

API request lifecycle (`GET` placeholder routes):
1. Parse and validate dimensions and description.
2. Fingerprint the request and look it up in the result cache.
3. Completed result -> redirect to the generated image with a long cache life.
4. Otherwise enqueue generation (idempotent) and return a fresh placeholder SVG
   with status, id and refresh hint headers.

Input validation behavior:
- Non-integer or out-of-range dimensions -> HTTP 400 JSON, nothing enqueued.
- Malformed `{W}x{H}` path segment -> HTTP 400 JSON.
- HEAD requests answer validation failures with an empty 400.

Error handling strategy:
- Validation failures return structured HTTP 400 JSON responses.
- Unexpected failures while building a placeholder response are logged and
  converted into a red error placeholder with HTTP 500.

Side effects:
- Placeholder `GET`s may start the coordinator's background worker.
- The application lifespan runs periodic cache sweeps and stale-record cleanup.
"""

import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel, Field, ValidationError

from placeholder_ai import config
from placeholder_ai.core.coordinator import GenerationCoordinator
from placeholder_ai.core.fingerprint import fingerprint
from placeholder_ai.core.records import GenerationStatus
from placeholder_ai.core.result_cache import ResultCache
from placeholder_ai.core.scheduling import PeriodicTask
from placeholder_ai.rendering.placeholder_svg import generate_placeholder_svg


logger = logging.getLogger(__name__)

SVG_MEDIA_TYPE = "image/svg+xml"

GENERATED_CACHE_CONTROL = "public, max-age=86400, s-maxage=86400"
GENERATED_HEAD_CACHE_CONTROL = "public, max-age=86400"
PLACEHOLDER_CACHE_CONTROL = "public, max-age=300, s-maxage=300"
COMPLETED_STATUS_CACHE_CONTROL = "public, max-age=3600"
NO_CACHE = "no-cache"

DIMENSION_ERROR = (
    f"Dimensions must be between {config.MIN_DIMENSION}x{config.MIN_DIMENSION} "
    f"and {config.MAX_DIMENSION}x{config.MAX_DIMENSION}"
)
DIMENSION_SEGMENT = re.compile(r"^(\d+)x(\d+)$")


# ============================================================
# Request Schema
# ============================================================

class ImageParams(BaseModel):
    """Validated placeholder request parameters."""
    width: int = Field(ge=config.MIN_DIMENSION, le=config.MAX_DIMENSION)
    height: int = Field(ge=config.MIN_DIMENSION, le=config.MAX_DIMENSION)
    text: str


class InvalidImageRequest(ValueError):
    """Raised for placeholder requests that must be rejected with HTTP 400."""


def _default_text(width, height) -> str:
    return f"{width}×{height} Placeholder"


def _text_from_query(request: Request) -> str | None:
    params = request.query_params
    return params.get("text") or params.get("t")


def parse_query_params(request: Request) -> ImageParams:
    """Build `ImageParams` from `w|width`, `h|height` and `text|t` query keys."""
    params = request.query_params
    width = params.get("w") or params.get("width") or config.DEFAULT_WIDTH
    height = params.get("h") or params.get("height") or config.DEFAULT_HEIGHT
    return _validate(width, height, _text_from_query(request))


def parse_path_params(dimensions: str, request: Request) -> ImageParams:
    """Build `ImageParams` from a `{W}x{H}` path segment plus `text|t` query keys."""
    match = DIMENSION_SEGMENT.match(dimensions)
    if not match:
        raise InvalidImageRequest(
            "Invalid dimension format. Use WIDTHxHEIGHT (e.g., 800x600)"
        )
    return _validate(match.group(1), match.group(2), _text_from_query(request))


def _validate(width, height, text) -> ImageParams:
    try:
        params = ImageParams(width=width, height=height, text=text or "")
    except ValidationError:
        raise InvalidImageRequest(DIMENSION_ERROR)

    if not params.text:
        params.text = _default_text(params.width, params.height)
    return params


# ============================================================
# Response Builders
# ============================================================

def _error_placeholder() -> Response:
    """Red fallback image returned when a placeholder response cannot be built."""
    svg = generate_placeholder_svg(400, 300, "Error loading image", "#fee2e2", "#dc2626")
    return Response(
        content=svg,
        status_code=500,
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": NO_CACHE},
    )


def _serve_placeholder(request: Request, params: ImageParams) -> Response:
    """Redirect to a finished image or enqueue generation and return a placeholder."""
    cache: ResultCache = request.app.state.cache
    coordinator: GenerationCoordinator = request.app.state.coordinator

    try:
        image_id = fingerprint(params.width, params.height, params.text)

        existing = cache.get(image_id)
        if existing is not None and existing.status is GenerationStatus.COMPLETED:
            return RedirectResponse(
                existing.image_url,
                status_code=307,
                headers={
                    "Cache-Control": GENERATED_CACHE_CONTROL,
                    "ETag": f'"ai-{image_id}"',
                },
            )

        coordinator.request_generation(params.width, params.height, params.text)
        record = coordinator.get_status(image_id)
        status = record.status.value if record is not None else GenerationStatus.PENDING.value

        svg = generate_placeholder_svg(params.width, params.height, params.text)
        return Response(
            content=svg,
            media_type=SVG_MEDIA_TYPE,
            headers={
                "Cache-Control": PLACEHOLDER_CACHE_CONTROL,
                "ETag": f'"placeholder-{image_id}"',
                "X-Image-Status": status,
                "X-Image-ID": image_id,
                "X-Refresh-After": str(config.REFRESH_AFTER_SECONDS),
            },
        )
    except Exception:
        logger.exception("Placeholder request failed")
        return _error_placeholder()


def _status_headers(request: Request, params: ImageParams) -> Response:
    """Header-only status answer used by HEAD requests."""
    coordinator: GenerationCoordinator = request.app.state.coordinator

    image_id = fingerprint(params.width, params.height, params.text)
    record = coordinator.get_status(image_id)

    if record is not None and record.status is GenerationStatus.COMPLETED:
        return Response(
            headers={
                "X-Image-Status": GenerationStatus.COMPLETED.value,
                "X-Image-ID": image_id,
                "Cache-Control": GENERATED_HEAD_CACHE_CONTROL,
                "ETag": f'"ai-{image_id}"',
            }
        )

    status = record.status.value if record is not None else GenerationStatus.PENDING.value
    return Response(
        headers={
            "X-Image-Status": status,
            "X-Image-ID": image_id,
            "Cache-Control": NO_CACHE,
        }
    )


# ============================================================
# Application Factory
# ============================================================

def create_app(
    cache: ResultCache | None = None,
    coordinator: GenerationCoordinator | None = None,
) -> FastAPI:
    """Build the FastAPI application around a cache/coordinator pair.

    Args:
        cache: Result cache to serve from; a fresh one is created when omitted.
        coordinator: Coordinator sharing `cache`; created from `config` lifetimes
            when omitted.

    Returns:
        Configured `FastAPI` instance. Its lifespan starts the periodic cache
        sweep and stale-record cleanup and cancels the worker on shutdown.
    """
    if cache is None:
        cache = ResultCache()
    if coordinator is None:
        coordinator = GenerationCoordinator(
            cache,
            success_ttl=config.SUCCESS_TTL_SECONDS,
            failure_ttl=config.FAILURE_TTL_SECONDS,
            max_record_age=config.RECORD_MAX_AGE_SECONDS,
        )

    housekeeping = [
        PeriodicTask("cache-sweep", config.CACHE_SWEEP_INTERVAL_SECONDS, cache.sweep),
        PeriodicTask("record-cleanup", config.RECORD_CLEANUP_INTERVAL_SECONDS, coordinator.cleanup),
    ]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting placeholder service")
        for task in housekeeping:
            task.start()

        yield

        logger.info("Shutting down placeholder service")
        for task in housekeeping:
            await task.stop()
        await coordinator.close()

    app = FastAPI(title="PlaceholderAI", lifespan=lifespan)
    app.state.cache = cache
    app.state.coordinator = coordinator
    app.state.housekeeping = housekeeping

    # ============================================================
    # Placeholder Routes
    # ============================================================

    @app.get("/api/placeholder")
    async def placeholder(request: Request):
        """Query-string placeholder endpoint (`?w=800&h=600&text=sunset`)."""
        try:
            params = parse_query_params(request)
        except InvalidImageRequest as e:
            return JSONResponse(status_code=400, content={"error": str(e)})
        return _serve_placeholder(request, params)

    @app.head("/api/placeholder")
    async def placeholder_status(request: Request):
        """Status check for the query-string form; never enqueues."""
        try:
            params = parse_query_params(request)
        except InvalidImageRequest:
            return Response(status_code=400)
        return _status_headers(request, params)

    @app.get("/api/placeholder/params/{dimensions}")
    async def placeholder_by_path(dimensions: str, request: Request):
        """Path placeholder endpoint (`/api/placeholder/params/800x600?text=sunset`)."""
        try:
            params = parse_path_params(dimensions, request)
        except InvalidImageRequest as e:
            return JSONResponse(status_code=400, content={"error": str(e)})
        return _serve_placeholder(request, params)

    @app.head("/api/placeholder/params/{dimensions}")
    async def placeholder_by_path_status(dimensions: str, request: Request):
        """Status check for the path form; never enqueues."""
        try:
            params = parse_path_params(dimensions, request)
        except InvalidImageRequest:
            return Response(status_code=400)
        return _status_headers(request, params)

    # ============================================================
    # Status Poll
    # ============================================================

    @app.get("/api/status/{image_id}")
    async def generation_status(image_id: str):
        """
        Return the JSON status of one generation.

        Response formatting:
        - `id, status, width, height, text, createdAt` always present.
        - `imageUrl`, `error`, `completedAt`, `processingTime` only when set.
        - Completed results may be cached by clients for an hour.
        """
        record = coordinator.get_status(image_id)
        if record is None:
            return JSONResponse(status_code=404, content={"error": "Image not found"})

        cache_control = (
            COMPLETED_STATUS_CACHE_CONTROL
            if record.status is GenerationStatus.COMPLETED
            else NO_CACHE
        )
        return JSONResponse(content=record.to_payload(), headers={"Cache-Control": cache_control})

    @app.get("/healthz")
    async def health_check():
        """Health check with cache and queue counters."""
        return {
            "status": "healthy",
            "cache": cache.stats(),
            "coordinator": coordinator.stats(),
        }

    return app


app = create_app()
