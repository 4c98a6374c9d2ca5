"""FastAPI route definitions for the URL shortener REST API.

API Endpoint Overview
=====================
::
    GET  /_health
        └─ HealthResponse (200)

    POST /
        ├─ ShortenRequest (request body)
        └─ ShortenResponse (201) or ErrorResponse (422/500)

    GET  /:short_id
        └─ 308 Redirect or ErrorResponse (404/500)

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate &  │
    │ Parse       │
    │ (Pydantic)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ Service     │
    └──────┬──────┘
           ▼
    ┌─────────────┐     ShortenError
    │ Workflow    ├─────────────────────┐
    └──────┬──────┘                     ▼
           ▼                   ┌─────────────────┐
    ┌─────────────┐            │ shorten_error_  │
    │ 201 / 308   │            │ handler()       │
    └─────────────┘            └─────────────────┘

Key Behaviours
===============
- Domain errors are raised unchanged; the app-level handler renders them.
- The short link base comes from settings (BASE_URL or http://HOST:PORT).
- 308 redirects preserve the HTTP method.
- The Location header carries the stored URL as-is; only characters that
  cannot appear in a header value (non-ASCII, control) are percent-encoded.
- The health check lives at /_health; "_" is outside the id alphabet, so no
  short id can shadow it.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from shortener.dependencies import RequestContext, get_request_context, get_shortener_service
from shortener.enums import HealthStatus
from shortener.errors import ShortenError
from shortener.schemas import ErrorResponse, HealthResponse, ShortenRequest, ShortenResponse
from shortener.service import ShortenerService

__all__ = ["router"]

# Printable ASCII passes through unchanged
_LOCATION_SAFE = "".join(chr(c) for c in range(0x20, 0x7F))

router = APIRouter()


@router.get("/_health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.gateway.ping()
    except ShortenError as exc:
        ctx.logger.error(f"Database health check failed: {exc.message}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


@router.post(
    "/",
    response_model=ShortenResponse,
    status_code=201,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["urls"],
)
async def shorten(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ShortenerService = Depends(get_shortener_service),
) -> ShortenResponse:
    ctx.logger.info(f"URL shortening requested: {payload.url}")
    short_id = await service.shorten(payload.url)
    ctx.logger.info(f"URL shortened to {short_id} in {ctx.get_duration():.1f}ms")
    return ShortenResponse(url=f"{ctx.settings.public_base_url}/{short_id}")


@router.get(
    "/{short_id}",
    status_code=308,
    response_class=Response,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["redirect"],
)
async def redirect(
    short_id: str,
    service: ShortenerService = Depends(get_shortener_service),
) -> Response:
    url = await service.redirect(short_id)
    return Response(status_code=308, headers={"location": quote(url, safe=_LOCATION_SAFE)})
