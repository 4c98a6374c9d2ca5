"""Shortening and redirect workflows.

Flow Diagram — shorten()
========================
::
    ┌─────────────┐
    │ attempt = 1 │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ generate id │◄──────────────┐
    └──────┬──────┘               │
           ▼                      │
    ┌─────────────┐   CONFLICT    │
    │ upsert_by_  ├──────────────►│ attempt += 1
    │ url()       │   (< max)     │
    └──────┬──────┘               │
     OK    │          CONFLICT (= max)
           ▼                 ──────────► RETRY_EXHAUSTED
    ┌─────────────┐
    │ return id   │   other error ─────► propagate
    └─────────────┘

How to Use
===========
**Step 1 — Build from a request context**::
    service = ShortenerService.from_context(ctx)

**Step 2 — Call the workflows**::
    short_id = await service.shorten("https://example.com")
    url = await service.redirect(short_id)

Key Behaviours
===============
- A URL that is already stored returns its existing id; no retry happens.
- Only IDENTIFIER_CONFLICT is retried; storage failures surface at once.
- Attempts run one after another, never in parallel.
"""

import logging
from typing import TYPE_CHECKING

from prometheus_client import Counter

from shortener.enums import RequestStatus
from shortener.errors import ErrorKind, ShortenError
from shortener.gateway import UrlGateway
from shortener.idgen import IdGenerator, generate_short_id

if TYPE_CHECKING:
    from shortener.dependencies import RequestContext

__all__ = ["ShortenerService"]

SHORTEN_REQUESTS_TOTAL = Counter(
    "url_shortener_shorten_requests_total",
    "Total shorten requests",
    ["status"],
)
IDENTIFIER_CONFLICTS_TOTAL = Counter(
    "url_shortener_identifier_conflicts_total",
    "Generated ids that collided with an existing record",
)
REDIRECT_REQUESTS_TOTAL = Counter(
    "url_shortener_redirect_requests_total",
    "Total redirect lookups",
    ["status"],
)


class ShortenerService:
    """Workflows over the persistence gateway.

    Args:
        gateway: Connected persistence gateway.
        max_retry_times: Upper bound on id generation attempts per shorten call.
        generate_id: Candidate id source; defaults to random nanoid ids.
        logger: Logger or request-scoped adapter.
    """

    def __init__(
        self,
        gateway: UrlGateway,
        max_retry_times: int,
        generate_id: IdGenerator = generate_short_id,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        assert max_retry_times > 0, f"max_retry_times must be positive, got {max_retry_times!r}"
        self._gateway = gateway
        self._max_retry_times = max_retry_times
        self._generate_id = generate_id
        self._logger = logger or logging.getLogger("urlshortener")

    @classmethod
    def from_context(cls, ctx: "RequestContext", generate_id: IdGenerator = generate_short_id) -> "ShortenerService":
        return cls(
            gateway=ctx.gateway,
            max_retry_times=ctx.settings.MAX_RETRY_TIMES,
            generate_id=generate_id,
            logger=ctx.logger,
        )

    async def shorten(self, url: str) -> str:
        """Return the short id for ``url``, creating the mapping if needed.

        Raises:
            ShortenError: RETRY_EXHAUSTED when every attempt collided,
                STORAGE_FAILURE on any other store error.
        """
        for attempt in range(1, self._max_retry_times + 1):
            candidate = self._generate_id()
            try:
                short_id = await self._gateway.upsert_by_url(candidate, url)
            except ShortenError as exc:
                if exc.kind is not ErrorKind.IDENTIFIER_CONFLICT:
                    SHORTEN_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
                    self._logger.error(f"Failed to shorten URL: {exc!r}")
                    raise
                IDENTIFIER_CONFLICTS_TOTAL.inc()
                self._logger.info(
                    f"Primary key conflict on attempt {attempt}/{self._max_retry_times}, generating new id"
                )
                continue

            SHORTEN_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
            self._logger.info(f"Shortened {url} -> {short_id} after {attempt} attempt(s)")
            return short_id

        SHORTEN_REQUESTS_TOTAL.labels(status=RequestStatus.RETRY_EXHAUSTED).inc()
        self._logger.warning("Exceed max retry times")
        raise ShortenError.retry_exhausted(self._max_retry_times)

    async def redirect(self, short_id: str) -> str:
        try:
            url = await self._gateway.lookup_by_id(short_id)
        except ShortenError as exc:
            status = RequestStatus.NOT_FOUND if exc.kind is ErrorKind.NOT_FOUND else RequestStatus.ERROR
            REDIRECT_REQUESTS_TOTAL.labels(status=status).inc()
            self._logger.warning(f"Redirect failed for {short_id}: {exc.message}")
            raise

        REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return url
