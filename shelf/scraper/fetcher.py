"""Bounded, retrying HTTP fetcher for product pages."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

import httpx
import structlog

from shelf.config import settings
from shelf.exceptions import FatalFetchError, FetchExhaustedError
from shelf.scraper.extractor import extract_from_html
from shelf.scraper.models import EnrichmentData, RawPage

logger = structlog.get_logger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

# Statuses that abort the enclosing organize operation.
_FATAL_STATUSES = frozenset({500, 502})


class PageTransport(Protocol):
    """Anything that can turn a URL into a :class:`RawPage`.

    Transport-level failures must surface as :class:`httpx.TransportError`
    so the fetcher knows to retry them.
    """

    async def fetch(self, url: str) -> RawPage: ...


class HttpxTransport:
    """:class:`PageTransport` backed by ``httpx.AsyncClient``.

    A client is opened per request so the transport can be shared between
    event loops (each CLI command runs its own).
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout if timeout is not None else settings.request_timeout

    async def fetch(self, url: str) -> RawPage:
        async with httpx.AsyncClient(
            headers=_DEFAULT_HEADERS,
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
        return RawPage(url=url, html=response.text, status_code=response.status_code)


class BoundedFetcher:
    """Fetch product pages under a shared concurrency cap.

    One instance is meant to be shared by every organize operation in the
    process (see :func:`get_fetcher`), so the semaphore bounds physical
    requests globally rather than per call.  Concurrent operations share a
    cap as long as they run on the same event loop.
    """

    def __init__(
        self,
        transport: Optional[PageTransport] = None,
        *,
        max_concurrent: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.transport = transport or HttpxTransport()
        self.max_concurrent = max_concurrent or settings.max_concurrent_fetches
        self.max_attempts = max_attempts or settings.fetch_max_attempts
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.fetch_retry_backoff
        )
        self._sleep = sleep
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _slots(self) -> asyncio.Semaphore:
        """Return the semaphore for the running event loop.

        A semaphore is tied to the loop it first blocks on, and each CLI
        command runs its own loop, so a new one is made when the loop changes.
        """
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            self._loop = loop
        return self._semaphore

    async def fetch_page(self, url: str) -> RawPage:
        """Return the raw response for *url*, retrying transport failures.

        The concurrency slot is released before backing off so waiting retries
        do not starve other fetches.

        Raises:
            FetchExhaustedError: If every attempt failed without a response.
        """
        last_error: Optional[httpx.TransportError] = None
        for attempt in range(1, self.max_attempts + 1):
            async with self._slots():
                try:
                    return await self.transport.fetch(url)
                except httpx.TransportError as exc:
                    last_error = exc
                    logger.warning(
                        "fetch failed",
                        url=url,
                        attempt=attempt,
                        max_attempts=self.max_attempts,
                        error=repr(exc),
                    )
            if attempt < self.max_attempts:
                await self._sleep(self.retry_backoff)

        logger.error("fetch exhausted", url=url, attempts=self.max_attempts)
        raise FetchExhaustedError(url, self.max_attempts) from last_error

    async def fetch_enrichment(self, url: str) -> EnrichmentData:
        """Fetch *url* and extract its :class:`EnrichmentData`.

        Raises:
            FatalFetchError: On HTTP 500 or 502.
            FetchExhaustedError: If no response could be obtained.
        """
        page = await self.fetch_page(url)

        if page.status_code in _FATAL_STATUSES:
            logger.error("fatal response status", url=url, status=page.status_code)
            raise FatalFetchError(url, page.status_code)

        if page.status_code == 404:
            return EnrichmentData.not_found()

        return extract_from_html(page.html)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_fetcher: Optional[BoundedFetcher] = None


def get_fetcher() -> BoundedFetcher:
    """Return the process-wide :class:`BoundedFetcher`, creating it on first use."""
    global _fetcher
    if _fetcher is None:
        _fetcher = BoundedFetcher()
    return _fetcher


def reset_fetcher() -> None:
    """Forget the process-wide fetcher (tests, or after changing settings)."""
    global _fetcher
    _fetcher = None
