"""Shared fixtures.

- ``conn`` is a fresh in-memory SQLite database with the schema applied.
- ``transport`` is a scripted :class:`PageTransport` so no test touches the
  network; ``fetcher`` wraps it in a :class:`BoundedFetcher` whose backoff
  sleeps are recorded instead of awaited.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Callable, Generator, Optional, Union

import pytest

from shelf.db.connection import get_connection
from shelf.db.migrations import init_db
from shelf.db.store import SqliteBookmarkStore, SqliteTabStore
from shelf.scraper import fetcher as fetcher_module
from shelf.scraper.fetcher import BoundedFetcher
from shelf.scraper.models import RawPage

AMAZON = "https://www.amazon.com"

Scripted = Union[RawPage, Exception, list]


def product_html(
    title: Optional[str] = "A Book",
    rating: Optional[str] = "4.5 out of 5 stars",
    num_ratings: Optional[str] = "1,234 ratings",
    page_title: str = "Amazon.com: A Book",
) -> str:
    """Render a minimal product page with the elements the extractor reads."""
    parts = [f"<html><head><title>{page_title}</title></head><body>"]
    if title is not None:
        parts.append(f'<span id="productTitle">  {title}  </span>')
    if rating is not None:
        parts.append(f'<span id="acrPopover"> {rating} </span>')
    if num_ratings is not None:
        parts.append(f'<span id="acrCustomerReviewText">{num_ratings}</span>')
    parts.append("</body></html>")
    return "".join(parts)


class FakeTransport:
    """Serves scripted responses and records how many fetches overlap.

    Each URL maps to a :class:`RawPage`, an exception to raise, or a list of
    those consumed one per call.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.pages: dict[str, Scripted] = {}
        self.calls: list[str] = []
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, url: str, response: Scripted) -> None:
        self.pages[url] = response

    def add_product(self, url: str, **kwargs) -> None:
        self.pages[url] = RawPage(url=url, html=product_html(**kwargs), status_code=200)

    async def fetch(self, url: str) -> RawPage:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            response = self.pages[url]
            if isinstance(response, list):
                response = response.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def store(conn: sqlite3.Connection) -> SqliteBookmarkStore:
    return SqliteBookmarkStore(conn)


@pytest.fixture()
def tab_store(conn: sqlite3.Connection) -> SqliteTabStore:
    return SqliteTabStore(conn)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def fetcher(transport: FakeTransport, sleeps: list[float]) -> BoundedFetcher:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return BoundedFetcher(transport, max_concurrent=5, max_attempts=4, retry_backoff=5.0, sleep=record_sleep)


@pytest.fixture()
def make_product() -> Callable[..., str]:
    return product_html


@pytest.fixture(autouse=True)
def _reset_shared_fetcher(monkeypatch: pytest.MonkeyPatch) -> None:
    """Never let a test reach the process-wide fetcher built in another test."""
    monkeypatch.setattr(fetcher_module, "_fetcher", None)
