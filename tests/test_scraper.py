"""Tests for the scraper: product metadata extraction and the bounded fetcher.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so the real
  :class:`HttpxTransport` is exercised without network calls.
- Concurrency and retry bookkeeping use the scripted ``transport`` fixture,
  whose backoff sleeps are recorded rather than awaited.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
import respx

from shelf.exceptions import FatalFetchError, FetchExhaustedError
from shelf.scraper import extractor
from shelf.scraper.extractor import extract_enrichment, extract_from_html, parse_document
from shelf.scraper.fetcher import BoundedFetcher, HttpxTransport
from shelf.scraper.models import EnrichmentData, EnrichmentStatus, RawPage

_URL = "https://www.amazon.com/Some-Book/dp/B000000001"


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class TestExtractEnrichment:
    def test_full_product_page(self, make_product) -> None:
        data = extract_from_html(make_product(title="Dune"))
        assert data == EnrichmentData.resolved(num_ratings=1234, rating=4.5, title="Dune")

    def test_not_found_page_skips_everything_else(self, make_product) -> None:
        data = extract_from_html(make_product(page_title="  Page Not Found "))
        assert data.status is EnrichmentStatus.NOT_FOUND
        assert data.num_ratings is None
        assert data.title is None

    def test_fetched_page_requires_ratings_suffix(self, make_product) -> None:
        data = extract_from_html(make_product(num_ratings="1,234"))
        assert data.num_ratings is None

    def test_live_page_accepts_bare_count(self, make_product) -> None:
        data = extract_from_html(make_product(num_ratings="1,234"), live=True)
        assert data.num_ratings == 1234

    def test_live_page_accepts_suffix_too(self, make_product) -> None:
        data = extract_from_html(make_product(num_ratings="12,345,678 ratings"), live=True)
        assert data.num_ratings == 12345678

    def test_unrecognised_count_is_unset(self, make_product) -> None:
        data = extract_from_html(make_product(num_ratings="many ratings"))
        assert data.num_ratings is None

    def test_explicit_zero_count(self, make_product) -> None:
        data = extract_from_html(make_product(num_ratings="0 ratings"))
        assert data.num_ratings == 0

    def test_integer_rating(self, make_product) -> None:
        assert extract_from_html(make_product(rating="4 out of 5 stars")).rating == 4.0

    def test_rating_keeps_one_decimal(self, make_product) -> None:
        assert extract_from_html(make_product(rating="3.75")).rating == 3.7

    def test_unparseable_rating_is_unset(self, make_product) -> None:
        assert extract_from_html(make_product(rating="no reviews yet")).rating is None

    def test_missing_elements_leave_fields_unset(self) -> None:
        data = extract_from_html("<html><head><title>x</title></head><body></body></html>")
        assert data == EnrichmentData.resolved()

    def test_empty_title_is_unset(self, make_product) -> None:
        assert extract_from_html(make_product(title="   ")).title is None

    def test_malformed_markup_does_not_raise(self) -> None:
        data = extract_from_html("<html><span id='productTitle'>Half <b>open")
        assert data.status is EnrichmentStatus.RESOLVED
        assert data.title == "Half open"

    def test_internal_failure_degrades_to_defaults(self, make_product, monkeypatch) -> None:
        def boom(doc):
            raise RuntimeError("unexpected layout")

        monkeypatch.setattr(extractor, "_extract_rating", boom)
        data = extract_enrichment(parse_document(make_product()))
        assert data == EnrichmentData.resolved()


class TestEnrichmentData:
    def test_dedup_key_requires_full_metadata(self) -> None:
        assert EnrichmentData.resolved(10, 4.0, "T").dedup_key() == ("T", 10, 4.0)
        assert EnrichmentData.resolved(10, None, "T").dedup_key() is None
        assert EnrichmentData.resolved(10, 4.0, "").dedup_key() is None
        assert EnrichmentData.not_found().dedup_key() is None


# ---------------------------------------------------------------------------
# Fetcher: HTTP classification through the real httpx transport
# ---------------------------------------------------------------------------

@pytest.fixture()
def http_fetcher(sleeps: list[float]) -> BoundedFetcher:
    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return BoundedFetcher(HttpxTransport(timeout=5.0), max_attempts=4, retry_backoff=5.0, sleep=record_sleep)


class TestFetchEnrichment:
    async def test_success_is_extracted(self, http_fetcher, make_product) -> None:
        with respx.mock:
            respx.get(_URL).mock(return_value=httpx.Response(200, text=make_product(title="Dune")))
            data = await http_fetcher.fetch_enrichment(_URL)

        assert data.title == "Dune"
        assert data.num_ratings == 1234

    async def test_404_is_not_found(self, http_fetcher) -> None:
        with respx.mock:
            respx.get(_URL).mock(return_value=httpx.Response(404, text="<html>gone</html>"))
            data = await http_fetcher.fetch_enrichment(_URL)

        assert data == EnrichmentData.not_found()

    @pytest.mark.parametrize("status", [500, 502])
    async def test_server_errors_are_fatal(self, http_fetcher, status) -> None:
        with respx.mock:
            route = respx.get(_URL).mock(return_value=httpx.Response(status))
            with pytest.raises(FatalFetchError) as excinfo:
                await http_fetcher.fetch_enrichment(_URL)

        assert excinfo.value.status_code == status
        assert route.call_count == 1

    async def test_other_statuses_are_parsed(self, http_fetcher, make_product) -> None:
        with respx.mock:
            respx.get(_URL).mock(return_value=httpx.Response(503, text=make_product(title="Busy")))
            data = await http_fetcher.fetch_enrichment(_URL)

        assert data.title == "Busy"

    async def test_transport_error_is_retried(self, http_fetcher, sleeps, make_product) -> None:
        with respx.mock:
            route = respx.get(_URL).mock(
                side_effect=[
                    httpx.ConnectError("refused"),
                    httpx.Response(200, text=make_product(title="Dune")),
                ]
            )
            data = await http_fetcher.fetch_enrichment(_URL)

        assert data.title == "Dune"
        assert route.call_count == 2
        assert sleeps == [5.0]

    async def test_exhausted_retries_raise(self, http_fetcher, sleeps) -> None:
        with respx.mock:
            route = respx.get(_URL).mock(side_effect=httpx.ConnectTimeout("slow"))
            with pytest.raises(FetchExhaustedError) as excinfo:
                await http_fetcher.fetch_enrichment(_URL)

        assert route.call_count == 4
        assert excinfo.value.attempts == 4
        assert isinstance(excinfo.value.__cause__, httpx.ConnectTimeout)
        assert sleeps == [5.0, 5.0, 5.0]


# ---------------------------------------------------------------------------
# Fetcher: concurrency
# ---------------------------------------------------------------------------

class TestConcurrency:
    async def test_never_exceeds_capacity(self, fetcher, transport) -> None:
        transport.delay = 0.01
        urls = [f"{_URL}{i}" for i in range(20)]
        for url in urls:
            transport.add_product(url)

        await asyncio.gather(*(fetcher.fetch_enrichment(url) for url in urls))

        assert len(transport.calls) == 20
        assert transport.max_in_flight == 5

    async def test_cap_is_shared_between_callers(self, fetcher, transport) -> None:
        transport.delay = 0.01
        for i in range(12):
            transport.add_product(f"{_URL}{i}")

        async def batch(start: int) -> None:
            await asyncio.gather(*(fetcher.fetch_enrichment(f"{_URL}{i}") for i in range(start, start + 6)))

        await asyncio.gather(batch(0), batch(6))
        assert transport.max_in_flight <= 5

    def test_fetcher_survives_successive_event_loops(self, transport) -> None:
        transport.delay = 0.01
        urls = [f"{_URL}{i}" for i in range(10)]
        for url in urls:
            transport.add_product(url)
        fetcher = BoundedFetcher(transport, max_concurrent=2)

        async def fetch_all() -> list[EnrichmentData]:
            return await asyncio.gather(*(fetcher.fetch_enrichment(url) for url in urls))

        first = asyncio.run(fetch_all())
        second = asyncio.run(fetch_all())

        assert len(first) == len(second) == 10
        assert len(transport.calls) == 20
        assert transport.max_in_flight == 2

    async def test_slot_released_while_backing_off(self, transport) -> None:
        held_during_sleep: list[bool] = []

        async def record_sleep(seconds: float) -> None:
            held_during_sleep.append(fetcher._semaphore.locked())

        fetcher = BoundedFetcher(transport, max_concurrent=1, max_attempts=2, sleep=record_sleep)
        transport.add(_URL, [httpx.ConnectError("refused"), RawPage(_URL, "<html></html>", 200)])

        await fetcher.fetch_enrichment(_URL)
        assert held_during_sleep == [False]
