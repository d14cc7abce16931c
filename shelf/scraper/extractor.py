"""Metadata extraction: turns a product page document into :class:`EnrichmentData`."""

from __future__ import annotations

import re
from typing import Optional

import structlog
from bs4 import BeautifulSoup

from shelf.config import settings
from shelf.scraper.models import EnrichmentData

logger = structlog.get_logger(__name__)

# Element ids on the target site's product page.
_NUM_RATINGS_SELECTOR = "span#acrCustomerReviewText"
_RATING_SELECTOR = "span#acrPopover"
_TITLE_SELECTOR = "span#productTitle"

# A fetched page always renders "1,234 ratings"; a live tab may already have
# the suffix stripped by the page's own scripts.
_NUM_RATINGS_FETCHED = re.compile(r"^([\d,]+) ratings$")
_NUM_RATINGS_LIVE = re.compile(r"^([\d,]+)(?: ratings)?$")
_RATING = re.compile(r"^\d\.?\d?")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _text(doc: BeautifulSoup, selector: str) -> Optional[str]:
    """Return the stripped text of the first element matching *selector*."""
    element = doc.select_one(selector)
    if element is None:
        return None
    return element.get_text().strip()


def _is_not_found_page(doc: BeautifulSoup) -> bool:
    title = doc.find("title")
    if title is None:
        return False
    return title.get_text().strip() == settings.not_found_title


def _extract_num_ratings(doc: BeautifulSoup, live: bool) -> Optional[int]:
    text = _text(doc, _NUM_RATINGS_SELECTOR)
    if text is None:
        return None
    pattern = _NUM_RATINGS_LIVE if live else _NUM_RATINGS_FETCHED
    match = pattern.match(text)
    if match is None:
        return None
    return int(match.group(1).replace(",", ""))


def _extract_rating(doc: BeautifulSoup) -> Optional[float]:
    text = _text(doc, _RATING_SELECTOR)
    if text is None:
        return None
    match = _RATING.match(text)
    if match is None:
        return None
    return float(match.group(0))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_document(html: str) -> BeautifulSoup:
    """Parse raw markup into a document the extractor can query."""
    return BeautifulSoup(html, "html.parser")


def extract_enrichment(doc: BeautifulSoup, *, live: bool = False) -> EnrichmentData:
    """Read rating count, rating and product title from *doc*.

    ``live`` selects the looser rating-count pattern used for documents read
    from an already-open tab.  A "Page Not Found" document short-circuits to
    :meth:`EnrichmentData.not_found`.

    Never raises: an unexpected document shape degrades to a resolved value
    with every field unset.
    """
    try:
        if _is_not_found_page(doc):
            return EnrichmentData.not_found()

        title = _text(doc, _TITLE_SELECTOR) or None
        return EnrichmentData.resolved(
            num_ratings=_extract_num_ratings(doc, live),
            rating=_extract_rating(doc),
            title=title,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("extraction degraded", error=str(exc))
        return EnrichmentData.resolved()


def extract_from_html(html: str, *, live: bool = False) -> EnrichmentData:
    """Convenience wrapper: parse *html* and extract from it."""
    return extract_enrichment(parse_document(html), live=live)
