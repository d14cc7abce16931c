"""Scraper package — page fetch & product metadata extraction."""

from shelf.scraper.extractor import extract_enrichment, extract_from_html, parse_document
from shelf.scraper.fetcher import BoundedFetcher, HttpxTransport, get_fetcher
from shelf.scraper.models import EnrichmentData, EnrichmentStatus, RawPage

__all__ = [
    "BoundedFetcher",
    "EnrichmentData",
    "EnrichmentStatus",
    "HttpxTransport",
    "RawPage",
    "extract_enrichment",
    "extract_from_html",
    "get_fetcher",
    "parse_document",
]
