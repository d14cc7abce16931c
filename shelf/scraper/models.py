"""Data models for the scraper pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


class EnrichmentStatus(enum.Enum):
    """Where a node's enrichment data came from."""

    UNFETCHED = "unfetched"
    NOT_ELIGIBLE = "not_eligible"
    NOT_FOUND = "not_found"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class EnrichmentData:
    """Metadata scraped from a product page.

    ``num_ratings``, ``rating`` and ``title`` are only meaningful when
    ``status`` is :attr:`EnrichmentStatus.RESOLVED`; a resolved value may
    still have any of them unset when the page did not show it.
    """

    status: EnrichmentStatus = EnrichmentStatus.UNFETCHED
    num_ratings: Optional[int] = None
    rating: Optional[float] = None
    title: Optional[str] = None

    @classmethod
    def not_eligible(cls) -> EnrichmentData:
        return cls(status=EnrichmentStatus.NOT_ELIGIBLE)

    @classmethod
    def not_found(cls) -> EnrichmentData:
        return cls(status=EnrichmentStatus.NOT_FOUND)

    @classmethod
    def resolved(
        cls,
        num_ratings: Optional[int] = None,
        rating: Optional[float] = None,
        title: Optional[str] = None,
    ) -> EnrichmentData:
        return cls(
            status=EnrichmentStatus.RESOLVED,
            num_ratings=num_ratings,
            rating=rating,
            title=title,
        )

    @property
    def is_not_found(self) -> bool:
        return self.status is EnrichmentStatus.NOT_FOUND

    @property
    def has_full_metadata(self) -> bool:
        """True when title, rating count and rating are all known."""
        return (
            self.status is EnrichmentStatus.RESOLVED
            and bool(self.title)
            and self.num_ratings is not None
            and self.rating is not None
        )

    def dedup_key(self) -> tuple[str, int, float] | None:
        """``(title, num_ratings, rating)`` or ``None`` without full metadata."""
        if not self.has_full_metadata:
            return None
        return (self.title, self.num_ratings, self.rating)  # type: ignore[return-value]
