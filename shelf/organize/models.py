"""Annotated shapes produced by the annotator and consumed by the sorter/cleaner."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from shelf.db.models import BookmarkNode, Tab
from shelf.scraper.models import EnrichmentData

# Product pages live under ".../dp/<ASIN>"; anything after the id is a variant.
_PRODUCT_PATH = re.compile(r".*?/dp/\w+")


def normalize_url(url: str) -> str:
    """Truncate *url* after its product identifier, if it has one."""
    match = _PRODUCT_PATH.match(url)
    return match.group(0) if match else url


@dataclass
class AnnotatedNode:
    """A bookmark-tree node plus its enrichment and (for folders) sorted children."""

    node: BookmarkNode
    enrichment: EnrichmentData = field(default_factory=EnrichmentData)
    children: Optional[list[AnnotatedNode]] = None

    @property
    def url(self) -> Optional[str]:
        return self.node.url

    @property
    def original_title(self) -> Optional[str]:
        return self.node.title

    @property
    def is_folder(self) -> bool:
        return self.node.url is None


@dataclass
class AnnotatedTab:
    """An open tab plus its enrichment."""

    tab: Tab
    enrichment: EnrichmentData = field(default_factory=EnrichmentData)

    @property
    def url(self) -> Optional[str]:
        return self.tab.url

    @property
    def original_title(self) -> Optional[str]:
        # Tabs keep their relative order on a full tie.
        return None

    @property
    def is_folder(self) -> bool:
        return self.tab.url is None


Annotated = Union[AnnotatedNode, AnnotatedTab]


@dataclass
class DedupContext:
    """Seen-sets for one organize invocation."""

    seen_urls: set[str] = field(default_factory=set)
    seen_keys: set[tuple[str, int, float]] = field(default_factory=set)

    def is_duplicate(self, entry: AnnotatedTab) -> bool:
        """Check *entry* against everything seen so far, then record it."""
        key = entry.enrichment.dedup_key()
        duplicate = entry.url in self.seen_urls or (
            key is not None and key in self.seen_keys
        )
        self.seen_urls.add(entry.url)
        if key is not None:
            self.seen_keys.add(key)
        return duplicate
