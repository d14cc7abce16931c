"""Attach enrichment data to bookmark trees and tab lists.

Fetches are issued together; the only thing that bounds network use is the
fetcher's semaphore.  A fatal fetch cancels every fetch still pending.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Iterable, Optional, Sequence, TypeVar

import structlog

from shelf.config import settings
from shelf.db.models import BookmarkNode, Tab
from shelf.exceptions import LiveExtractionError
from shelf.organize.comparator import sort_annotated
from shelf.organize.models import AnnotatedNode, AnnotatedTab
from shelf.organize.protocols import LiveExtractionChannel
from shelf.scraper.fetcher import BoundedFetcher
from shelf.scraper.models import EnrichmentData

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def _gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Like :func:`asyncio.gather`, but a failure cancels the siblings.

    The unfinished tasks are cancelled and awaited before the error is
    re-raised, so no fetch starts after the operation has failed.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def annotate_tree(node: BookmarkNode, fetcher: BoundedFetcher) -> AnnotatedNode:
    """Annotate *node* and everything below it.

    Every bookmark on the target site is fetched concurrently; the rest are
    marked not eligible.  The annotated tree is then assembled bottom-up and
    each folder's children are sorted, so every level of the result is in
    comparator order.
    """
    targets = [leaf for leaf in node.iter_leaves() if settings.is_target(leaf.url)]
    results = await _gather_or_cancel(
        fetcher.fetch_enrichment(leaf.url) for leaf in targets  # type: ignore[arg-type]
    )
    fetched = {id(leaf): data for leaf, data in zip(targets, results)}

    # Parents come before their children in preorder.
    preorder: list[BookmarkNode] = []
    stack = [node]
    while stack:
        current = stack.pop()
        preorder.append(current)
        stack.extend(current.children or [])

    annotated: dict[int, AnnotatedNode] = {}
    for current in reversed(preorder):
        if current.is_folder:
            children = [annotated[id(child)] for child in current.children or []]
            annotated[id(current)] = AnnotatedNode(
                node=current,
                enrichment=EnrichmentData.not_eligible(),
                children=sort_annotated(children),
            )
        else:
            annotated[id(current)] = AnnotatedNode(
                node=current,
                enrichment=fetched.get(id(current), EnrichmentData.not_eligible()),
            )
    return annotated[id(node)]


async def _annotate_tab(
    tab: Tab,
    fetcher: BoundedFetcher,
    channel: Optional[LiveExtractionChannel],
) -> AnnotatedTab:
    if not settings.is_target(tab.url):
        return AnnotatedTab(tab=tab, enrichment=EnrichmentData.not_eligible())

    if tab.title == settings.not_found_title:
        return AnnotatedTab(tab=tab, enrichment=EnrichmentData.not_found())

    enrichment: Optional[EnrichmentData] = None
    if channel is not None:
        try:
            enrichment = await channel.request_extraction(tab)
        except LiveExtractionError as exc:
            logger.info("live extraction failed, fetching", tab_id=tab.id, error=str(exc))

    if enrichment is None:
        enrichment = await fetcher.fetch_enrichment(tab.url)
    return AnnotatedTab(tab=tab, enrichment=enrichment)


async def annotate_tabs(
    tabs: Sequence[Tab],
    fetcher: BoundedFetcher,
    channel: Optional[LiveExtractionChannel] = None,
) -> list[AnnotatedTab]:
    """Annotate every tab concurrently, preserving input order.

    A tab first asks *channel* to read its rendered page; the page is only
    fetched when that fails or returns nothing.
    """
    return await _gather_or_cancel(_annotate_tab(tab, fetcher, channel) for tab in tabs)
