"""End-to-end organize operations and the folder utilities around them."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Iterable, Literal, Optional, Sequence

import structlog

from shelf.config import settings
from shelf.db.models import BookmarkNode, Tab
from shelf.exceptions import NodeNotFoundError, NotAContainerError, StoreError
from shelf.organize.annotator import annotate_tabs, annotate_tree
from shelf.organize.cleaner import (
    find_duplicate_tabs,
    prefilter_tree,
    prune_empty_folders,
    remove_adjacent_duplicates,
)
from shelf.organize.comparator import sort_annotated
from shelf.organize.materializer import (
    copy_children,
    materialize_tree,
    reorder_tabs,
    timestamped_title,
)
from shelf.organize.models import AnnotatedTab, DedupContext
from shelf.organize.protocols import LiveExtractionChannel, ResourceStore, TabStore
from shelf.scraper.fetcher import BoundedFetcher, get_fetcher

logger = structlog.get_logger(__name__)

TabScope = Literal["selected", "unselected", "window"]

ROOT_ID = "0"


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------

async def _get_folder(store: ResourceStore, folder_id: str) -> BookmarkNode:
    folder = await store.get_subtree(folder_id)
    if not folder.is_folder:
        raise NotAContainerError(folder_id)
    return folder


async def backup_folder(
    store: ResourceStore,
    folder_id: str,
    now: Optional[datetime] = None,
) -> BookmarkNode:
    """Copy a folder next to itself under a timestamped title."""
    folder = await _get_folder(store, folder_id)
    backup = await store.create(
        folder.parent_id,
        timestamped_title(folder.title, now),
        index=folder.index + 1,
    )
    created = await copy_children(store, folder.children or [], backup.id)
    logger.info("backed up folder", folder_id=folder_id, backup_id=backup.id, created=created)
    return backup


async def organize_folder(
    store: ResourceStore,
    folder_id: str,
    fetcher: Optional[BoundedFetcher] = None,
    *,
    backup: bool = False,
    now: Optional[datetime] = None,
) -> BookmarkNode:
    """Enrich, sort and tidy a bookmark folder, then swap the result in.

    Returns the replacement folder.  It has a new id but sits where the
    original was, under the original's title.

    Raises:
        NotAContainerError: If *folder_id* is a bookmark.
        StoreError: If *folder_id* is the root or sits directly under it;
            those folders cannot be replaced.
        FetchError: If a page fetch fails fatally; the original folder is
            left untouched.
    """
    fetcher = fetcher or get_fetcher()
    folder = await _get_folder(store, folder_id)
    if folder.parent_id in (None, ROOT_ID):
        raise StoreError(f"Cannot organize the fixed folder {folder.title or folder_id!r}")

    if backup:
        await backup_folder(store, folder_id, now)

    annotated = await annotate_tree(prefilter_tree(folder), fetcher)
    remove_adjacent_duplicates(annotated)
    prune_empty_folders(annotated)

    return await materialize_tree(store, annotated, now)


async def merge_folders(
    store: ResourceStore,
    new_title: str,
    folder_ids: Sequence[str],
) -> BookmarkNode:
    """Copy the contents of several folders into one new folder.

    The new folder is placed where the first of the folders (by position)
    sits; the originals are left as they are.
    """
    if not folder_ids:
        raise ValueError("merge_folders() needs at least one folder")

    folders = [await _get_folder(store, folder_id) for folder_id in folder_ids]
    first = min(folders, key=lambda f: f.index)
    merged = await store.create(first.parent_id, new_title, index=first.index)

    created = 0
    for folder in folders:
        created += await copy_children(store, folder.children or [], merged.id)
    logger.info("merged folders", folder_ids=list(folder_ids), merged_id=merged.id, created=created)
    return merged


async def find_folder(
    store: ResourceStore,
    path: Iterable[str],
    root_id: str = ROOT_ID,
) -> BookmarkNode:
    """Follow folder titles from *root_id* and return the full subtree found.

    Raises:
        NodeNotFoundError: If a title along *path* does not exist.
    """
    current_id = root_id
    walked: list[str] = []
    for title in path:
        walked.append(title)
        children = await store.get_children(current_id)
        match = next((c for c in children if c.is_folder and c.title == title), None)
        if match is None:
            raise NodeNotFoundError("/".join(walked))
        current_id = match.id
    return await store.get_subtree(current_id)


def random_walk(root: BookmarkNode, rng: Optional[random.Random] = None) -> BookmarkNode:
    """Wander down from *root*, stopping with equal odds at each folder.

    At every step the walk picks uniformly between each sub-folder and
    stopping where it is.
    """
    rng = rng or random.Random()
    node = root
    while True:
        folders = [child for child in node.children or [] if child.is_folder]
        choice = rng.randrange(len(folders) + 1)
        if choice == len(folders):
            return node
        node = folders[choice]


def random_walk_sample(
    root: BookmarkNode,
    samples: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> list[BookmarkNode]:
    """Run several random walks and return the distinct stops, first seen first."""
    rng = rng or random.Random()
    samples = samples if samples is not None else settings.random_walk_samples
    seen: set[str] = set()
    results: list[BookmarkNode] = []
    for _ in range(samples):
        node = random_walk(root, rng)
        if node.id not in seen:
            seen.add(node.id)
            results.append(node)
    return results


async def open_folder_in_window(
    store: ResourceStore,
    tabs: TabStore,
    folder_id: str,
) -> tuple[int, list[Tab]]:
    """Open every bookmark under a folder as a tab in a new window."""
    folder = await _get_folder(store, folder_id)
    window_id = await tabs.create_window()
    opened = [
        await tabs.create(window_id, leaf.url, leaf.title)  # type: ignore[arg-type]
        for leaf in folder.iter_leaves()
    ]
    return window_id, opened


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------

async def organize_tabs(
    tabs: TabStore,
    entries: Sequence[Tab],
    fetcher: Optional[BoundedFetcher] = None,
    channel: Optional[LiveExtractionChannel] = None,
    window: Optional[Sequence[Tab]] = None,
) -> list[AnnotatedTab]:
    """Sort *entries* in place and close the duplicates among them.

    Pass every tab of the window as *window* when *entries* is only part of
    it; the tabs left out then stay where they are.

    Returns the annotated tabs in their new order, including the ones that
    were closed.
    """
    fetcher = fetcher or get_fetcher()
    annotated = sort_annotated(await annotate_tabs(entries, fetcher, channel))
    await reorder_tabs(tabs, annotated, window)

    duplicates = find_duplicate_tabs(annotated, DedupContext())
    for entry in duplicates:
        await tabs.remove(entry.tab.id)
    logger.info("organized tabs", count=len(annotated), closed=len(duplicates))
    return annotated


async def organize_window(
    tabs: TabStore,
    window_id: int,
    scope: TabScope = "window",
    fetcher: Optional[BoundedFetcher] = None,
    channel: Optional[LiveExtractionChannel] = None,
) -> list[AnnotatedTab]:
    """Organize the selected, unselected or all tabs of a window."""
    window = await tabs.query(window_id=window_id)
    if scope == "window":
        return await organize_tabs(tabs, window, fetcher, channel)

    highlighted = {"selected": True, "unselected": False}[scope]
    entries = [tab for tab in window if tab.highlighted is highlighted]
    return await organize_tabs(tabs, entries, fetcher, channel, window)
