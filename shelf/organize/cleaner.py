"""Duplicate removal and empty-folder pruning.

Tree passes walk with an explicit stack so arbitrarily deep folders do not
hit the recursion limit.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator, Sequence

import structlog

from shelf.db.models import BookmarkNode
from shelf.organize.models import AnnotatedNode, AnnotatedTab, DedupContext, normalize_url

logger = structlog.get_logger(__name__)


def _iter_folders(root: AnnotatedNode) -> Iterator[AnnotatedNode]:
    """Yield *root* and every folder below it, parents before children."""
    stack = [root]
    while stack:
        folder = stack.pop()
        yield folder
        stack.extend(
            child for child in reversed(folder.children or []) if child.is_folder
        )


# ---------------------------------------------------------------------------
# Annotated tree
# ---------------------------------------------------------------------------

def remove_adjacent_duplicates(root: AnnotatedNode) -> int:
    """Drop a bookmark whose normalized URL equals its preceding sibling's.

    Expects every folder's children to be sorted already, so duplicates sit
    next to each other.  Returns the number of bookmarks removed.
    """
    removed = 0
    for folder in _iter_folders(root):
        children = folder.children or []
        kept: list[AnnotatedNode] = []
        for pos, child in enumerate(children):
            if pos > 0 and child.url is not None:
                previous = children[pos - 1].url
                if previous is not None and normalize_url(previous) == normalize_url(child.url):
                    removed += 1
                    continue
            kept.append(child)
        folder.children = kept
    logger.debug("removed duplicate bookmarks", count=removed)
    return removed


def prune_empty_folders(root: AnnotatedNode) -> int:
    """Remove folders left without any bookmark below them.

    Folders are visited children-first so pruning cascades upwards.  *root*
    itself is kept even when it ends up empty.  Returns the number of
    folders removed.
    """
    removed = 0
    for folder in reversed(list(_iter_folders(root))):
        children = folder.children or []
        folder.children = [
            child for child in children if not (child.is_folder and not child.children)
        ]
        removed += len(children) - len(folder.children)
    logger.debug("pruned empty folders", count=removed)
    return removed


# ---------------------------------------------------------------------------
# Raw tree (before annotation)
# ---------------------------------------------------------------------------

def prefilter_tree(root: BookmarkNode) -> BookmarkNode:
    """Return a copy of *root* without in-folder duplicates or empty folders.

    Within a folder the first bookmark for each normalized URL wins, in
    stored order.  Running this before annotation keeps duplicate URLs from
    being fetched twice.  *root* is not modified.
    """
    copy_root = replace(root, children=list(root.children or []))
    folders = [copy_root]
    stack = [copy_root]
    while stack:
        folder = stack.pop()
        seen: set[str] = set()
        children: list[BookmarkNode] = []
        for child in folder.children or []:
            if child.is_folder:
                child = replace(child, children=list(child.children or []))
                stack.append(child)
                folders.append(child)
            else:
                key = normalize_url(child.url)
                if key in seen:
                    continue
                seen.add(key)
            children.append(child)
        folder.children = children

    # Children were appended after their parents, so reverse order is bottom-up.
    for folder in reversed(folders):
        folder.children = [
            child
            for child in folder.children or []
            if not (child.is_folder and not child.children)
        ]
    return copy_root


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------

def find_duplicate_tabs(
    entries: Sequence[AnnotatedTab],
    context: DedupContext,
) -> list[AnnotatedTab]:
    """Return the tabs in *entries* that repeat an earlier tab.

    A tab repeats an earlier one when it has the same URL, or when both have
    full metadata with the same ``(title, num_ratings, rating)``.  *entries*
    should already be in comparator order so the best copy is kept.
    """
    return [entry for entry in entries if context.is_duplicate(entry)]
