"""Write organized results back to the stores."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

import structlog

from shelf.db.models import BookmarkNode, Tab
from shelf.organize.models import AnnotatedNode, AnnotatedTab
from shelf.organize.protocols import ResourceStore, TabStore

logger = structlog.get_logger(__name__)


def timestamped_title(title: str, now: Optional[datetime] = None) -> str:
    """Return ``"<title> (<ISO-8601 timestamp>)"``."""
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return f"{title} ({stamp})"


async def copy_children(
    store: ResourceStore,
    source: Sequence[BookmarkNode] | Sequence[AnnotatedNode],
    parent_id: str,
) -> int:
    """Recreate *source* (and everything below it) under *parent_id*.

    Accepts raw or annotated nodes.  Nodes are created one at a time, each
    parent before its children and siblings in the given order.  Returns
    the number of nodes created.
    """
    created = 0
    stack = [(item, parent_id) for item in reversed(source)]
    while stack:
        item, target_id = stack.pop()
        node = item.node if isinstance(item, AnnotatedNode) else item
        new_node = await store.create(target_id, node.title, url=node.url)
        created += 1
        if item.children:
            stack.extend((child, new_node.id) for child in reversed(item.children))
    return created


async def materialize_tree(
    store: ResourceStore,
    root: AnnotatedNode,
    now: Optional[datetime] = None,
) -> BookmarkNode:
    """Replace the folder behind *root* with a copy laid out like *root*.

    The replacement is built beside the original under a timestamped title,
    moved into the original's position, and only then is the original
    removed and the replacement renamed.  A failure part-way leaves the
    original in place.
    """
    original = await store.get(root.node.id)
    staging = await store.create(
        original.parent_id,
        timestamped_title(original.title, now),
        index=original.index + 1,
    )
    logger.info("building replacement", original_id=original.id, staging_id=staging.id)

    created = await copy_children(store, root.children or [], staging.id)

    original = await store.get(original.id)
    await store.move(staging.id, original.parent_id, original.index)
    await store.remove_tree(original.id)
    replacement = await store.update(staging.id, title=original.title)
    logger.info(
        "replaced folder",
        original_id=original.id,
        replacement_id=replacement.id,
        created=created,
    )
    return replacement


def plan_tab_moves(
    entries: Sequence[AnnotatedTab],
    window: Optional[Sequence[Tab]] = None,
) -> list[tuple[int, int]]:
    """Return ``(tab_id, index)`` moves that lay *entries* out in order.

    The slots the tabs currently occupy are reused.  Without *window* the
    entries are taken to be every tab of the window: moves run from the last
    sorted entry to the first, each into the highest remaining slot, so a
    move never shifts a tab that is still waiting to be placed.

    With *window* (all of the window's tabs) the entries may be a subset
    interleaved with other tabs.  Those other tabs keep their positions and
    the moves are planned against the whole window.
    """
    if window is None:
        slots = sorted((entry.tab.index for entry in entries), reverse=True)
        return [
            (entries[i].tab.id, slots[len(entries) - 1 - i])
            for i in range(len(entries) - 1, -1, -1)
        ]

    current = [tab.id for tab in sorted(window, key=lambda t: t.index)]
    target = list(current)
    positions = sorted(current.index(entry.tab.id) for entry in entries)
    for pos, entry in zip(positions, entries):
        target[pos] = entry.tab.id

    moves: list[tuple[int, int]] = []
    for pos, tab_id in enumerate(target):
        if current[pos] != tab_id:
            current.remove(tab_id)
            current.insert(pos, tab_id)
            moves.append((tab_id, pos))
    return moves


async def reorder_tabs(
    tabs: TabStore,
    entries: Sequence[AnnotatedTab],
    window: Optional[Sequence[Tab]] = None,
) -> None:
    """Move the tabs behind *entries* into that order, one at a time."""
    for tab_id, index in plan_tab_moves(entries, window):
        await tabs.move(tab_id, index)
