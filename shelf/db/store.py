"""Async store adapters over the SQLite CRUD functions.

These satisfy the protocols in :mod:`shelf.organize.protocols` so the
organize engine never touches a connection directly.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from shelf.db import bookmarks, tabs
from shelf.db.models import BookmarkNode, Tab
from shelf.exceptions import LiveExtractionError, NodeNotFoundError
from shelf.scraper.extractor import extract_from_html
from shelf.scraper.models import EnrichmentData


class SqliteBookmarkStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    async def get(self, node_id: str) -> BookmarkNode:
        node = bookmarks.get_bookmark(self.conn, node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    async def get_children(self, node_id: str) -> list[BookmarkNode]:
        return bookmarks.get_children(self.conn, node_id)

    async def get_subtree(self, node_id: str) -> BookmarkNode:
        return bookmarks.get_subtree(self.conn, node_id)

    async def create(
        self,
        parent_id: str,
        title: str,
        url: Optional[str] = None,
        index: Optional[int] = None,
    ) -> BookmarkNode:
        return bookmarks.create_bookmark(self.conn, parent_id, title, url=url, index=index)

    async def move(self, node_id: str, parent_id: str, index: int) -> BookmarkNode:
        return bookmarks.move_bookmark(self.conn, node_id, parent_id, index)

    async def remove(self, node_id: str) -> None:
        bookmarks.remove_bookmark(self.conn, node_id)

    async def remove_tree(self, node_id: str) -> None:
        bookmarks.remove_tree(self.conn, node_id)

    async def update(self, node_id: str, **fields: Any) -> BookmarkNode:
        return bookmarks.update_bookmark(self.conn, node_id, **fields)


class SqliteTabStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    async def query(
        self,
        window_id: Optional[int] = None,
        highlighted: Optional[bool] = None,
    ) -> list[Tab]:
        return tabs.query_tabs(self.conn, window_id=window_id, highlighted=highlighted)

    async def create(self, window_id: int, url: str, title: str = "") -> Tab:
        return tabs.create_tab(self.conn, window_id, url, title)

    async def create_window(self) -> int:
        return tabs.create_window(self.conn)

    async def move(self, tab_id: int, index: int) -> Tab:
        return tabs.move_tab(self.conn, tab_id, index)

    async def remove(self, tab_id: int) -> None:
        tabs.remove_tab(self.conn, tab_id)


class SnapshotExtractionChannel:
    """Read a tab's metadata from the page snapshot stored with it.

    This stands in for asking the live page: the snapshot is what the tab
    rendered, so it is parsed with the looser in-page rules.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    async def request_extraction(self, tab: Tab) -> Optional[EnrichmentData]:
        try:
            current = tabs.get_tab(self.conn, tab.id)
        except sqlite3.Error as exc:
            raise LiveExtractionError(f"Cannot read tab {tab.id}: {exc}") from exc
        if current is None:
            raise LiveExtractionError(f"Tab {tab.id} is closed")
        if not current.snapshot_html:
            return None
        return extract_from_html(current.snapshot_html, live=True)
