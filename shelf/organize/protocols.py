"""Collaborators the organize engine talks to.

Every method is a coroutine: store mutations and live extraction requests
are suspension points for the cooperative scheduler.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from shelf.db.models import BookmarkNode, Tab
from shelf.scraper.models import EnrichmentData


class ResourceStore(Protocol):
    """Bookmark tree storage."""

    async def get(self, node_id: str) -> BookmarkNode: ...

    async def get_children(self, node_id: str) -> list[BookmarkNode]: ...

    async def get_subtree(self, node_id: str) -> BookmarkNode: ...

    async def create(
        self,
        parent_id: str,
        title: str,
        url: Optional[str] = None,
        index: Optional[int] = None,
    ) -> BookmarkNode: ...

    async def move(self, node_id: str, parent_id: str, index: int) -> BookmarkNode: ...

    async def remove(self, node_id: str) -> None: ...

    async def remove_tree(self, node_id: str) -> None: ...

    async def update(self, node_id: str, **fields: Any) -> BookmarkNode: ...


class TabStore(Protocol):
    """The set of open tabs, grouped by window."""

    async def query(
        self,
        window_id: Optional[int] = None,
        highlighted: Optional[bool] = None,
    ) -> list[Tab]: ...

    async def create(self, window_id: int, url: str, title: str = "") -> Tab: ...

    async def create_window(self) -> int: ...

    async def move(self, tab_id: int, index: int) -> Tab: ...

    async def remove(self, tab_id: int) -> None: ...


class LiveExtractionChannel(Protocol):
    """Ask an open tab to extract its own metadata.

    Returns ``None`` when the tab has nothing to report; raises
    :class:`~shelf.exceptions.LiveExtractionError` when the request fails.
    """

    async def request_extraction(self, tab: Tab) -> Optional[EnrichmentData]: ...
