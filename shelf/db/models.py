"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class BookmarkNode:
    """A bookmark (``url`` set) or a folder (``url`` is ``None``)."""

    id: str
    parent_id: Optional[str]
    index: int
    title: str
    url: Optional[str] = None
    children: Optional[list[BookmarkNode]] = None

    @property
    def is_folder(self) -> bool:
        return self.url is None

    def iter_leaves(self):
        """Yield every bookmark below this node, depth-first in stored order."""
        stack = [self]
        while stack:
            node = stack.pop()
            if not node.is_folder:
                yield node
                continue
            stack.extend(reversed(node.children or []))


@dataclass
class Tab:
    id: int
    window_id: int
    index: int
    title: str
    url: str
    highlighted: bool = False
    snapshot_html: Optional[str] = field(default=None, repr=False)
