"""CRUD operations for the ``bookmarks`` table.

Sibling positions are kept dense (``0..n-1``); every write that changes a
folder's membership renumbers it.
"""

from __future__ import annotations

import sqlite3
import uuid
from typing import Any, Optional

from shelf.db.models import BookmarkNode
from shelf.exceptions import NodeNotFoundError, StoreError

ROOT_ID = "0"

# The root plus the two folders seeded under it.  They can be filled but
# not removed or moved, and the root takes no other children.
FIXED_ROOTS = frozenset({ROOT_ID, "1", "2"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_node(row: sqlite3.Row) -> BookmarkNode:
    return BookmarkNode(
        id=row["id"],
        parent_id=row["parent_id"],
        index=row["position"],
        title=row["title"],
        url=row["url"],
        children=[] if row["url"] is None else None,
    )


def _sibling_ids(conn: sqlite3.Connection, parent_id: str) -> list[str]:
    rows = conn.execute(
        "SELECT id FROM bookmarks WHERE parent_id = ? ORDER BY position",
        (parent_id,),
    ).fetchall()
    return [r["id"] for r in rows]


def _renumber(conn: sqlite3.Connection, ids: list[str]) -> None:
    conn.executemany(
        "UPDATE bookmarks SET position = ? WHERE id = ?",
        [(pos, node_id) for pos, node_id in enumerate(ids)],
    )


def _clamp(index: Optional[int], size: int) -> int:
    if index is None:
        return size
    return max(0, min(index, size))


def _require(conn: sqlite3.Connection, node_id: str) -> BookmarkNode:
    node = get_bookmark(conn, node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    return node


def _require_folder(conn: sqlite3.Connection, node_id: str) -> BookmarkNode:
    node = _require(conn, node_id)
    if not node.is_folder:
        raise StoreError(f"Cannot hold children, {node_id!r} is a bookmark")
    return node


def _refuse_root_child(parent_id: str) -> None:
    if parent_id == ROOT_ID:
        raise StoreError("The root folder only holds the fixed folders")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_bookmark(conn: sqlite3.Connection, node_id: str) -> Optional[BookmarkNode]:
    """Fetch a single node (without children).  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM bookmarks WHERE id = ?", (node_id,)).fetchone()
    return _row_to_node(row) if row else None


def get_children(conn: sqlite3.Connection, node_id: str) -> list[BookmarkNode]:
    """Return the direct children of a folder, in position order."""
    _require(conn, node_id)
    rows = conn.execute(
        "SELECT * FROM bookmarks WHERE parent_id = ? ORDER BY position",
        (node_id,),
    ).fetchall()
    return [_row_to_node(r) for r in rows]


def get_subtree(conn: sqlite3.Connection, node_id: str) -> BookmarkNode:
    """Return *node_id* with its ``children`` filled in all the way down.

    Raises:
        NodeNotFoundError: If ``node_id`` does not exist.
    """
    rows = conn.execute(
        """
        WITH RECURSIVE sub(id) AS (
            SELECT id FROM bookmarks WHERE id = ?
            UNION ALL
            SELECT b.id FROM bookmarks b JOIN sub ON b.parent_id = sub.id
        )
        SELECT * FROM bookmarks WHERE id IN (SELECT id FROM sub)
        ORDER BY parent_id, position
        """,
        (node_id,),
    ).fetchall()
    if not rows:
        raise NodeNotFoundError(node_id)

    nodes = {r["id"]: _row_to_node(r) for r in rows}
    for node in nodes.values():
        if node.id != node_id and node.parent_id in nodes:
            nodes[node.parent_id].children.append(node)  # type: ignore[union-attr]
    for node in nodes.values():
        if node.children:
            node.children.sort(key=lambda n: n.index)
    return nodes[node_id]


def create_bookmark(
    conn: sqlite3.Connection,
    parent_id: str,
    title: str,
    url: Optional[str] = None,
    index: Optional[int] = None,
    node_id: Optional[str] = None,
) -> BookmarkNode:
    """Insert a folder (``url=None``) or bookmark under *parent_id*.

    Args:
        conn: Open DB connection.
        parent_id: Folder to create the node in.
        title: Display name.
        url: Bookmark address; ``None`` creates a folder.
        index: Position among the siblings; appended when omitted.  Out of
            range values are clamped.
        node_id: Explicit id override (auto-generated when omitted).

    Raises:
        NodeNotFoundError: If the parent does not exist.
        StoreError: If the parent is a bookmark or the root.
    """
    _require_folder(conn, parent_id)
    _refuse_root_child(parent_id)
    nid = node_id or str(uuid.uuid4())

    with conn:
        ids = _sibling_ids(conn, parent_id)
        ids.insert(_clamp(index, len(ids)), nid)
        conn.execute(
            "INSERT INTO bookmarks (id, parent_id, position, title, url) VALUES (?, ?, ?, ?, ?)",
            (nid, parent_id, len(ids), title, url),
        )
        _renumber(conn, ids)

    return get_bookmark(conn, nid)  # type: ignore[return-value]


def move_bookmark(
    conn: sqlite3.Connection,
    node_id: str,
    parent_id: str,
    index: int,
) -> BookmarkNode:
    """Move a node to *index* within *parent_id*.

    The node is taken out of its current folder first, so *index* is its
    final position in the destination.

    Raises:
        NodeNotFoundError: If either node does not exist.
        StoreError: If the destination is a bookmark, the root or lies
            inside the node, or if the node is one of the fixed roots.
    """
    node = _require(conn, node_id)
    if node_id in FIXED_ROOTS:
        raise StoreError(f"Cannot move the fixed folder {node_id!r}")
    _require_folder(conn, parent_id)
    _refuse_root_child(parent_id)

    ancestor: Optional[str] = parent_id
    while ancestor is not None:
        if ancestor == node_id:
            raise StoreError(f"Cannot move {node_id!r} into itself")
        parent = get_bookmark(conn, ancestor)
        ancestor = parent.parent_id if parent else None

    with conn:
        if node.parent_id is not None:
            old_ids = [i for i in _sibling_ids(conn, node.parent_id) if i != node_id]
            _renumber(conn, old_ids)
        new_ids = [i for i in _sibling_ids(conn, parent_id) if i != node_id]
        new_ids.insert(_clamp(index, len(new_ids)), node_id)
        conn.execute(
            "UPDATE bookmarks SET parent_id = ? WHERE id = ?", (parent_id, node_id)
        )
        _renumber(conn, new_ids)

    return get_bookmark(conn, node_id)  # type: ignore[return-value]


def update_bookmark(conn: sqlite3.Connection, node_id: str, **kwargs: Any) -> BookmarkNode:
    """Update ``title`` and/or ``url`` on a node.

    Raises:
        NodeNotFoundError: If ``node_id`` does not exist.
        ValueError: If no valid fields are given.
    """
    _require(conn, node_id)

    allowed = {"title", "url"}
    updates: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key not in allowed:
            raise ValueError(f"Cannot update field {key!r}")
        updates[key] = value

    if not updates:
        raise ValueError("No valid fields provided to update_bookmark()")

    set_clause = ", ".join(f"{col} = ?" for col in updates)
    values = list(updates.values()) + [node_id]

    with conn:
        conn.execute(
            f"UPDATE bookmarks SET {set_clause} WHERE id = ?", values  # noqa: S608
        )

    return get_bookmark(conn, node_id)  # type: ignore[return-value]


def remove_bookmark(conn: sqlite3.Connection, node_id: str) -> None:
    """Remove a bookmark or an empty folder.

    Raises:
        NodeNotFoundError: If ``node_id`` does not exist.
        StoreError: If the node is a folder that still has children.
    """
    node = _require(conn, node_id)
    if node.is_folder and _sibling_ids(conn, node_id):
        raise StoreError(f"Folder {node_id!r} is not empty")
    _delete(conn, node)


def remove_tree(conn: sqlite3.Connection, node_id: str) -> None:
    """Remove a node together with everything below it."""
    _delete(conn, _require(conn, node_id))


def _delete(conn: sqlite3.Connection, node: BookmarkNode) -> None:
    if node.id in FIXED_ROOTS:
        raise StoreError(f"Cannot remove the fixed folder {node.title or node.id!r}")
    with conn:
        conn.execute("DELETE FROM bookmarks WHERE id = ?", (node.id,))
        _renumber(conn, _sibling_ids(conn, node.parent_id))
