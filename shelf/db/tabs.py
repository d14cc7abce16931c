"""CRUD operations for the ``windows`` and ``tabs`` tables."""

from __future__ import annotations

import sqlite3
from typing import Optional

from shelf.db.models import Tab
from shelf.exceptions import StoreError


def _row_to_tab(row: sqlite3.Row) -> Tab:
    return Tab(
        id=row["id"],
        window_id=row["window_id"],
        index=row["position"],
        title=row["title"],
        url=row["url"],
        highlighted=bool(row["highlighted"]),
        snapshot_html=row["snapshot_html"],
    )


def _window_tab_ids(conn: sqlite3.Connection, window_id: int) -> list[int]:
    rows = conn.execute(
        "SELECT id FROM tabs WHERE window_id = ? ORDER BY position", (window_id,)
    ).fetchall()
    return [r["id"] for r in rows]


def _renumber(conn: sqlite3.Connection, ids: list[int]) -> None:
    conn.executemany(
        "UPDATE tabs SET position = ? WHERE id = ?",
        [(pos, tab_id) for pos, tab_id in enumerate(ids)],
    )


def _require(conn: sqlite3.Connection, tab_id: int) -> Tab:
    tab = get_tab(conn, tab_id)
    if tab is None:
        raise StoreError(f"Tab not found: {tab_id!r}")
    return tab


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_window(conn: sqlite3.Connection) -> int:
    """Open a new, empty window and return its id."""
    with conn:
        cursor = conn.execute("INSERT INTO windows DEFAULT VALUES")
    return cursor.lastrowid  # type: ignore[return-value]


def latest_window(conn: sqlite3.Connection) -> Optional[int]:
    """Return the most recently created window id, or ``None``."""
    row = conn.execute("SELECT MAX(id) FROM windows").fetchone()
    return row[0] if row else None


def get_tab(conn: sqlite3.Connection, tab_id: int) -> Optional[Tab]:
    row = conn.execute("SELECT * FROM tabs WHERE id = ?", (tab_id,)).fetchone()
    return _row_to_tab(row) if row else None


def create_tab(
    conn: sqlite3.Connection,
    window_id: int,
    url: str,
    title: str = "",
    highlighted: bool = False,
    snapshot_html: Optional[str] = None,
) -> Tab:
    """Open a tab at the end of *window_id*."""
    if conn.execute("SELECT 1 FROM windows WHERE id = ?", (window_id,)).fetchone() is None:
        raise StoreError(f"Window not found: {window_id!r}")

    with conn:
        position = len(_window_tab_ids(conn, window_id))
        cursor = conn.execute(
            """
            INSERT INTO tabs (window_id, position, title, url, highlighted, snapshot_html)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (window_id, position, title, url, int(highlighted), snapshot_html),
        )
    return get_tab(conn, cursor.lastrowid)  # type: ignore[arg-type, return-value]


def query_tabs(
    conn: sqlite3.Connection,
    window_id: Optional[int] = None,
    highlighted: Optional[bool] = None,
) -> list[Tab]:
    """Return tabs ordered by window and position, optionally filtered."""
    clauses: list[str] = []
    params: list[object] = []
    if window_id is not None:
        clauses.append("window_id = ?")
        params.append(window_id)
    if highlighted is not None:
        clauses.append("highlighted = ?")
        params.append(int(highlighted))

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = conn.execute(
        f"SELECT * FROM tabs {where} ORDER BY window_id, position", params  # noqa: S608
    ).fetchall()
    return [_row_to_tab(r) for r in rows]


def move_tab(conn: sqlite3.Connection, tab_id: int, index: int) -> Tab:
    """Move a tab to *index* (its final position) within its window."""
    tab = _require(conn, tab_id)
    with conn:
        ids = [i for i in _window_tab_ids(conn, tab.window_id) if i != tab_id]
        ids.insert(max(0, min(index, len(ids))), tab_id)
        _renumber(conn, ids)
    return get_tab(conn, tab_id)  # type: ignore[return-value]


def set_snapshot(conn: sqlite3.Connection, tab_id: int, html: Optional[str]) -> Tab:
    """Store (or clear) the rendered page a tab currently shows."""
    _require(conn, tab_id)
    with conn:
        conn.execute("UPDATE tabs SET snapshot_html = ? WHERE id = ?", (html, tab_id))
    return get_tab(conn, tab_id)  # type: ignore[return-value]


def remove_tab(conn: sqlite3.Connection, tab_id: int) -> None:
    """Close a tab.  A no-op if it is already gone."""
    tab = get_tab(conn, tab_id)
    if tab is None:
        return
    with conn:
        conn.execute("DELETE FROM tabs WHERE id = ?", (tab_id,))
        _renumber(conn, _window_tab_ids(conn, tab.window_id))
