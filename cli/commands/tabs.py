"""Tab commands: open, inspect and organize the tabs of a window."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from shelf.db import get_connection, init_db
from shelf.db import tabs as tab_db
from shelf.db.store import SnapshotExtractionChannel, SqliteTabStore
from shelf.exceptions import ShelfError
from shelf.organize import organize_window

from cli.context import load_context, resolve_window, save_context
from cli.rendering import render_annotated_tabs, render_tabs

tabs_app = typer.Typer(help="Open, list and organize tabs.", no_args_is_help=True)

_SCOPES = ("selected", "unselected", "window")


@tabs_app.command("window")
def tabs_window() -> None:
    """Open a new window and make it the active one."""
    conn = get_connection()
    init_db(conn)
    try:
        window_id = tab_db.create_window(conn)
    finally:
        conn.close()
    ctx = load_context()
    ctx.active_window_id = window_id
    save_context(ctx)
    typer.echo(f"🪟 Window {window_id} is now active")


@tabs_app.command("open")
def tabs_open(
    url: str = typer.Argument(..., help="URL to open."),
    title: str = typer.Option("", "--title", help="Tab title."),
    selected: bool = typer.Option(False, "--selected", help="Mark the tab as highlighted."),
    window_id: Optional[int] = typer.Option(None, "--window-id", help="Window (default: active)."),
) -> None:
    """Open a tab at the end of a window."""
    window = resolve_window(window_id)
    conn = get_connection()
    init_db(conn)
    try:
        tab = tab_db.create_tab(conn, window, url, title, highlighted=selected)
        typer.echo(f"➕ Opened tab {tab.id} at position {tab.index}")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@tabs_app.command("snapshot")
def tabs_snapshot(
    tab_id: int = typer.Argument(..., help="Tab to attach the page to."),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved HTML of the rendered page."),
) -> None:
    """Attach the rendered page a tab shows, for in-page extraction."""
    conn = get_connection()
    init_db(conn)
    try:
        tab_db.set_snapshot(conn, tab_id, path.read_text(encoding="utf-8"))
        typer.echo(f"📸 Snapshot stored for tab {tab_id}")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@tabs_app.command("list")
def tabs_list(
    window_id: Optional[int] = typer.Option(None, "--window-id", help="Window (default: active)."),
) -> None:
    """List the tabs of a window."""
    window = resolve_window(window_id)
    conn = get_connection()
    init_db(conn)
    try:
        tabs = tab_db.query_tabs(conn, window_id=window)
    finally:
        conn.close()
    if not tabs:
        typer.echo("No tabs open.")
        return
    typer.echo(render_tabs(tabs))


@tabs_app.command("organize")
def tabs_organize(
    scope: str = typer.Option("window", "--scope", help="selected | unselected | window"),
    window_id: Optional[int] = typer.Option(None, "--window-id", help="Window (default: active)."),
) -> None:
    """Sort tabs by ratings and close duplicates."""
    if scope not in _SCOPES:
        typer.echo(f"❌ Unknown scope {scope!r}. Use: {' | '.join(_SCOPES)}")
        raise typer.Exit(code=1)

    window = resolve_window(window_id)
    conn = get_connection()
    init_db(conn)
    try:
        typer.echo(f"📑 Organizing {scope} tabs of window {window} …")
        entries = asyncio.run(
            organize_window(
                SqliteTabStore(conn),
                window,
                scope,  # type: ignore[arg-type]
                channel=SnapshotExtractionChannel(conn),
            )
        )
        typer.echo(render_annotated_tabs(entries))
        closed = sum(1 for e in entries if tab_db.get_tab(conn, e.tab.id) is None)
        typer.echo(f"✅ Organized {len(entries)} tabs ({closed} duplicates closed)")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
