"""Bookmark commands: build, inspect and organize folders."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import typer

from shelf.db import get_connection, init_db
from shelf.db.store import SqliteBookmarkStore, SqliteTabStore
from shelf.exceptions import ShelfError
from shelf.organize import (
    backup_folder,
    find_folder,
    merge_folders,
    open_folder_in_window,
    organize_folder,
    random_walk_sample,
)

from cli.context import load_context, save_context
from cli.rendering import render_tree

bookmarks_app = typer.Typer(help="Manage and organize bookmark folders.", no_args_is_help=True)


@bookmarks_app.command("add-folder")
def bookmarks_add_folder(
    title: str = typer.Argument(..., help="Folder title."),
    parent: str = typer.Option("1", "--parent", help="Parent folder id (default: Bookmarks bar)."),
    index: Optional[int] = typer.Option(None, "--index", help="Position among siblings."),
) -> None:
    """Create a folder."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(store.create(parent, title, index=index))
        typer.echo(f"📁 Created folder: {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("add")
def bookmarks_add(
    url: str = typer.Argument(..., help="Bookmark URL."),
    title: str = typer.Option("", "--title", help="Bookmark title (defaults to the URL)."),
    parent: str = typer.Option("1", "--parent", help="Parent folder id (default: Bookmarks bar)."),
    index: Optional[int] = typer.Option(None, "--index", help="Position among siblings."),
) -> None:
    """Create a bookmark."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(store.create(parent, title or url, url=url, index=index))
        typer.echo(f"🔖 Created bookmark: {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("tree")
def bookmarks_tree(
    folder_id: str = typer.Argument("0", help="Folder to show (default: everything)."),
) -> None:
    """Show a folder as a tree."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        typer.echo(render_tree(asyncio.run(store.get_subtree(folder_id))))
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("find")
def bookmarks_find(
    path: List[str] = typer.Argument(..., help="Folder titles from the root, e.g. 'Bookmarks bar' books."),
) -> None:
    """Look a folder up by its title path."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(find_folder(store, path))
        typer.echo(f"📁 {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("remove")
def bookmarks_remove(
    node_id: str = typer.Argument(..., help="Bookmark or folder id."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Remove a bookmark, or a folder with everything in it."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(store.get(node_id))
        if not yes and not typer.confirm(f"Remove {node.title!r}?"):
            raise typer.Abort()
        if node.is_folder:
            asyncio.run(store.remove_tree(node_id))
        else:
            asyncio.run(store.remove(node_id))
        typer.echo(f"🗑️ Removed: {node.title}")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("backup")
def bookmarks_backup(
    folder_id: str = typer.Argument(..., help="Folder to back up."),
) -> None:
    """Copy a folder next to itself under a timestamped title."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(backup_folder(store, folder_id))
        typer.echo(f"💾 Backup created: {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("merge")
def bookmarks_merge(
    folder_ids: List[str] = typer.Argument(..., help="Folders to merge, in order."),
    title: str = typer.Option(..., "--title", help="Title of the merged folder."),
) -> None:
    """Copy several folders' contents into one new folder."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        node = asyncio.run(merge_folders(store, title, folder_ids))
        typer.echo(f"📁 Merged into: {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("organize")
def bookmarks_organize(
    folder_id: str = typer.Argument(..., help="Folder to organize."),
    backup: bool = typer.Option(True, "--backup/--no-backup", help="Back the folder up first."),
) -> None:
    """Fetch ratings, sort, de-duplicate and rebuild a folder."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        typer.echo(f"📚 Organizing folder {folder_id} …")
        node = asyncio.run(organize_folder(store, folder_id, backup=backup))
        typer.echo(f"✅ Organized: {node.title} [{node.id}]")
        typer.echo(render_tree(asyncio.run(store.get_subtree(node.id))))
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("random-walk")
def bookmarks_random_walk(
    folder_id: str = typer.Argument(..., help="Folder to start from."),
    samples: Optional[int] = typer.Option(None, "--samples", help="Number of walks."),
) -> None:
    """Suggest folders by wandering down from a folder at random."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        root = asyncio.run(store.get_subtree(folder_id))
        for node in random_walk_sample(root, samples):
            typer.echo(f" - {node.title} [{node.id}]")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()


@bookmarks_app.command("open-all")
def bookmarks_open_all(
    folder_id: str = typer.Argument(..., help="Folder to open."),
) -> None:
    """Open every bookmark in a folder as tabs in a new window."""
    conn = get_connection()
    init_db(conn)
    store = SqliteBookmarkStore(conn)
    try:
        window_id, opened = asyncio.run(
            open_folder_in_window(store, SqliteTabStore(conn), folder_id)
        )
        ctx = load_context()
        ctx.active_window_id = window_id
        save_context(ctx)
        typer.echo(f"🪟 Opened {len(opened)} tabs in window {window_id}")
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
