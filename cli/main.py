"""shelf CLI — entry-point for all organizer operations.

Usage:
    python cli/main.py --help

Command groups:
    db         → database setup
    scrape     → fetch one product page and show what was extracted
    bookmarks  → build, inspect and organize bookmark folders
    tabs       → open, inspect and organize tabs
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from shelf.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio

import typer

from shelf.config import settings
from shelf.db import get_connection, init_db
from shelf.exceptions import ShelfError
from shelf.logging import configure_logging

from cli.commands.bookmarks import bookmarks_app
from cli.commands.tabs import tabs_app
from cli.rendering import describe_enrichment

app = typer.Typer(
    name="shelf",
    help="Sort bookmark folders and tabs by product ratings.",
    no_args_is_help=True,
)
app.add_typer(bookmarks_app, name="bookmarks")
app.add_typer(tabs_app, name="tabs")


@app.callback()
def main(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Log verbosity."),
) -> None:
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Scrape command
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Product page URL."),
) -> None:
    """Fetch a product page and print the extracted ratings."""
    from shelf.scraper import get_fetcher

    typer.echo(f"[scrape] Fetching {url!r} …")
    try:
        data = asyncio.run(get_fetcher().fetch_enrichment(url))
    except ShelfError as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)

    typer.echo(f"[scrape] Title   : {data.title or '(none)'}")
    typer.echo(f"[scrape] Ratings : {describe_enrichment(data)}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
