"""Persistent state management for the shelf CLI.

Tracks the "active window" that tab commands act on by default.
Stored in `~/.shelf_cli/context.json`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import typer
from shelf.config import settings


@dataclass
class CliContext:
    active_window_id: int | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> CliContext:
        try:
            raw = json.loads(data)
            return cls(**raw)
        except (json.JSONDecodeError, TypeError):
            return cls()


def _get_context_path() -> Path:
    """Return the path to the context JSON file."""
    return settings.cli_config_dir / "context.json"


def load_context() -> CliContext:
    """Load the CLI context from disk. Returns defaults if missing/corrupt."""
    path = _get_context_path()
    if not path.exists():
        return CliContext()
    return CliContext.from_json(path.read_text(encoding="utf-8"))


def save_context(ctx: CliContext) -> None:
    """Save the CLI context to disk."""
    settings.cli_config_dir.mkdir(parents=True, exist_ok=True)
    _get_context_path().write_text(ctx.to_json(), encoding="utf-8")


def resolve_window(window_id: Optional[int]) -> int:
    """Return *window_id*, or the active window when it is ``None``.

    Aborts the command if neither is available.
    """
    if window_id is not None:
        return window_id
    ctx = load_context()
    if ctx.active_window_id is None:
        typer.echo("❌ No active window.")
        typer.echo("Run 'tabs window' or pass --window-id first.")
        raise typer.Exit(code=1)
    return ctx.active_window_id
