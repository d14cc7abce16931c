"""Centralised settings for shelf-organizer.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SHELF_WORKSPACE", Path.home() / ".shelf_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "shelf.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    cli_config_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SHELF_CLI_DIR", Path.home() / ".shelf_cli")
        )
    )

    # ------------------------------------------------------------------
    # Enrichment target
    # ------------------------------------------------------------------
    target_site_prefix: str = field(
        default_factory=lambda: os.environ.get(
            "TARGET_SITE_PREFIX", "https://www.amazon.com"
        )
    )
    not_found_title: str = field(
        default_factory=lambda: os.environ.get("NOT_FOUND_TITLE", "Page Not Found")
    )

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    max_concurrent_fetches: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_FETCHES", "5"))
    )
    fetch_max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_ATTEMPTS", "4"))
    )
    fetch_retry_backoff: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_RETRY_BACKOFF", "5.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    random_walk_samples: int = field(
        default_factory=lambda: int(os.environ.get("RANDOM_WALK_SAMPLES", "20"))
    )

    def is_target(self, url: str | None) -> bool:
        """Return ``True`` if *url* belongs to the enrichment target site."""
        return url is not None and url.startswith(self.target_site_prefix)

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from shelf.config import settings
settings = Settings()
