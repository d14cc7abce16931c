"""Exception hierarchy for shelf-organizer."""

from __future__ import annotations


class ShelfError(Exception):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

class FetchError(ShelfError):
    """A remote page could not be turned into enrichment data."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class FatalFetchError(FetchError):
    """The server answered with a status that aborts the whole operation."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"Response status {status_code}")
        self.status_code = status_code


class FetchExhaustedError(FetchError):
    """Every attempt failed before any response was received."""

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(url, f"No response after {attempts} attempts")
        self.attempts = attempts


class LiveExtractionError(ShelfError):
    """An open tab could not report its own metadata."""


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class StoreError(ShelfError):
    """A bookmark or tab store operation failed."""


class NodeNotFoundError(StoreError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node not found: {node_id!r}")
        self.node_id = node_id


class NotAContainerError(ShelfError):
    """A folder operation was pointed at a bookmark."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Expected a folder, not a bookmark: {node_id!r}")
        self.node_id = node_id
