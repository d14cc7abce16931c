"""Database layer package.

Public re-exports so callers can write::

    from shelf.db import get_connection, init_db
"""

from shelf.db.connection import get_connection
from shelf.db.migrations import init_db

__all__ = ["get_connection", "init_db"]
