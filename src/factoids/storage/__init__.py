"""Durable map implementations."""

from pathlib import Path

from .base import DurableMap
from .memory import InMemoryMap
from .sqlite import SQLiteMap


def open_map(location: str | Path | None) -> DurableMap:
    """Open a durable map.

    An empty location gives an in-memory map; anything else is treated as
    the path of a SQLite database, which is created if needed.
    """
    if not location:
        return InMemoryMap()

    db = SQLiteMap(Path(location).expanduser())
    db.init_db()
    return db


__all__ = ["DurableMap", "InMemoryMap", "SQLiteMap", "open_map"]
