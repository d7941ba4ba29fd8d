"""SQLite storage for factoid revisions."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SQLiteMap:
    """Persistent append-only map using SQLite.

    Each write inserts a new revision row; reads return the most recent
    revision for a key. Rows are never updated or deleted.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the map with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_db(self) -> None:
        """Create the revisions table if it doesn't exist."""
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS revisions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                key         TEXT NOT NULL,
                value       TEXT NOT NULL,
                written_at  TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_revisions_key ON revisions(key, id)")
        conn.commit()

    def get(self, key: str) -> dict[str, Any] | None:
        """Get the latest revision for a key.

        Args:
            key: The normalized key.

        Returns:
            The stored value, or None if the key was never written.
        """
        conn = self._get_connection()
        row = conn.execute(
            "SELECT value FROM revisions WHERE key = ? ORDER BY id DESC LIMIT 1",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def set(self, key: str, value: dict[str, Any]) -> None:
        """Append a new revision for a key.

        Args:
            key: The normalized key.
            value: The full value to store.
        """
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO revisions (key, value) VALUES (?, ?)",
            (key, json.dumps(value)),
        )
        conn.commit()
        logger.debug("Wrote revision for %r", key)

    def keys(self) -> list[str]:
        """List keys whose latest revision has a message."""
        conn = self._get_connection()
        cursor = conn.execute("""
            SELECT r.key, r.value FROM revisions r
            JOIN (SELECT key, MAX(id) AS id FROM revisions GROUP BY key) latest
              ON r.id = latest.id
            ORDER BY r.key
        """)
        return [row["key"] for row in cursor.fetchall() if json.loads(row["value"]).get("message")]

    def history(self, key: str) -> list[dict[str, Any]]:
        """Get every revision for a key, oldest first.

        Args:
            key: The normalized key.

        Returns:
            List of stored values.
        """
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT value FROM revisions WHERE key = ? ORDER BY id",
            (key,),
        )
        return [json.loads(row["value"]) for row in cursor.fetchall()]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
