"""SQLite-backed JSON document storage for the remote store service."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SCHEMA = """
-- One JSON document per collection type, replaced wholesale on every write
CREATE TABLE IF NOT EXISTS documents (
    key TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class DocumentStore:
    """Key to JSON document storage."""

    def __init__(self, db_path: str | Path):
        """Initialize the document store.

        Args:
            db_path: Path to SQLite database file (":memory:" for tests).
        """
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path).expanduser()
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Initialize database connection and schema."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.executescript(SCHEMA)
        self._conn.commit()

        logger.info(f"DocumentStore connected to {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _ensure_connected(self) -> sqlite3.Connection:
        """Ensure database connection exists."""
        if self._conn is None:
            self.connect()
        return self._conn

    def get(self, key: str) -> Any | None:
        """Return the decoded document stored under ``key``, or None."""
        conn = self._ensure_connected()
        row = conn.execute("SELECT body FROM documents WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else None

    def put(self, key: str, document: Any) -> None:
        """Replace the document stored under ``key``."""
        conn = self._ensure_connected()
        conn.execute(
            """
            INSERT INTO documents (key, body, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                body = excluded.body,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(document), datetime.now().isoformat()),
        )
        conn.commit()
        logger.debug(f"Stored document {key}")

    def get_stats(self) -> dict[str, Any]:
        """Get document statistics.

        Returns:
            Mapping of document key to record count (1 for non-list documents).
        """
        conn = self._ensure_connected()
        stats = {}
        for key, body in conn.execute("SELECT key, body FROM documents ORDER BY key"):
            document = json.loads(body)
            stats[key] = len(document) if isinstance(document, list) else 1
        return stats
