"""
TaskClarify SOP Engine — Key-Value Database.

The persistence substrate: a single SQLite table used as a synchronous
key-value store. Values are opaque strings; callers serialize whole
collections and rewrite them in one statement.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class KeyValueDB:
    """SQLite-backed string key-value storage."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.SOP_DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the kv_store table if it doesn't exist.

        An unreadable file is logged and left alone; reads and writes
        against it raise sqlite3.DatabaseError later.
        """
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key        TEXT PRIMARY KEY,
                        value      TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)
        except sqlite3.DatabaseError as exc:
            logger.warning("Could not initialize kv_store at %s: %s", self._db_path, exc)
            return
        logger.debug("kv_store table initialized at %s", self._db_path)

    def get(self, key: str) -> str | None:
        """Fetch the value stored under key, or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Insert or fully replace the value under key."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, now),
            )
        logger.debug("kv_store key '%s' written (%d bytes)", key, len(value))

    def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it wasn't there."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        return cursor.rowcount > 0
