import sqlite3
import threading
from pathlib import Path
from typing import Optional

from p4_mediator.store.base import KeyValueStore


class SQLiteKeyValueStore(KeyValueStore):
    def __init__(self, db_path: Path):
        self.db_path = str(db_path)
        self.conn = None
        self._lock = threading.Lock()

    def exists(self) -> bool:
        """Check if the database file exists."""
        return Path(self.db_path).exists()

    def _connect(self):
        """Connect to the database and create the schema if not already connected."""
        if self.conn is None:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            # Interception events may arrive on any thread; access is serialized by _lock
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
            """)
            self.conn.commit()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures connection is closed."""
        self.close()
        return False

    def keys(self) -> list[str]:
        with self._lock:
            self._connect()
            cursor = self.conn.execute("SELECT key FROM preferences ORDER BY key")
            return [row[0] for row in cursor.fetchall()]

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._connect()
            cursor = self.conn.execute("SELECT value FROM preferences WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else None

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._connect()
            self.conn.execute(
                "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
                (key, value),
            )
            self.conn.commit()

    def remove(self, key: str) -> None:
        with self._lock:
            self._connect()
            self.conn.execute("DELETE FROM preferences WHERE key = ?", (key,))
            self.conn.commit()

    def close(self) -> None:
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
