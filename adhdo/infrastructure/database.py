import sqlite3
import json
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence, Tuple

from adhdo.config import DB_PATH

class DatabaseManager:
    """
    Manages SQLite connections and schema for ADHDo.
    Holds to-do items, categories, bookmarks and key-value view state.

    One connection per thread, WAL journaling, and a process-wide lock
    around writes.
    """
    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self._local = threading.local()
        self._write_lock = threading.RLock()
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys = ON")
            self._local.conn = conn
        return conn

    def close(self):
        """Closes this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def _init_db(self):
        """Initialize database schema."""
        with self._write_lock:
            conn = self._get_conn()
            # Key-value store for view state and preferences
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_state (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL
                )
            """)

            # Deleting a category keeps its items and clears the link
            conn.execute("""
                CREATE TABLE IF NOT EXISTS todo_items (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    subtitle TEXT,
                    timestamp TIMESTAMP NOT NULL,
                    done BOOLEAN NOT NULL DEFAULT 0,
                    favorite BOOLEAN NOT NULL DEFAULT 0,
                    category_id TEXT,
                    FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE SET NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS bookmarks (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    url TEXT NOT NULL,
                    created_at TIMESTAMP
                )
            """)

            conn.commit()

    # --- Generic helpers ---

    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Runs a single write statement and commits. Returns affected rows."""
        with self._write_lock:
            conn = self._get_conn()
            with conn:
                cursor = conn.execute(sql, params)
                return cursor.rowcount

    def execute_transaction(self, statements: Sequence[Tuple[str, Sequence[Any]]]) -> List[int]:
        """Runs several writes in one transaction. Returns affected rows per statement."""
        with self._write_lock:
            conn = self._get_conn()
            with conn:
                return [conn.execute(sql, params).rowcount for sql, params in statements]

    def execute_read(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        return self._get_conn().execute(sql, params).fetchall()

    def execute_read_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        return self._get_conn().execute(sql, params).fetchone()

    def execute_atomic_update(
        self,
        read_sql: str,
        read_params: Sequence[Any],
        write_sql: str,
        transform: Callable[[sqlite3.Row], Sequence[Any]],
    ) -> Optional[Sequence[Any]]:
        """
        Read-modify-write inside one transaction.
        Returns the written parameters, or None if the read found no row.
        """
        with self._write_lock:
            conn = self._get_conn()
            with conn:
                row = conn.execute(read_sql, read_params).fetchone()
                if row is None:
                    return None
                write_params = transform(row)
                conn.execute(write_sql, write_params)
                return write_params

    # --- User State Methods ---

    def save_state(self, key: str, value: Any):
        """Saves a value to user_state."""
        self.execute_write(
            "INSERT OR REPLACE INTO user_state (key, value, updated_at) VALUES (?, ?, ?)",
            (key, json.dumps(value), datetime.now().isoformat())
        )

    def get_state(self, key: str, default: Any = None) -> Any:
        """Retrieves a value from user_state."""
        row = self.execute_read_one("SELECT value FROM user_state WHERE key = ?", (key,))
        if row:
            return json.loads(row[0])
        return default

# Global DB instance
DB = DatabaseManager()
