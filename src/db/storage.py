# best-effort key-value persistence for cart and session snapshots
import json
import os.path
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

# errors that degrade to a no-op / default instead of reaching the caller
_STORAGE_ERRORS = (sqlite3.Error, OSError, TypeError, ValueError)


class Storage:
    """
    JSON values in a single SQLite table, keyed by string.

    Nothing here raises: failures are logged and turned into a no-op on
    save/remove and into the default on load.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or config.db_path()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection with the kv table in place."""
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL);"
            )
            yield conn
            conn.commit()
        finally:
            conn.close()

    def save(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
            with self.connect() as conn:
                conn.execute(
                    "INSERT INTO kv(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value;",
                    (key, payload),
                )
        except _STORAGE_ERRORS as e:
            _logger.error(f"Error saving '{key}' to storage: {e}")

    def load(self, key: str, default: Any = None) -> Any:
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?;", (key,)
                ).fetchone()
            if row is None:
                return default
            return json.loads(row[0])
        except _STORAGE_ERRORS as e:
            _logger.error(f"Error loading '{key}' from storage: {e}")
            return default

    def remove(self, key: str) -> None:
        try:
            with self.connect() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?;", (key,))
        except _STORAGE_ERRORS as e:
            _logger.error(f"Error removing '{key}' from storage: {e}")
