"""
Storage backends for Pocketnote.

The note store persists one opaque string per key. Any object with
``get_item``/``set_item``/``remove_item`` can back it:

- JsonFileStorage: one ``<key>.json`` file per key, atomic replace
- SqliteStorage: a single ``kv`` table
- MemoryStorage: a dict, nothing touches disk
"""

import fcntl
import os
import sqlite3
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Protocol

from pocketnote.config import get_db_path, get_pocketnote_home

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

-- One row per storage key. The note list lives under a single key.
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL                -- ISO 8601
);
"""


class KeyValueStorage(Protocol):
    """Durable string storage addressed by key."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage. Contents vanish with the object."""

    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """File-per-key storage under a directory."""

    def __init__(self, directory: Path | None = None):
        self.directory = directory or get_pocketnote_home()

    def path_for(self, key: str) -> Path:
        """Return the file holding ``key``."""
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        """
        Replace the value for ``key`` atomically.

        Readers see either the old file or the new one, never a mix. The
        lock keeps two writers (CLI and bot) from racing on the temp file.
        """
        path = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        with self._locked(key):
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())  # Ensure durability
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def remove_item(self, key: str) -> None:
        with self._locked(key):
            self.path_for(key).unlink(missing_ok=True)

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        """Hold an exclusive lock on ``.<key>.lock`` for the duration."""
        self.directory.mkdir(parents=True, exist_ok=True)
        lock_path = self.directory / f".{key}.lock"
        with open(lock_path, "a", encoding="utf-8") as lock:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)


class SqliteStorage:
    """SQLite-backed key-value storage."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database exists and schema is current."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_item(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
            if row:
                return row["value"]
        return None

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value, now))

    def remove_item(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))


def open_storage(config: dict[str, Any]) -> KeyValueStorage:
    """Build the storage backend named in ``[storage] backend``."""
    backend = config.get("storage", {}).get("backend", "file")

    if backend == "file":
        return JsonFileStorage(get_pocketnote_home())
    if backend == "sqlite":
        return SqliteStorage(get_db_path())

    raise ValueError(f"Unknown storage backend: {backend}")
