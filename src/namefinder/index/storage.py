"""SQLite catalog of scanned filesystem entries."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from namefinder.models import DIRECTORY_KIND, FileSystemEntry, IndexedEntry


class PersistenceError(RuntimeError):
    """Raised when the index database cannot be opened or written."""


class SQLiteIndexStore:
    """Persistence layer for the deduplicated `items` catalog."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        try:
            # Transactions are explicit, see `transaction`
            self._conn = sqlite3.connect(self.db_path, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute("PRAGMA temp_store=MEMORY;")
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open index database {self.db_path}: {exc}") from exc
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self, *, exclusive: bool = False) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements atomically, rolling back on any error."""
        try:
            self._conn.execute("BEGIN EXCLUSIVE" if exclusive else "BEGIN")
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot start transaction on {self.db_path}: {exc}") from exc
        try:
            yield self._conn
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise PersistenceError(f"Transaction on {self.db_path} failed: {exc}") from exc
        except BaseException:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    path TEXT NOT NULL UNIQUE,
                    kind TEXT NOT NULL,
                    size INTEGER NOT NULL
                )
                """
            )

    def insert_entry(self, entry: FileSystemEntry) -> bool:
        """Insert ``entry`` unless its path is already indexed.

        Returns True when a row was written. Call within a transaction.
        """
        cursor = self._conn.execute(
            "INSERT OR IGNORE INTO items(name, path, kind, size) VALUES (?, ?, ?, ?)",
            (entry.name, entry.path, entry.kind, entry.size),
        )
        return cursor.rowcount == 1

    def count(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM items").fetchone()[0])

    def _iter_rows(self, query: str, params: tuple = ()) -> Iterator[IndexedEntry]:
        try:
            for row in self._conn.execute(query, params):
                yield IndexedEntry(
                    id=row["id"],
                    name=row["name"],
                    path=row["path"],
                    kind=row["kind"],
                    size=row["size"],
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot read index {self.db_path}: {exc}") from exc

    def all_entries(self) -> Iterator[IndexedEntry]:
        """Lazily yield every indexed entry in insertion order."""
        return self._iter_rows("SELECT id, name, path, kind, size FROM items ORDER BY id")

    def non_directory_entries(self) -> Iterator[IndexedEntry]:
        """Lazily yield every entry not classified as a directory."""
        return self._iter_rows(
            "SELECT id, name, path, kind, size FROM items WHERE kind != ? ORDER BY id",
            (DIRECTORY_KIND,),
        )
