"""Tests for SQLiteIndexStore."""

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from namefinder.index.storage import PersistenceError, SQLiteIndexStore
from namefinder.models import DIRECTORY_KIND, FileSystemEntry, IndexedEntry


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    store = SQLiteIndexStore(db_path)
    yield store
    store.close()


def _entry(name, path=None, kind="txt", size=1):
    return FileSystemEntry(name=name, path=path or f"/data/{name}", kind=kind, size=size)


class TestSQLiteIndexStore:
    """Test SQLiteIndexStore initialization and schema."""

    def test_init_creates_database(self, tmp_path):
        db_path = tmp_path / "new.db"
        assert not db_path.exists()

        store = SQLiteIndexStore(db_path)

        assert db_path.exists()
        assert store.db_path == db_path
        store.close()

    def test_schema_creation(self, temp_db):
        cursor = temp_db.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='items'"
        )
        assert cursor.fetchone() is not None

        columns = {row["name"] for row in temp_db.connection.execute("PRAGMA table_info(items)")}
        assert columns == {"id", "name", "path", "kind", "size"}

    def test_pragma_settings(self, temp_db):
        result = temp_db.connection.execute("PRAGMA journal_mode").fetchone()
        assert result[0].lower() == "wal"

    def test_reopen_keeps_data(self, tmp_path):
        db_path = tmp_path / "persist.db"
        store = SQLiteIndexStore(db_path)
        with store.transaction():
            store.insert_entry(_entry("a.txt"))
        store.close()

        reopened = SQLiteIndexStore(db_path)
        assert reopened.count() == 1
        reopened.close()

    def test_close(self, tmp_path):
        store = SQLiteIndexStore(tmp_path / "close.db")
        conn = store.connection

        store.close()

        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")

    def test_unopenable_database(self, tmp_path):
        """Opening a path inside a missing directory is a PersistenceError."""
        with pytest.raises(PersistenceError):
            SQLiteIndexStore(tmp_path / "missing" / "dir" / "test.db")


class TestTransaction:
    """Test transaction context manager."""

    def test_commit(self, temp_db):
        with temp_db.transaction():
            temp_db.insert_entry(_entry("a.txt"))

        assert temp_db.count() == 1

    def test_rollback_on_exception(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.transaction():
                temp_db.insert_entry(_entry("a.txt"))
                raise RuntimeError("boom")

        assert temp_db.count() == 0

    def test_sqlite_error_becomes_persistence_error(self, temp_db):
        with pytest.raises(PersistenceError):
            with temp_db.transaction() as conn:
                temp_db.insert_entry(_entry("a.txt"))
                conn.execute("INSERT INTO no_such_table VALUES (1)")

        assert temp_db.count() == 0

    def test_exclusive_transaction(self, temp_db):
        with temp_db.transaction(exclusive=True):
            temp_db.insert_entry(_entry("a.txt"))

        assert temp_db.count() == 1

    def test_exclusive_blocks_other_writer(self, temp_db):
        other = sqlite3.connect(temp_db.db_path, timeout=0)
        try:
            with temp_db.transaction(exclusive=True):
                with pytest.raises(sqlite3.OperationalError):
                    other.execute("BEGIN EXCLUSIVE")
        finally:
            other.close()


class TestInsertEntry:
    """Test insert-if-absent semantics."""

    def test_insert_returns_true(self, temp_db):
        with temp_db.transaction():
            assert temp_db.insert_entry(_entry("a.txt")) is True

    def test_duplicate_path_ignored(self, temp_db):
        with temp_db.transaction():
            assert temp_db.insert_entry(_entry("a.txt", size=1)) is True
            assert temp_db.insert_entry(_entry("a.txt", size=999)) is False

        entries = list(temp_db.all_entries())
        assert len(entries) == 1
        assert entries[0].size == 1

    def test_same_name_different_paths(self, temp_db):
        with temp_db.transaction():
            temp_db.insert_entry(_entry("a.txt", path="/x/a.txt"))
            temp_db.insert_entry(_entry("a.txt", path="/y/a.txt"))

        assert temp_db.count() == 2

    def test_large_size(self, temp_db):
        big = 2**40
        with temp_db.transaction():
            temp_db.insert_entry(_entry("huge.iso", size=big))

        assert next(temp_db.all_entries()).size == big


class TestQueries:
    """Test lazy entry iteration."""

    @pytest.fixture
    def populated(self, temp_db):
        with temp_db.transaction():
            temp_db.insert_entry(_entry("docs", path="/data/docs", kind=DIRECTORY_KIND, size=30))
            temp_db.insert_entry(_entry("cat.png", path="/data/docs/cat.png", kind="png", size=10))
            temp_db.insert_entry(_entry("notes", path="/data/docs/notes", kind="file", size=20))
        return temp_db

    def test_all_entries(self, populated):
        entries = list(populated.all_entries())

        assert [e.name for e in entries] == ["docs", "cat.png", "notes"]
        assert all(isinstance(e, IndexedEntry) for e in entries)
        assert entries[0] == IndexedEntry(
            id=entries[0].id, name="docs", path="/data/docs", kind=DIRECTORY_KIND, size=30
        )

    def test_ids_are_increasing(self, populated):
        ids = [e.id for e in populated.all_entries()]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_non_directory_entries(self, populated):
        names = [e.name for e in populated.non_directory_entries()]

        assert names == ["cat.png", "notes"]

    def test_entries_are_lazy(self, populated):
        iterator = populated.all_entries()
        assert next(iterator).name == "docs"

    def test_count(self, populated):
        assert populated.count() == 3

    def test_empty_store(self, temp_db):
        assert list(temp_db.all_entries()) == []
        assert list(temp_db.non_directory_entries()) == []
        assert temp_db.count() == 0

    def test_read_error_mid_iteration(self, temp_db):
        """A failure while stepping through rows surfaces as PersistenceError."""

        def rows():
            yield {"id": 1, "name": "a.txt", "path": "/data/a.txt", "kind": "txt", "size": 1}
            raise sqlite3.DatabaseError("database disk image is malformed")

        real_conn = temp_db.connection
        temp_db._conn = MagicMock()
        temp_db._conn.execute.return_value = rows()
        try:
            entries = temp_db.all_entries()
            assert next(entries).name == "a.txt"
            with pytest.raises(PersistenceError, match="malformed"):
                next(entries)
        finally:
            temp_db._conn = real_conn
