"""Tests for rate limit stores."""

from pathlib import Path

import pytest

from memoria.ratelimit import InMemoryRateLimitStore, SQLiteRateLimitStore


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SQLiteRateLimitStore:
    store = SQLiteRateLimitStore(tmp_path / "memoria.db")
    store.init_db()
    yield store
    store.close()


class TestInMemoryRateLimitStore:
    """Tests for the dict-backed store."""

    def test_unknown_user_has_no_timestamp(self):
        assert InMemoryRateLimitStore().last_timestamp("user-1") is None

    def test_returns_latest(self):
        store = InMemoryRateLimitStore()
        store.record("user-1", 100.0)
        store.record("user-1", 250.0)
        assert store.last_timestamp("user-1") == 250.0
        assert store.history("user-1") == [100.0, 250.0]


class TestSQLiteRateLimitStore:
    """Tests for the sqlite-backed store."""

    def test_unknown_user_has_no_timestamp(self, sqlite_store: SQLiteRateLimitStore):
        assert sqlite_store.last_timestamp("user-1") is None

    def test_record_appends_rows(self, sqlite_store: SQLiteRateLimitStore):
        sqlite_store.record("user-1", 100.0)
        sqlite_store.record("user-1", 250.5)
        sqlite_store.record("user-2", 900.0)

        assert sqlite_store.last_timestamp("user-1") == 250.5
        assert sqlite_store.count("user-1") == 2
        assert sqlite_store.count("user-2") == 1

    def test_shares_file_with_memorial_store(self, tmp_path: Path):
        """Both stores can live in one database file."""
        from memoria.memorial import MemorialStore

        db_path = tmp_path / "shared.db"
        memorials = MemorialStore(db_path)
        memorials.init_db()
        limits = SQLiteRateLimitStore(db_path)
        limits.init_db()

        limits.record("user-1", 1.0)
        memorials.create_memorial("Chris Doe", "user-1")

        assert limits.last_timestamp("user-1") == 1.0
        memorials.close()
        limits.close()

    def test_persists_across_instances(self, tmp_path: Path):
        db_path = tmp_path / "memoria.db"
        first = SQLiteRateLimitStore(db_path)
        first.init_db()
        first.record("user-1", 42.0)
        first.close()

        second = SQLiteRateLimitStore(db_path)
        assert second.last_timestamp("user-1") == 42.0
        second.close()
