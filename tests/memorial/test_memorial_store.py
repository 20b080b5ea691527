"""Tests for MemorialStore."""

from pathlib import Path

import pytest

from memoria.db import StorageError
from memoria.memorial import (
    Emotion,
    MemorialNotFoundError,
    MemorialStore,
    MemoryNotFoundError,
    Style,
    Tone,
)


@pytest.fixture
def store(tmp_path: Path) -> MemorialStore:
    """Create a MemorialStore with a temporary database."""
    store = MemorialStore(tmp_path / "memoria.db")
    store.init_db()
    yield store
    store.close()


class TestMemorialStoreInit:
    """Tests for MemorialStore initialization."""

    def test_creates_db_directory(self, tmp_path: Path):
        """Store creates parent directories if they don't exist."""
        nested_path = tmp_path / "nested" / "dir" / "memoria.db"
        store = MemorialStore(nested_path)
        store.init_db()
        assert nested_path.exists()
        store.close()

    def test_creates_tables(self, store: MemorialStore):
        conn = store._get_connection()
        names = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"memorials", "memories"} <= names

    def test_init_db_idempotent(self, store: MemorialStore):
        store.init_db()
        store.init_db()


class TestMemorials:
    """Tests for memorial CRUD."""

    def test_create_and_get(self, store: MemorialStore):
        created = store.create_memorial(
            "Chris Doe",
            "owner-1",
            birth_date="1950",
            passed_date="2020",
            tone=Tone.HUMOROUS,
            style="poetic",
        )

        loaded = store.get(created.id)
        assert loaded == created
        assert loaded.tone is Tone.HUMOROUS
        assert loaded.style is Style.POETIC

    def test_create_uses_default_voice(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        assert store.get(memorial.id).tone is Tone.WARM
        assert store.get(memorial.id).style is Style.CONVERSATIONAL

    def test_get_missing_raises(self, store: MemorialStore):
        with pytest.raises(MemorialNotFoundError) as exc_info:
            store.get("nope")
        assert exc_info.value.memorial_id == "nope"

    def test_exists(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        assert store.exists(memorial.id)
        assert not store.exists("nope")

    def test_update_narrative(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        store.update_narrative(memorial.id, "My story.")
        assert store.get(memorial.id).narrative == "My story."

    def test_update_narrative_overwrites(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        store.update_narrative(memorial.id, "First.")
        store.update_narrative(memorial.id, "Second.")
        assert store.get(memorial.id).narrative == "Second."

    def test_update_narrative_missing_raises(self, store: MemorialStore):
        with pytest.raises(MemorialNotFoundError):
            store.update_narrative("nope", "text")

    def test_update_voice_partial(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1", tone="reflective")
        updated = store.update_voice(memorial.id, style=Style.FORMAL)
        assert updated.tone is Tone.REFLECTIVE
        assert updated.style is Style.FORMAL


class TestMemories:
    """Tests for memory storage."""

    def test_add_and_list_in_insertion_order(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        first = store.add_memory(memorial.id, "First memory")
        second = store.add_memory(
            memorial.id,
            "Second memory",
            contributor_name="Sam",
            contributor_id="user-sam",
            relationship="cousin",
            time_period="the 1980s",
            emotion="funny",
        )

        memories = store.list_memories(memorial.id)
        assert [m.id for m in memories] == [first.id, second.id]
        assert memories[1].contributor_name == "Sam"
        assert memories[1].relationship == "cousin"
        assert memories[1].emotion is Emotion.FUNNY
        assert memories[1].created_at is not None

    def test_list_empty(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        assert store.list_memories(memorial.id) == []

    def test_add_to_missing_memorial_raises(self, store: MemorialStore):
        with pytest.raises(MemorialNotFoundError):
            store.add_memory("nope", "text")

    def test_add_rejects_empty_content(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        with pytest.raises(ValueError):
            store.add_memory(memorial.id, "   ")

    def test_get_memory(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        memory = store.add_memory(memorial.id, "Text")
        assert store.get_memory(memory.id).content == "Text"

    def test_get_missing_memory_raises(self, store: MemorialStore):
        with pytest.raises(MemoryNotFoundError):
            store.get_memory("nope")

    def test_delete_memory(self, store: MemorialStore):
        memorial = store.create_memorial("Chris Doe", "owner-1")
        memory = store.add_memory(memorial.id, "Text")
        assert store.delete_memory(memory.id) is True
        assert store.delete_memory(memory.id) is False
        assert store.list_memories(memorial.id) == []


class TestStorageErrors:
    """sqlite failures surface as StorageError."""

    def test_query_without_tables_raises_storage_error(self, tmp_path: Path):
        store = MemorialStore(tmp_path / "empty.db")
        with pytest.raises(StorageError):
            store.get("anything")
        store.close()
