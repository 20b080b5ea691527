"""SQLite storage for memorials and their memories."""

import sqlite3
import uuid

from ..db import SQLiteStore, StorageError
from .models import Emotion, Memorial, Memory, Style, Tone


class MemorialNotFoundError(LookupError):
    """Raised when a memorial id does not exist."""

    def __init__(self, memorial_id: str) -> None:
        super().__init__(f"Memorial not found: {memorial_id}")
        self.memorial_id = memorial_id


class MemoryNotFoundError(LookupError):
    """Raised when a memory id does not exist."""

    def __init__(self, memory_id: str) -> None:
        super().__init__(f"Memory not found: {memory_id}")
        self.memory_id = memory_id


def new_id() -> str:
    """Generate a new opaque identifier."""
    return uuid.uuid4().hex


class MemorialStore(SQLiteStore):
    """Persistent storage for memorials and memories.

    Memories are returned in the order they were contributed, which is the
    order the narrative prompt presents them in.
    """

    def init_db(self) -> None:
        """Create the memorials and memories tables if they don't exist."""
        self._executescript("""
            CREATE TABLE IF NOT EXISTS memorials (
                id           TEXT PRIMARY KEY,
                full_name    TEXT NOT NULL,
                owner_id     TEXT NOT NULL,
                birth_date   TEXT,
                passed_date  TEXT,
                tone         TEXT NOT NULL DEFAULT 'warm',
                style        TEXT NOT NULL DEFAULT 'conversational',
                narrative    TEXT,
                created_at   TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at   TEXT NOT NULL DEFAULT (datetime('now'))
            );
            CREATE TABLE IF NOT EXISTS memories (
                id                TEXT PRIMARY KEY,
                memorial_id       TEXT NOT NULL REFERENCES memorials(id) ON DELETE CASCADE,
                content           TEXT NOT NULL,
                contributor_name  TEXT,
                contributor_id    TEXT,
                relationship      TEXT,
                time_period       TEXT,
                emotion           TEXT,
                created_at        TEXT NOT NULL DEFAULT (datetime('now'))
            );
            CREATE INDEX IF NOT EXISTS idx_memories_memorial ON memories(memorial_id);
        """)

    # ------------------------------------------------------------------
    # Memorials
    # ------------------------------------------------------------------

    def create_memorial(
        self,
        full_name: str,
        owner_id: str,
        *,
        birth_date: str | None = None,
        passed_date: str | None = None,
        tone: Tone | str | None = None,
        style: Style | str | None = None,
    ) -> Memorial:
        """Create and persist a new memorial.

        Returns:
            The stored memorial with its assigned id.
        """
        memorial = Memorial(
            id=new_id(),
            full_name=full_name,
            owner_id=owner_id,
            birth_date=birth_date,
            passed_date=passed_date,
            tone=tone,  # type: ignore[arg-type]
            style=style,  # type: ignore[arg-type]
        )
        self._execute(
            """
            INSERT INTO memorials (id, full_name, owner_id, birth_date, passed_date, tone, style)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                memorial.id,
                memorial.full_name,
                memorial.owner_id,
                memorial.birth_date,
                memorial.passed_date,
                memorial.tone.value,
                memorial.style.value,
            ),
        )
        return memorial

    def get(self, memorial_id: str) -> Memorial:
        """Get a memorial by id.

        Raises:
            MemorialNotFoundError: If no memorial has this id.
        """
        rows = self._query(
            """
            SELECT id, full_name, owner_id, birth_date, passed_date, tone, style, narrative
            FROM memorials WHERE id = ?
            """,
            (memorial_id,),
        )
        if not rows:
            raise MemorialNotFoundError(memorial_id)
        return self._row_to_memorial(rows[0])

    def exists(self, memorial_id: str) -> bool:
        rows = self._query("SELECT 1 FROM memorials WHERE id = ?", (memorial_id,))
        return bool(rows)

    def update_narrative(self, memorial_id: str, narrative: str) -> None:
        """Overwrite the memorial's narrative.

        Raises:
            MemorialNotFoundError: If no memorial has this id.
            StorageError: If the write fails.
        """
        cursor = self._execute(
            """
            UPDATE memorials SET narrative = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (narrative, memorial_id),
        )
        if cursor.rowcount == 0:
            raise MemorialNotFoundError(memorial_id)

    def update_voice(
        self,
        memorial_id: str,
        tone: Tone | None = None,
        style: Style | None = None,
    ) -> Memorial:
        """Change tone and/or style, returning the updated memorial."""
        memorial = self.get(memorial_id)
        tone = tone or memorial.tone
        style = style or memorial.style
        self._execute(
            """
            UPDATE memorials SET tone = ?, style = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (tone.value, style.value, memorial_id),
        )
        return self.get(memorial_id)

    # ------------------------------------------------------------------
    # Memories
    # ------------------------------------------------------------------

    def add_memory(
        self,
        memorial_id: str,
        content: str,
        *,
        contributor_name: str | None = None,
        contributor_id: str | None = None,
        relationship: str | None = None,
        time_period: str | None = None,
        emotion: Emotion | str | None = None,
    ) -> Memory:
        """Add a memory to an existing memorial.

        Raises:
            MemorialNotFoundError: If the memorial does not exist.
        """
        if not self.exists(memorial_id):
            raise MemorialNotFoundError(memorial_id)

        memory = Memory(
            id=new_id(),
            memorial_id=memorial_id,
            content=content,
            contributor_name=contributor_name,
            contributor_id=contributor_id,
            relationship=relationship,
            time_period=time_period,
            emotion=emotion,  # type: ignore[arg-type]
        )
        self._execute(
            """
            INSERT INTO memories (
                id, memorial_id, content, contributor_name, contributor_id,
                relationship, time_period, emotion
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                memory.id,
                memory.memorial_id,
                memory.content,
                memory.contributor_name,
                memory.contributor_id,
                memory.relationship,
                memory.time_period,
                memory.emotion.value if memory.emotion else None,
            ),
        )
        return memory

    def list_memories(self, memorial_id: str) -> list[Memory]:
        """List a memorial's memories in insertion order."""
        rows = self._query(
            """
            SELECT id, memorial_id, content, contributor_name, contributor_id,
                   relationship, time_period, emotion, created_at
            FROM memories WHERE memorial_id = ?
            ORDER BY rowid
            """,
            (memorial_id,),
        )
        return [self._row_to_memory(row) for row in rows]

    def get_memory(self, memory_id: str) -> Memory:
        rows = self._query(
            """
            SELECT id, memorial_id, content, contributor_name, contributor_id,
                   relationship, time_period, emotion, created_at
            FROM memories WHERE id = ?
            """,
            (memory_id,),
        )
        if not rows:
            raise MemoryNotFoundError(memory_id)
        return self._row_to_memory(rows[0])

    def delete_memory(self, memory_id: str) -> bool:
        """Delete a memory by its id.

        Returns:
            True if a memory was deleted, False otherwise.
        """
        cursor = self._execute("DELETE FROM memories WHERE id = ?", (memory_id,))
        return cursor.rowcount > 0

    def _row_to_memorial(self, row: sqlite3.Row) -> Memorial:
        """Convert a database row to a Memorial."""
        return Memorial(
            id=row["id"],
            full_name=row["full_name"],
            owner_id=row["owner_id"],
            birth_date=row["birth_date"],
            passed_date=row["passed_date"],
            tone=row["tone"],
            style=row["style"],
            narrative=row["narrative"],
        )

    def _row_to_memory(self, row: sqlite3.Row) -> Memory:
        """Convert a database row to a Memory."""
        return Memory(
            id=row["id"],
            memorial_id=row["memorial_id"],
            content=row["content"],
            contributor_name=row["contributor_name"],
            contributor_id=row["contributor_id"],
            relationship=row["relationship"],
            time_period=row["time_period"],
            emotion=row["emotion"],
            created_at=row["created_at"],
        )


__all__ = [
    "MemorialNotFoundError",
    "MemorialStore",
    "MemoryNotFoundError",
    "StorageError",
    "new_id",
]
