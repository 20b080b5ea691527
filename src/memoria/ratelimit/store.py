"""Storage for per-user narrative generation timestamps."""

from typing import Protocol

from ..db import SQLiteStore


class RateLimitStore(Protocol):
    """Where the rate limiter keeps the last generation time per user.

    Timestamps are epoch seconds. Implementations may keep older entries
    for audit; only the latest one is used for admission.
    """

    def last_timestamp(self, user_id: str) -> float | None:
        """Return the most recent timestamp for a user, or None."""
        ...

    def record(self, user_id: str, timestamp: float) -> None:
        """Store a new timestamp for a user."""
        ...


class InMemoryRateLimitStore:
    """Dict-backed store, for tests and single-process use."""

    def __init__(self) -> None:
        self._history: dict[str, list[float]] = {}

    def last_timestamp(self, user_id: str) -> float | None:
        history = self._history.get(user_id)
        if not history:
            return None
        return max(history)

    def record(self, user_id: str, timestamp: float) -> None:
        self._history.setdefault(user_id, []).append(timestamp)

    def history(self, user_id: str) -> list[float]:
        """All timestamps recorded for a user, oldest first."""
        return list(self._history.get(user_id, []))


class SQLiteRateLimitStore(SQLiteStore):
    """Rate limit timestamps in a ``rate_limits`` table.

    Each generation appends a row; rows are never updated.
    """

    def init_db(self) -> None:
        """Create the rate_limits table if it doesn't exist."""
        self._executescript("""
            CREATE TABLE IF NOT EXISTS rate_limits (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     TEXT NOT NULL,
                timestamp   REAL NOT NULL,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );
            CREATE INDEX IF NOT EXISTS idx_rate_limits_user
                ON rate_limits(user_id, timestamp);
        """)

    def last_timestamp(self, user_id: str) -> float | None:
        rows = self._query(
            "SELECT MAX(timestamp) AS last FROM rate_limits WHERE user_id = ?",
            (user_id,),
        )
        if not rows or rows[0]["last"] is None:
            return None
        return float(rows[0]["last"])

    def record(self, user_id: str, timestamp: float) -> None:
        self._execute(
            "INSERT INTO rate_limits (user_id, timestamp) VALUES (?, ?)",
            (user_id, timestamp),
        )

    def count(self, user_id: str) -> int:
        """Number of rows recorded for a user."""
        rows = self._query(
            "SELECT COUNT(*) AS n FROM rate_limits WHERE user_id = ?", (user_id,)
        )
        return int(rows[0]["n"])
