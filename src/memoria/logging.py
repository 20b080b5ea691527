"""JSONL event log for narrative generation."""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = Path.home() / ".memoria" / "logs"


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    memorial_id: str | None = None
    user_id: str | None = None
    source: str | None = None
    duration_ms: float | None = None
    reason: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {} and v != []}


class JSONLLogger:
    """Logger that writes structured events in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "logs.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = DEFAULT_LOG_DIR
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file.

        Failures are reported through stdlib logging and dropped; the event
        log never interrupts the caller.
        """
        try:
            self._rotate_if_needed()
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning("Dropped %s event, cannot write %s: %s", entry.event, self.log_path, e)

    def log(
        self,
        event: str,
        *,
        memorial_id: str | None = None,
        user_id: str | None = None,
        source: str | None = None,
        duration_ms: float | None = None,
        reason: str | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            memorial_id=memorial_id,
            user_id=user_id,
            source=source,
            duration_ms=duration_ms,
            reason=reason,
            error=error,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_request(self, memorial_id: str, user_id: str | None) -> None:
        """Log an incoming narrative request."""
        self.log("narrative_requested", memorial_id=memorial_id, user_id=user_id)

    def log_rejected(
        self,
        memorial_id: str,
        user_id: str | None,
        reason: str,
        *,
        time_remaining_seconds: int | None = None,
    ) -> None:
        """Log a request that ended in a user-facing failure."""
        extra: dict[str, Any] = {}
        if time_remaining_seconds is not None:
            extra["time_remaining_seconds"] = time_remaining_seconds
        self.log(
            "narrative_rejected",
            memorial_id=memorial_id,
            user_id=user_id,
            reason=reason,
            **extra,
        )

    def log_provider_error(self, memorial_id: str, kind: str, error: str) -> None:
        """Log a failed model call that will be covered by the fallback."""
        self.log("provider_error", memorial_id=memorial_id, reason=kind, error=error)

    def log_generated(
        self,
        memorial_id: str,
        user_id: str,
        source: str,
        *,
        duration_ms: float,
        word_count: int,
        saved: bool,
    ) -> None:
        """Log a completed generation, with where the text came from."""
        self.log(
            "narrative_generated",
            memorial_id=memorial_id,
            user_id=user_id,
            source=source,
            duration_ms=duration_ms,
            word_count=word_count,
            saved=saved,
        )

    def log_save_failed(self, memorial_id: str, error: str) -> None:
        """Log a narrative that could not be written back."""
        self.log("narrative_save_failed", memorial_id=memorial_id, error=error)


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
