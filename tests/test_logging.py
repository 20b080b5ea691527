"""Tests for JSONL event logging."""

import json
import shutil
from pathlib import Path

import pytest

from memoria import logging as memoria_logging
from memoria.logging import JSONLLogger, LogEntry, configure_logger, get_logger


@pytest.fixture
def logger(tmp_path: Path) -> JSONLLogger:
    return JSONLLogger(log_dir=tmp_path)


def read_entries(logger: JSONLLogger) -> list[dict]:
    with open(logger.log_path, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_log_entry_to_dict():
    """LogEntry excludes None values and empty extras."""
    entry = LogEntry(timestamp="2024-01-01T00:00:00Z", event="test")
    data = entry.to_dict()

    assert data == {"timestamp": "2024-01-01T00:00:00Z", "event": "test"}


def test_log_creates_file(logger: JSONLLogger):
    logger.log("test_event")
    assert logger.log_path.exists()


def test_log_writes_jsonl(logger: JSONLLogger):
    logger.log("event1", memorial_id="m1")
    logger.log("event2", memorial_id="m2")

    entries = read_entries(logger)

    assert [e["event"] for e in entries] == ["event1", "event2"]
    assert entries[0]["memorial_id"] == "m1"


def test_extra_fields_are_nested(logger: JSONLLogger):
    logger.log("custom", attempts=3)
    assert read_entries(logger)[0]["extra"] == {"attempts": 3}


def test_log_request(logger: JSONLLogger):
    logger.log_request("m1", "u1")

    entry = read_entries(logger)[0]
    assert entry["event"] == "narrative_requested"
    assert entry["user_id"] == "u1"


def test_log_rejected_with_wait(logger: JSONLLogger):
    logger.log_rejected("m1", "u1", "rate_limited", time_remaining_seconds=30)

    entry = read_entries(logger)[0]
    assert entry["event"] == "narrative_rejected"
    assert entry["reason"] == "rate_limited"
    assert entry["extra"] == {"time_remaining_seconds": 30}


def test_log_rejected_without_wait(logger: JSONLLogger):
    logger.log_rejected("m1", None, "unauthenticated")

    entry = read_entries(logger)[0]
    assert "extra" not in entry
    assert "user_id" not in entry


def test_log_provider_error(logger: JSONLLogger):
    logger.log_provider_error("m1", "timeout", "no response within 25s")

    entry = read_entries(logger)[0]
    assert entry["event"] == "provider_error"
    assert entry["reason"] == "timeout"
    assert entry["error"] == "no response within 25s"


def test_log_generated(logger: JSONLLogger):
    logger.log_generated("m1", "u1", "fallback", duration_ms=12.5, word_count=240, saved=True)

    entry = read_entries(logger)[0]
    assert entry["event"] == "narrative_generated"
    assert entry["source"] == "fallback"
    assert entry["duration_ms"] == 12.5
    assert entry["extra"] == {"word_count": 240, "saved": True}


def test_log_save_failed(logger: JSONLLogger):
    logger.log_save_failed("m1", "database is locked")

    entry = read_entries(logger)[0]
    assert entry["event"] == "narrative_save_failed"
    assert entry["error"] == "database is locked"


def test_unicode_is_written_verbatim(logger: JSONLLogger):
    logger.log("event", error="José’s memory")
    assert "José’s" in logger.log_path.read_text(encoding="utf-8")


def test_rotation(tmp_path: Path):
    """Log file is rotated once it reaches the size limit."""
    logger = JSONLLogger(log_dir=tmp_path, max_size_mb=0.0001)  # ~100 bytes

    for i in range(10):
        logger.log("event", memorial_id=f"memorial-{i:04d}", error="x" * 20)

    rotated = list(tmp_path.glob("logs_*.jsonl"))
    assert rotated
    assert logger.log_path.exists()


def test_configure_logger_replaces_global(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(memoria_logging, "_logger", None)

    configured = configure_logger(tmp_path / "logs")

    assert get_logger() is configured
    assert configured.log_dir == tmp_path / "logs"
    assert configured.log_dir.exists()


def test_write_failure_is_dropped(tmp_path: Path, caplog):
    """A log directory that disappears does not break callers."""
    logger = JSONLLogger(log_dir=tmp_path / "logs")
    shutil.rmtree(tmp_path / "logs")

    logger.log_request("m1", "u1")

    assert not logger.log_path.exists()
    assert "Dropped narrative_requested event" in caplog.text
