"""Memorials, contributed memories and their storage."""

from .collector import MemoryCollector, NoMemoriesError
from .models import Emotion, Memorial, Memory, Style, Tone
from .store import MemorialNotFoundError, MemorialStore, MemoryNotFoundError

__all__ = [
    "Emotion",
    "Memorial",
    "MemorialNotFoundError",
    "MemorialStore",
    "Memory",
    "MemoryCollector",
    "MemoryNotFoundError",
    "NoMemoriesError",
    "Style",
    "Tone",
]
