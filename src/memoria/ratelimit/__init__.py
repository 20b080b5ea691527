"""Per-user cooldown for narrative generation."""

from .limiter import DEFAULT_COOLDOWN_SECONDS, RateLimitDecision, RateLimiter
from .store import InMemoryRateLimitStore, RateLimitStore, SQLiteRateLimitStore

__all__ = [
    "DEFAULT_COOLDOWN_SECONDS",
    "InMemoryRateLimitStore",
    "RateLimitDecision",
    "RateLimitStore",
    "RateLimiter",
    "SQLiteRateLimitStore",
]
