"""Per-user cooldown between narrative generations.

A user may generate one narrative per cooldown window. The limiter reads the
latest recorded generation time and refuses with the remaining wait when the
window has not elapsed yet.

Checking never writes: the orchestrator calls :meth:`RateLimiter.record`
once a generation attempt has completed. Two concurrent requests from the
same user can therefore both pass the check before either records, letting
one extra generation through. That race is accepted; no locking is done.

The limiter fails open. If the store cannot be read, whatever it raises, the
request is allowed, so a broken store never takes narrative generation down
with it.

Usage::

    limiter = RateLimiter(SQLiteRateLimitStore(db_path), cooldown_seconds=300)

    decision = limiter.check("user-1")
    if not decision.allowed:
        print(f"wait {decision.remaining_seconds}s")
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from .store import RateLimitStore

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 300


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of an admission check."""

    allowed: bool
    remaining_seconds: int = 0

    @property
    def remaining_minutes(self) -> int:
        return math.ceil(self.remaining_seconds / 60)


class RateLimiter:
    """Fixed cooldown rate limiter over an injected timestamp store.

    Args:
        store: Where timestamps are kept.
        cooldown_seconds: Minimum time between two generations of one user.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        store: RateLimitStore,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cooldown_seconds <= 0:
            raise ValueError(f"cooldown_seconds must be positive, got {cooldown_seconds}")
        self.store = store
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock

    def check(self, user_id: str) -> RateLimitDecision:
        """Decide whether ``user_id`` may generate now.

        Returns:
            An allowed decision, or a refusal carrying the whole seconds
            left until the cooldown ends (rounded up).
        """
        try:
            last = self.store.last_timestamp(user_id)
        except Exception as e:
            logger.warning("RateLimiter: store unavailable (%s), allowing %s", e, user_id)
            return RateLimitDecision(allowed=True)

        if last is None:
            return RateLimitDecision(allowed=True)

        elapsed = self._clock() - last
        if elapsed < self.cooldown_seconds:
            remaining = math.ceil(self.cooldown_seconds - elapsed)
            logger.info("RateLimiter: %s must wait %ds", user_id, remaining)
            return RateLimitDecision(allowed=False, remaining_seconds=remaining)

        return RateLimitDecision(allowed=True)

    def record(self, user_id: str) -> None:
        """Record a generation for ``user_id`` at the current time.

        Store failures are logged and swallowed: a missed record only means
        the next request is not throttled.
        """
        try:
            self.store.record(user_id, self._clock())
        except Exception as e:
            logger.warning("RateLimiter: failed to record generation for %s: %s", user_id, e)
