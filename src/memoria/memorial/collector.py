"""Collects the memories a narrative is written from."""

import logging
from collections.abc import Sequence

from .models import Memory
from .store import MemorialNotFoundError, MemorialStore

logger = logging.getLogger(__name__)


class NoMemoriesError(ValueError):
    """Raised when a memorial has no memories to narrate.

    This is a user-correctable validation failure, not a system fault.
    """

    def __init__(self, memorial_id: str) -> None:
        super().__init__(
            "No memories found for this memorial. "
            "Please add memories before generating a narrative."
        )
        self.memorial_id = memorial_id


class MemoryCollector:
    """Fetches and validates a memorial's memories."""

    def __init__(self, store: MemorialStore) -> None:
        self.store = store

    def fetch(
        self,
        memorial_id: str,
        supplied: Sequence[Memory] | None = None,
    ) -> list[Memory]:
        """Return the memories to narrate, oldest first.

        Args:
            memorial_id: The memorial to collect for.
            supplied: Memories the caller already holds. When given, no
                fetch happens and they are only validated.

        Returns:
            Non-empty list of memories in contribution order.

        Raises:
            MemorialNotFoundError: If the memorial does not exist.
            NoMemoriesError: If there is nothing to narrate.
        """
        if supplied is not None:
            memories = list(supplied)
            logger.debug("Using %d supplied memories for %s", len(memories), memorial_id)
        else:
            if not self.store.exists(memorial_id):
                raise MemorialNotFoundError(memorial_id)
            memories = self.store.list_memories(memorial_id)
            logger.debug("Fetched %d memories for %s", len(memories), memorial_id)

        if not memories:
            raise NoMemoriesError(memorial_id)

        return memories
