"""Narrative service: the single entry point for generating a narrative.

Sequence for one request::

    authenticate -> load memorial -> check ownership -> collect memories
      -> check rate limit -> build prompt -> call model
      -> (model failed) compose fallback
      -> save narrative -> record rate limit -> GenerationResult

Memories are validated before the rate limit is checked, so a memorial with
no memories always reports that, whatever the caller's cooldown state.

Model failures never reach the caller: they are logged and replaced by the
fallback narrative. The result does not say which path produced the text;
the provenance is only written to the logs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..db import StorageError
from ..logging import JSONLLogger, get_logger
from ..memorial.collector import MemoryCollector, NoMemoriesError
from ..memorial.models import Memorial, Memory, Style, Tone
from ..memorial.store import MemorialNotFoundError, MemorialStore, MemoryNotFoundError
from ..ratelimit import RateLimiter
from .fallback import FallbackComposer
from .generator import NarrativeGenerator, ProviderError
from .prompt import PromptBuilder

if TYPE_CHECKING:
    from ..config import NarrativeConfig
    from ..ratelimit import RateLimitStore

logger = logging.getLogger(__name__)

UNAUTHENTICATED_MESSAGE = "Authentication required"
FORBIDDEN_MESSAGE = "You do not have permission to update this memorial"
NOT_FOUND_MESSAGE = "Memorial not found"
INTERNAL_MESSAGE = "Something went wrong while generating the narrative. Please try again."
SAVE_FAILED_WARNING = (
    "The narrative was generated but could not be saved. Please try saving it again."
)


class ErrorKind(Enum):
    """Why a generation request failed."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NO_MEMORIES = "no_memories"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


class NarrativeSource(Enum):
    """Where a narrative came from. Logged, never returned."""

    MODEL = "model"
    FALLBACK = "fallback"


def rate_limit_message(remaining_seconds: int) -> str:
    minutes = max(1, -(-remaining_seconds // 60))
    unit = "minute" if minutes == 1 else "minutes"
    return f"Please wait {minutes} {unit} before generating another narrative."


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a generation request.

    Attributes:
        success: Whether a narrative was produced.
        narrative: The narrative, present iff success.
        error: Human-readable reason, present iff not success.
        error_kind: Machine-readable reason, present iff not success.
        time_remaining_seconds: Wait time, present iff rate limited.
        warning: Set when the narrative was produced but not saved.
    """

    success: bool
    narrative: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    time_remaining_seconds: int | None = None
    warning: str | None = None

    @classmethod
    def ok(cls, narrative: str, warning: str | None = None) -> GenerationResult:
        return cls(success=True, narrative=narrative, warning=warning)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        error: str,
        time_remaining_seconds: int | None = None,
    ) -> GenerationResult:
        return cls(
            success=False,
            error=error,
            error_kind=kind,
            time_remaining_seconds=time_remaining_seconds,
        )

    @property
    def rate_limited(self) -> bool:
        return self.error_kind is ErrorKind.RATE_LIMITED

    def to_dict(self) -> dict[str, Any]:
        """JSON shape for callers, excluding absent fields."""
        data: dict[str, Any] = {
            "success": self.success,
            "narrative": self.narrative,
            "error": self.error,
            "errorKind": self.error_kind.value if self.error_kind else None,
            "timeRemaining": self.time_remaining_seconds,
            "warning": self.warning,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class _Narration:
    text: str
    source: NarrativeSource


class NarrativeService:
    """Orchestrates rate limiting, collection, generation and persistence.

    Args:
        store: Memorial and memory storage.
        limiter: Per-user cooldown.
        generator: Language model client.
        prompt_builder: Builds the model prompt.
        composer: Fallback narrative composer.
        event_logger: JSONL event log. Uses the global logger if None.
    """

    def __init__(
        self,
        store: MemorialStore,
        limiter: RateLimiter,
        generator: NarrativeGenerator,
        prompt_builder: PromptBuilder | None = None,
        composer: FallbackComposer | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.store = store
        self.limiter = limiter
        self.generator = generator
        self.collector = MemoryCollector(store)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.composer = composer or FallbackComposer()
        self.events = event_logger or get_logger()
        self._pending: set[asyncio.Future] = set()

    @classmethod
    def from_config(
        cls,
        config: NarrativeConfig,
        store: MemorialStore,
        rate_limit_store: RateLimitStore,
        event_logger: JSONLLogger | None = None,
    ) -> NarrativeService:
        """Wire a service from configuration."""
        return cls(
            store=store,
            limiter=RateLimiter(rate_limit_store, cooldown_seconds=config.cooldown_seconds),
            generator=NarrativeGenerator(
                api_key=config.api_key,
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout_seconds=config.timeout_seconds,
            ),
            prompt_builder=PromptBuilder(
                max_memory_chars=config.max_memory_chars,
                max_prompt_memory_chars=config.max_prompt_memory_chars,
            ),
            composer=FallbackComposer(
                min_memory_chars=config.fallback_min_memory_chars,
                max_memories=config.fallback_max_memories,
            ),
            event_logger=event_logger,
        )

    async def generate_narrative(
        self,
        memorial_id: str,
        caller_user_id: str | None,
        memories: Sequence[Memory] | None = None,
    ) -> GenerationResult:
        """Generate, save and return a narrative for a memorial.

        Args:
            memorial_id: The memorial to narrate.
            caller_user_id: The authenticated caller; must own the memorial.
            memories: Memories the caller already fetched, to skip a read.

        Returns:
            A GenerationResult. This method does not raise.
        """
        try:
            return await self._generate(memorial_id, caller_user_id, memories)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Narrative generation failed for memorial %s", memorial_id)
            self._log_event(
                self.events.log_rejected, memorial_id, caller_user_id, ErrorKind.INTERNAL.value
            )
            return GenerationResult.failure(ErrorKind.INTERNAL, INTERNAL_MESSAGE)

    async def _generate(
        self,
        memorial_id: str,
        user_id: str | None,
        supplied: Sequence[Memory] | None,
    ) -> GenerationResult:
        self._log_event(self.events.log_request, memorial_id, user_id)

        if not user_id:
            return self._reject(memorial_id, user_id, ErrorKind.UNAUTHENTICATED,
                                UNAUTHENTICATED_MESSAGE)

        try:
            memorial = self.store.get(memorial_id)
        except MemorialNotFoundError:
            return self._reject(memorial_id, user_id, ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

        if not memorial.is_owned_by(user_id):
            logger.warning("User %s is not the owner of memorial %s", user_id, memorial_id)
            return self._reject(memorial_id, user_id, ErrorKind.FORBIDDEN, FORBIDDEN_MESSAGE)

        try:
            memories = self.collector.fetch(memorial_id, supplied)
        except NoMemoriesError as e:
            return self._reject(memorial_id, user_id, ErrorKind.NO_MEMORIES, str(e))

        decision = self.limiter.check(user_id)
        if not decision.allowed:
            return self._reject(
                memorial_id,
                user_id,
                ErrorKind.RATE_LIMITED,
                rate_limit_message(decision.remaining_seconds),
                time_remaining_seconds=decision.remaining_seconds,
            )

        # Once the model call starts, finish and save even if the caller goes away.
        task = asyncio.ensure_future(self._narrate_and_save(memorial, memories, user_id))
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return await asyncio.shield(task)

    def _finished(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Narrative generation task failed", exc_info=error)

    def _log_event(self, log: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        """Write a JSONL event. A broken event log never fails a request."""
        try:
            log(*args, **kwargs)
        except OSError as e:
            logger.warning("Could not write event log: %s", e)

    async def _narrate_and_save(
        self,
        memorial: Memorial,
        memories: list[Memory],
        user_id: str,
    ) -> GenerationResult:
        started = time.monotonic()
        narration = await self._narrate(memorial, memories)

        warning = None
        try:
            self.store.update_narrative(memorial.id, narration.text)
        except (StorageError, MemorialNotFoundError) as e:
            logger.error("Failed to save narrative for memorial %s: %s", memorial.id, e)
            self._log_event(self.events.log_save_failed, memorial.id, str(e))
            warning = SAVE_FAILED_WARNING

        self.limiter.record(user_id)

        self._log_event(
            self.events.log_generated,
            memorial.id,
            user_id,
            narration.source.value,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
            word_count=len(narration.text.split()),
            saved=warning is None,
        )
        logger.info(
            "Narrative for memorial %s generated from %s",
            memorial.id,
            narration.source.value,
        )
        return GenerationResult.ok(narration.text, warning=warning)

    async def _narrate(self, memorial: Memorial, memories: list[Memory]) -> _Narration:
        """Model narrative, or the fallback if the model fails."""
        prompt = self.prompt_builder.build(memorial, memories)
        logger.debug("Prompt for memorial %s is %d characters", memorial.id, len(prompt))

        try:
            text = await self.generator.generate(prompt)
            return _Narration(text, NarrativeSource.MODEL)
        except ProviderError as e:
            logger.warning(
                "Model call failed for memorial %s (%s), using fallback narrative: %s",
                memorial.id,
                e.kind.value,
                e.message,
            )
            self._log_event(
                self.events.log_provider_error, memorial.id, e.kind.value, e.message
            )

        return _Narration(self.composer.compose(memorial, memories), NarrativeSource.FALLBACK)

    def _reject(
        self,
        memorial_id: str,
        user_id: str | None,
        kind: ErrorKind,
        message: str,
        time_remaining_seconds: int | None = None,
    ) -> GenerationResult:
        self._log_event(
            self.events.log_rejected,
            memorial_id,
            user_id,
            kind.value,
            time_remaining_seconds=time_remaining_seconds,
        )
        return GenerationResult.failure(kind, message, time_remaining_seconds)

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    def set_voice(
        self,
        memorial_id: str,
        caller_user_id: str | None,
        tone: Tone | str | None = None,
        style: Style | str | None = None,
    ) -> Memorial:
        """Change a memorial's tone and/or style.

        Raises:
            MemorialNotFoundError: If the memorial does not exist.
            PermissionError: If the caller does not own the memorial.
            ValueError: If a tone or style value is not recognised.
        """
        memorial = self.store.get(memorial_id)
        if not memorial.is_owned_by(caller_user_id):
            raise PermissionError(FORBIDDEN_MESSAGE)

        new_tone = Tone.parse(tone) if tone is not None else None
        new_style = Style.parse(style) if style is not None else None
        if tone is not None and new_tone is None:
            raise ValueError(f"Unknown tone: {tone}")
        if style is not None and new_style is None:
            raise ValueError(f"Unknown style: {style}")

        return self.store.update_voice(memorial_id, tone=new_tone, style=new_style)

    def delete_memory(self, memory_id: str, caller_user_id: str | None) -> None:
        """Delete a memory as its contributor or as the memorial owner.

        Raises:
            MemoryNotFoundError: If the memory does not exist.
            PermissionError: If the caller may not delete it.
        """
        memory = self.store.get_memory(memory_id)
        memorial = self.store.get(memory.memorial_id)

        is_contributor = bool(caller_user_id) and caller_user_id == memory.contributor_id
        if not (is_contributor or memorial.is_owned_by(caller_user_id)):
            raise PermissionError("Forbidden: you do not own this memory.")

        if not self.store.delete_memory(memory_id):
            raise MemoryNotFoundError(memory_id)
