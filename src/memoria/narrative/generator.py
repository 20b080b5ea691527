"""Language model client for narrative generation.

Wraps ``AsyncGroq`` chat completions behind a single ``generate`` call that
either returns non-empty narrative text or raises :class:`ProviderError`.
There are no retries: the SDK client is created with ``max_retries=0`` and
every call is one attempt bounded by a timeout.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

import groq
from groq import AsyncGroq

from .prompt import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TIMEOUT_SECONDS = 25.0


class ProviderErrorKind(Enum):
    """Why a model call failed."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED_UPSTREAM = "rate_limited_upstream"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


class ProviderError(Exception):
    """Raised when the language model could not produce a narrative."""

    def __init__(self, kind: ProviderErrorKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind
        self.message = message


def classify_error(error: Exception) -> ProviderErrorKind:
    """Map an exception raised by the Groq SDK to a ProviderErrorKind."""
    if isinstance(error, (asyncio.TimeoutError, groq.APITimeoutError)):
        return ProviderErrorKind.TIMEOUT
    if isinstance(error, (groq.AuthenticationError, groq.PermissionDeniedError)):
        return ProviderErrorKind.UNAUTHORIZED
    if isinstance(error, groq.RateLimitError):
        return ProviderErrorKind.RATE_LIMITED_UPSTREAM
    if isinstance(error, groq.APIResponseValidationError):
        return ProviderErrorKind.INVALID_RESPONSE
    return ProviderErrorKind.UNKNOWN


class NarrativeGenerator:
    """Generates narrative text with a Groq-hosted model.

    Example:
        generator = NarrativeGenerator(api_key=os.getenv("GROQ_API_KEY"))
        text = await generator.generate(prompt)

    Args:
        client: An AsyncGroq client. Built from ``api_key`` when omitted.
        api_key: Groq API key. Without a key or client every call fails
            with ``UNAUTHORIZED`` and no request is made.
        model: The model to use for completions.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens in the completion.
        timeout_seconds: Upper bound for one call.
    """

    def __init__(
        self,
        client: AsyncGroq | None = None,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if client is None and api_key:
            client = AsyncGroq(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self._client = client
        self._model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @property
    def configured(self) -> bool:
        """True if a client is available."""
        return self._client is not None

    def build_request(self, prompt: str) -> dict[str, Any]:
        """Build the chat completion arguments for ``prompt``."""
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def generate(self, prompt: str) -> str:
        """Generate a narrative for ``prompt``.

        Args:
            prompt: The user prompt built by PromptBuilder.

        Returns:
            The narrative text, stripped.

        Raises:
            ProviderError: If the call fails, times out or returns nothing.
        """
        if self._client is None:
            raise ProviderError(ProviderErrorKind.UNAUTHORIZED, "GROQ_API_KEY is not set")

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**self.build_request(prompt)),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            kind = classify_error(e)
            message = str(e) or type(e).__name__
            if kind is ProviderErrorKind.TIMEOUT:
                message = f"no response within {self.timeout_seconds:g}s"
            raise ProviderError(kind, message) from e

        return self._extract_content(response)

    def _extract_content(self, response: Any) -> str:
        """Pull the first completion's text out of a response."""
        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderError(ProviderErrorKind.INVALID_RESPONSE, "no choices in response")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise ProviderError(ProviderErrorKind.INVALID_RESPONSE, "empty completion")

        logger.debug("Model returned %d characters", len(content))
        return content.strip()
