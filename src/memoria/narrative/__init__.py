"""First-person memorial narratives: prompt, model call, fallback and orchestration."""

from .fallback import FallbackComposer
from .generator import NarrativeGenerator, ProviderError, ProviderErrorKind
from .prompt import PromptBuilder
from .service import ErrorKind, GenerationResult, NarrativeService

__all__ = [
    "ErrorKind",
    "FallbackComposer",
    "GenerationResult",
    "NarrativeGenerator",
    "NarrativeService",
    "PromptBuilder",
    "ProviderError",
    "ProviderErrorKind",
]
