"""Configuration loader.

Settings come from three layers, later ones winning:

1. ``NarrativeConfig`` defaults,
2. the ``"narrative"`` object of ``~/.memoria/config.json``,
3. environment variables (a ``.env`` file is loaded by the entry point).
"""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .narrative.fallback import DEFAULT_MAX_MEMORIES, DEFAULT_MIN_MEMORY_CHARS
from .narrative.generator import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
)
from .narrative.prompt import DEFAULT_MAX_MEMORY_CHARS, DEFAULT_MAX_PROMPT_MEMORY_CHARS
from .ratelimit import DEFAULT_COOLDOWN_SECONDS

logger = logging.getLogger(__name__)

MEMORIA_HOME = Path.home() / ".memoria"
DEFAULT_CONFIG_PATH = MEMORIA_HOME / "config.json"


@dataclass
class NarrativeConfig:
    """Settings for narrative generation.

    Attributes:
        model: Groq model id.
        api_key: Groq API key. Without one every narrative uses the fallback.
        cooldown_seconds: Minimum time between generations of one user.
        timeout_seconds: Upper bound for one model call.
        temperature: Sampling temperature for the model.
        max_tokens: Maximum completion length.
        max_memory_chars: Cap on one memory's text in the prompt.
        max_prompt_memory_chars: Cap on all memory text in the prompt.
        fallback_min_memory_chars: Memories must be longer than this to be
            quoted by the fallback narrative.
        fallback_max_memories: How many memories the fallback quotes.
        db_path: SQLite database file.
        log_dir: Directory for the JSONL event log.
    """

    model: str = DEFAULT_MODEL
    api_key: str | None = None
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    max_memory_chars: int = DEFAULT_MAX_MEMORY_CHARS
    max_prompt_memory_chars: int = DEFAULT_MAX_PROMPT_MEMORY_CHARS
    fallback_min_memory_chars: int = DEFAULT_MIN_MEMORY_CHARS
    fallback_max_memories: int = DEFAULT_MAX_MEMORIES
    db_path: Path | None = None
    log_dir: Path | None = None

    def __post_init__(self) -> None:
        """Validate config and set defaults."""
        if self.db_path is None:
            self.db_path = MEMORIA_HOME / "memoria.db"
        if self.log_dir is None:
            self.log_dir = MEMORIA_HOME / "logs"
        self.db_path = Path(self.db_path).expanduser()
        self.log_dir = Path(self.log_dir).expanduser()

        if self.cooldown_seconds <= 0:
            raise ValueError(f"cooldown_seconds must be positive, got {self.cooldown_seconds}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if self.max_memory_chars < 1 or self.max_prompt_memory_chars < 1:
            raise ValueError("prompt limits must be at least 1")
        if self.fallback_max_memories < 0 or self.fallback_min_memory_chars < 0:
            raise ValueError("fallback limits must not be negative")


# Environment variable -> (field, converter)
ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "GROQ_API_KEY": ("api_key", str),
    "GROQ_MODEL": ("model", str),
    "MEMORIA_COOLDOWN_SECONDS": ("cooldown_seconds", float),
    "MEMORIA_TIMEOUT_SECONDS": ("timeout_seconds", float),
    "MEMORIA_DB_PATH": ("db_path", Path),
    "MEMORIA_LOG_DIR": ("log_dir", Path),
}


def _read_file(path: Path) -> dict[str, Any]:
    """Read the ``narrative`` section of a JSON config file."""
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        return {}
    except OSError as e:
        logger.warning("Cannot read %s: %s. Using defaults.", path, e)
        return {}

    section = data.get("narrative", {}) if isinstance(data, dict) else {}
    if not isinstance(section, dict):
        logger.warning("'narrative' in %s is not an object, ignoring it", path)
        return {}

    known = {f.name for f in fields(NarrativeConfig)}
    unknown = set(section) - known
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, sorted(unknown))
    return {k: v for k, v in section.items() if k in known}


def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for var, (name, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if not raw:
            continue
        try:
            values[name] = convert(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", var, raw, convert.__name__)
    return values


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> NarrativeConfig:
    """Load NarrativeConfig from the config file and the environment.

    Args:
        config_path: Path to config file. Uses DEFAULT_CONFIG_PATH if None.
        environ: Environment mapping. Uses ``os.environ`` if None.

    Returns:
        NarrativeConfig instance. Invalid file values fall back to defaults.
    """
    values = _read_file(config_path or DEFAULT_CONFIG_PATH)
    values.update(_read_env(os.environ if environ is None else environ))

    try:
        return NarrativeConfig(**values)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid configuration (%s). Using defaults.", e)
        env_only = _read_env(os.environ if environ is None else environ)
        try:
            return NarrativeConfig(**env_only)
        except (TypeError, ValueError):
            return NarrativeConfig()
