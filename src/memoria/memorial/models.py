"""Data models for memorials and contributed memories."""

import logging
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)


class _Choice(Enum):
    """Enum with lenient parsing of stored or user supplied values."""

    @classmethod
    def parse(cls, value: "str | _Choice | None", default: "_Choice | None" = None):
        """Convert a raw value into a member.

        Unknown or empty values return ``default`` instead of raising, so a
        bad row in the database never blocks narration.
        """
        if isinstance(value, cls):
            return value
        if value:
            normalized = str(value).strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
            logger.warning("Unknown %s %r, using %s", cls.__name__.lower(), value, default)
        return default


class Tone(_Choice):
    """Voice of the narrative. Drives word choice."""

    WARM = "warm"
    REFLECTIVE = "reflective"
    HUMOROUS = "humorous"
    RESPECTFUL = "respectful"


class Style(_Choice):
    """Sentence construction of the narrative."""

    CONVERSATIONAL = "conversational"
    POETIC = "poetic"
    STORYTELLING = "storytelling"
    FORMAL = "formal"


class Emotion(_Choice):
    """Emotional tag a contributor attaches to a memory."""

    JOYFUL = "joyful"
    FUNNY = "funny"
    THOUGHTFUL = "thoughtful"
    BITTERSWEET = "bittersweet"
    SAD = "sad"


DEFAULT_TONE = Tone.WARM
DEFAULT_STYLE = Style.CONVERSATIONAL


@dataclass(frozen=True)
class Memorial:
    """A memorial page and the voice its narrative is written in.

    Attributes:
        id: Opaque identifier.
        full_name: Name of the person being remembered.
        owner_id: The only user allowed to regenerate the narrative or
            change tone and style.
        birth_date: Optional free-form date.
        passed_date: Optional free-form date.
        tone: Narrative tone.
        style: Narrative style.
        narrative: Last generated narrative, None before the first one.
    """

    id: str
    full_name: str
    owner_id: str
    birth_date: str | None = None
    passed_date: str | None = None
    tone: Tone = DEFAULT_TONE
    style: Style = DEFAULT_STYLE
    narrative: str | None = None

    def __post_init__(self) -> None:
        if not self.full_name or not self.full_name.strip():
            raise ValueError("full_name is required")
        # Coerce raw strings (e.g. from sqlite rows) into enum members.
        object.__setattr__(self, "tone", Tone.parse(self.tone, DEFAULT_TONE))
        object.__setattr__(self, "style", Style.parse(self.style, DEFAULT_STYLE))

    def is_owned_by(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id == self.owner_id

    def with_narrative(self, narrative: str) -> "Memorial":
        return replace(self, narrative=narrative)


@dataclass(frozen=True)
class Memory:
    """A single contribution to a memorial.

    Attributes:
        id: Opaque identifier.
        memorial_id: The memorial this memory belongs to.
        content: The text of the memory. Required.
        contributor_name: Display name used for attribution.
        contributor_id: User who submitted the memory.
        relationship: Free-text relationship to the person, e.g. "cousin".
        time_period: Approximate period, e.g. "the 1980s".
        emotion: Optional emotional tag.
        created_at: ISO timestamp when stored.
    """

    id: str
    memorial_id: str
    content: str
    contributor_name: str | None = None
    contributor_id: str | None = None
    relationship: str | None = None
    time_period: str | None = None
    emotion: Emotion | None = None
    created_at: str | None = None

    def __post_init__(self) -> None:
        if not self.content or not self.content.strip():
            raise ValueError("Memory content is required")
        object.__setattr__(self, "emotion", Emotion.parse(self.emotion))
