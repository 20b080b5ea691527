"""Template tables for the fallback narrative.

Every table is keyed by ``(tone, style)`` where either side may be ``None``
to match any value. :func:`resolve` tries the most specific key first:
``(tone, style)``, ``(tone, None)``, ``(None, style)``, ``(None, None)``.
Every table has a ``(None, None)`` entry so lookups always succeed.

Placeholders: ``{name}`` is the memorial's full name, ``{who}`` the
attribution phrase, ``{relationships}`` the joined relationship labels.
"""

from collections.abc import Mapping
from typing import TypeVar

from ..memorial.models import Emotion, Style, Tone

T = TypeVar("T")

Key = tuple[Tone | None, Style | None]


def resolve(table: Mapping[Key, T], tone: Tone | None, style: Style | None) -> T:
    """Return the most specific entry of ``table`` for ``(tone, style)``."""
    for key in ((tone, style), (tone, None), (None, style), (None, None)):
        if key in table:
            return table[key]
    raise KeyError(f"No template for tone={tone} style={style}")


_WARM_OPENING = (
    "I was born with a spirit of adventure and a heart full of love. Throughout my "
    "life, I cherished the moments shared with family and friends, creating memories "
    "that would last beyond my time."
)

OPENINGS: dict[Key, str] = {
    (Tone.WARM, Style.CONVERSATIONAL): _WARM_OPENING,
    (Tone.REFLECTIVE, Style.CONVERSATIONAL): (
        "Looking back on my journey through life, I find myself reflecting on the "
        "moments that shaped who I became. The tapestry of my existence was woven with "
        "threads of connection, each person in my life contributing their own unique color."
    ),
    (Tone.HUMOROUS, Style.CONVERSATIONAL): (
        "Well, let me tell you about this wild ride I called life! I never was one to "
        "take things too seriously - what's the fun in that? Life's too short not to "
        "find the humor in everyday moments."
    ),
    (Tone.RESPECTFUL, Style.CONVERSATIONAL): (
        "With gratitude for the life I was blessed to live, I share these memories. "
        "Each day was a gift, and I strived to honor that gift through my actions and "
        "relationships with others."
    ),
    (None, Style.POETIC): (
        "Like leaves carried on autumn winds, my days flowed one into another, each "
        "leaving its imprint on my soul. The symphony of my existence played in both "
        "major and minor keys, its melody echoing beyond my earthly journey."
    ),
    (None, Style.STORYTELLING): (
        "Once upon a time, there was a person named {name}. My story began with the "
        "usual hopes and dreams, but as with all good tales, it was the unexpected "
        "twists and cherished characters that made it truly worth telling."
    ),
    (None, Style.FORMAL): (
        "I, {name}, was privileged to experience a life marked by meaningful "
        "connections and purposeful endeavors. Throughout the course of my existence, "
        "I encountered numerous individuals who significantly impacted my personal "
        "development."
    ),
    (None, None): _WARM_OPENING,
}

# Appended to style-driven openings so the tone is always audible.
OPENING_CODAS: dict[Key, str] = {
    (Tone.WARM, Style.POETIC): "Through every season, love was the light I walked by.",
    (Tone.REFLECTIVE, Style.POETIC): (
        "Now, in the stillness, I look back and hear how every note belonged."
    ),
    (Tone.HUMOROUS, Style.POETIC): (
        "And when the music faltered, I was usually the one laughing at the wrong note."
    ),
    (Tone.RESPECTFUL, Style.POETIC): "For every verse of it, I remain deeply grateful.",
    (Tone.WARM, Style.STORYTELLING): "It is, above all, a story about the people I loved.",
    (Tone.REFLECTIVE, Style.STORYTELLING): (
        "Looking back, I can see how each chapter quietly prepared me for the next."
    ),
    (Tone.HUMOROUS, Style.STORYTELLING): (
        "Fair warning: the hero of this tale tripped over a few plot holes along the way."
    ),
    (Tone.RESPECTFUL, Style.STORYTELLING): (
        "I tell it with gratitude for everyone who shared its pages with me."
    ),
    (Tone.WARM, Style.FORMAL): (
        "Foremost among my blessings were the affection and companionship of those dear to me."
    ),
    (Tone.REFLECTIVE, Style.FORMAL): (
        "In retrospect, each of these encounters contributed to the person I ultimately became."
    ),
    (Tone.HUMOROUS, Style.FORMAL): (
        "It should be noted, for the record, that I did not always take the proceedings "
        "entirely seriously."
    ),
    (Tone.RESPECTFUL, Style.FORMAL): (
        "I remain sincerely grateful for the privilege of each of these relationships."
    ),
    (None, None): "",
}

ATTRIBUTIONS: dict[Key, str] = {
    (None, Style.STORYTELLING): "I remember a chapter of my story that {who} still tells: ",
    (None, Style.POETIC): "In the garden of memories, {who} preserved this moment: ",
    (None, Style.FORMAL): "As recounted by {who}, an incident of significance occurred: ",
    (None, None): "{who} once remembered: ",
}

GENERIC_CONTRIBUTOR = "someone close to me"

EMOTION_LINES: dict[Emotion, dict[Key, str]] = {
    Emotion.JOYFUL: {
        (Tone.HUMOROUS, None): "It was absolutely hilarious!",
        (Tone.REFLECTIVE, None): "It brought me such profound joy that still warms my heart.",
        (None, None): "It brought me such joy.",
    },
    Emotion.FUNNY: {
        (Tone.HUMOROUS, None): "We laughed until our sides hurt!",
        (None, None): "We had such a good laugh about it.",
    },
    Emotion.THOUGHTFUL: {
        (Tone.REFLECTIVE, None): (
            "It led me to profound contemplation about the nature of our connections."
        ),
        (None, None): "It gave me much to reflect on.",
    },
    Emotion.BITTERSWEET: {
        (Tone.REFLECTIVE, None): (
            "Looking back, it fills me with a complex tapestry of emotions - joy "
            "intertwined with gentle sorrow."
        ),
        (None, None): "Looking back, it fills me with a sense of bittersweet nostalgia.",
    },
    Emotion.SAD: {
        (Tone.REFLECTIVE, None): (
            "It was during this difficult time that I truly understood the depth of "
            "human resilience."
        ),
        (None, None): "It was a challenging time, but it shaped who I became.",
    },
}

RELATIONSHIPS: dict[Key, str] = {
    (None, Style.POETIC): (
        "The constellation of my {relationships} formed the heavens under which I lived "
        "my days, their light guiding me through both shadow and sunshine."
    ),
    (None, Style.FORMAL): (
        "My associations with my {relationships} constituted the fundamental social "
        "structure that supported my existence and facilitated my personal development."
    ),
    (None, Style.STORYTELLING): (
        "The characters who shaped my story most deeply were my {relationships}. They "
        "were the heroes and companions of my tale, each playing their unique and "
        "irreplaceable role."
    ),
    (None, None): (
        "My relationships with my {relationships} were the cornerstones of my life. They "
        "brought me joy, taught me valuable lessons, and supported me through both "
        "celebrations and challenges."
    ),
}

JOY: dict[Key, str] = {
    (Tone.HUMOROUS, None): (
        "Boy, did I love a good laugh! Finding the funny side of life was my specialty. "
        "Whether it was cracking jokes at family gatherings or finding humor in everyday "
        "mishaps, I believed life's too short not to have a chuckle."
    ),
    (None, Style.POETIC): (
        "Joy danced through my days like sunlight on water, catching and reflecting in "
        "unexpected moments of delight - in simple pleasures, in the harmony of family "
        "gatherings, and in the peaceful solitude of quiet evenings."
    ),
    (None, Style.FORMAL): (
        "I derived considerable pleasure from moments of levity and familial "
        "congregation. The pursuit of happiness through simple recreational activities "
        "was a consistent theme throughout my existence."
    ),
    (None, None): (
        "I loved to laugh and find happiness in the simple moments of life. Whether it "
        "was a day out, a family gathering, or a quiet evening at home, I treasured "
        "these joyful times."
    ),
}

THOUGHTFUL: dict[Key, str] = {
    (None, Style.POETIC): (
        "In quiet moments of contemplation, I would ponder the ripples of my actions "
        "spreading outward, touching shores I might never see. The weight of a kind "
        "word, the legacy of a thoughtful deed - these were the currencies I valued most."
    ),
    (None, Style.STORYTELLING): (
        "The chapters of my life were not only about what happened, but what those "
        "events meant. I was the kind of character who would pause the action to "
        "consider the deeper themes unfolding in my story."
    ),
    (None, None): (
        "I often reflected on the deeper meaning of life, considering how my actions and "
        "words might impact those around me. I believed in living thoughtfully and with "
        "purpose."
    ),
}

BITTERSWEET: dict[Key, str] = {
    (Tone.REFLECTIVE, None): (
        "The valleys of my life were as formative as the peaks. In those shadowed "
        "moments, I discovered strengths I never knew I possessed and learned to "
        "appreciate the dawn that inevitably follows even the longest night."
    ),
    (None, Style.POETIC): (
        "Even in sorrow, I found strange beauty - the way grief carves rivers of "
        "gratitude through the bedrock of being. These darker chapters wrote themselves "
        "in invisible ink upon my soul, revealed only in the light of retrospection."
    ),
    (None, None): (
        "Like everyone, I faced challenges and difficult times. These moments shaped me "
        "just as much as the happy ones, teaching me resilience and appreciation for "
        "life's precious moments."
    ),
}

_POETIC_CLOSING = (
    "Though the book of my physical presence has closed, the stories continue to be "
    "told, each memory a thread in the continuing tapestry of connection. In being "
    "remembered, I remain - a whisper in laughter, a lesson in struggle, a presence in love."
)

CLOSINGS: dict[Key, str] = {
    (None, Style.POETIC): _POETIC_CLOSING,
    # Poetic style wins over the reflective tone.
    (Tone.REFLECTIVE, Style.POETIC): _POETIC_CLOSING,
    (Tone.REFLECTIVE, None): (
        "Though I may no longer walk among you, I find a certain peace in knowing that "
        "the moments we shared continue to resonate. Each story shared is another moment "
        "of connection, transcending the boundaries between then and now, between here "
        "and there."
    ),
    (None, Style.STORYTELLING): (
        "And so my story continues, not on pages I write myself, but in the chapters "
        "added by those who knew me. With each memory shared, my narrative grows richer, "
        "adding new dimensions to the character I was and continue to be."
    ),
    (None, Style.FORMAL): (
        "Despite the conclusion of my physical existence, my legacy persists through the "
        "recollections preserved by those with whom I formed meaningful connections. Each "
        "contributed memory serves to further develop the comprehensive understanding of "
        "my identity and influence."
    ),
    (None, None): (
        "Though I may no longer be physically present, my spirit lives on through the "
        "memories shared by those who knew me. Each story, each recollection adds another "
        "brushstroke to the portrait of who I was."
    ),
}

# Mood paragraphs, in the order they appear, with the emotions that trigger them.
MOODS: tuple[tuple[frozenset[Emotion], dict[Key, str]], ...] = (
    (frozenset({Emotion.JOYFUL, Emotion.FUNNY}), JOY),
    (frozenset({Emotion.THOUGHTFUL}), THOUGHTFUL),
    (frozenset({Emotion.BITTERSWEET, Emotion.SAD}), BITTERSWEET),
)
