"""Prompt builder for narrative generation."""

from collections.abc import Sequence

from ..memorial.models import Memorial, Memory, Style, Tone

SYSTEM_PROMPT = (
    "You are a compassionate writer creating first-person life narratives for "
    "memorial pages. You write as the person being remembered, drawing only on "
    "the memories their loved ones shared. Credit memories to the people who "
    "shared them, using their actual name when one is given and their "
    "relationship otherwise, and vary how you do it."
)

TONE_DIRECTIONS: dict[Tone, str] = {
    Tone.WARM: "warm: affectionate and tender, close to the people in the story",
    Tone.REFLECTIVE: "reflective: contemplative, looking back on what moments meant",
    Tone.HUMOROUS: "humorous: light-hearted, finding the funny side of life's moments",
    Tone.RESPECTFUL: "respectful: dignified and grateful, honoring the life lived",
}

STYLE_DIRECTIONS: dict[Style, str] = {
    Style.CONVERSATIONAL: "conversational: plain, natural sentences, as if talking to a friend",
    Style.POETIC: "poetic: lyrical language, imagery and metaphor",
    Style.STORYTELLING: "storytelling: told as a story with chapters, characters and turns",
    Style.FORMAL: "formal: composed, precise and measured language",
}

NARRATIVE_PROMPT = """You are writing a first-person life narrative for {name} ({born} - {passed}). Write as {name}, telling their own story with "I" and "my", based only on the memories their loved ones shared below.

Tone: {tone}
Style: {style}

Rules:
- First person only. {name} is the narrator from the first sentence to the last.
- Paraphrase the memories and weave them into the narrative. Do not quote them word for word or set them apart as blocks.
- Vary how memories are attributed. Sometimes use a name, sometimes a relationship, sometimes both, sometimes just the context. Never open two sentences or paragraphs with the same attribution pattern.
- Group memories by theme, relationship or period of life instead of listing them one after another, and connect them with transitions and reflections.
- Do not invent facts, people, places or events that the memories do not state.
- Balance joyful, funny and poignant moments.
- Write {min_paragraphs} to {max_paragraphs} paragraphs. Open with early life, explore themes and relationships in the middle, and close with a reflection on legacy and how {name} lives on through these memories.

Memories to incorporate:

{memories}"""

OMITTED_NOTICE = "({count} earlier memories were left out for length.)"

MEMORY_SEPARATOR = "\n---\n"

DEFAULT_MAX_MEMORY_CHARS = 1500
DEFAULT_MAX_PROMPT_MEMORY_CHARS = 24000


def _truncate(text: str, limit: int) -> str:
    """Cut text to at most ``limit`` characters on a word boundary."""
    text = text.strip()
    if len(text) <= limit:
        return text
    cut = text[: limit - 1]
    space = cut.rfind(" ")
    if space > limit // 2:
        cut = cut[:space]
    return cut.rstrip() + "…"


def format_memory(memory: Memory, max_chars: int = DEFAULT_MAX_MEMORY_CHARS) -> str:
    """Render one memory with its attribution fields."""
    lines = [f'Memory: "{_truncate(memory.content, max_chars)}"']
    if memory.contributor_name:
        lines.append(f"Shared by: {memory.contributor_name}")
    if memory.relationship:
        lines.append(f"Relationship: {memory.relationship}")
    if memory.time_period:
        lines.append(f"Time period: {memory.time_period}")
    if memory.emotion:
        lines.append(f"Emotion: {memory.emotion.value}")
    return "\n".join(lines)


class PromptBuilder:
    """Renders a memorial and its memories into a bounded model prompt.

    Each memory is capped at ``max_memory_chars``. When the rendered
    memories together exceed ``max_prompt_memory_chars``, the oldest
    memories are dropped first until they fit; the newest memory is always
    kept. The prompt says how many memories were left out.

    Args:
        max_memory_chars: Cap on a single memory's content.
        max_prompt_memory_chars: Cap on the whole memories section.
        min_paragraphs: Lower bound of the requested length.
        max_paragraphs: Upper bound of the requested length.
    """

    def __init__(
        self,
        max_memory_chars: int = DEFAULT_MAX_MEMORY_CHARS,
        max_prompt_memory_chars: int = DEFAULT_MAX_PROMPT_MEMORY_CHARS,
        min_paragraphs: int = 5,
        max_paragraphs: int = 7,
    ) -> None:
        if max_memory_chars < 1 or max_prompt_memory_chars < 1:
            raise ValueError("prompt limits must be positive")
        self.max_memory_chars = max_memory_chars
        self.max_prompt_memory_chars = max_prompt_memory_chars
        self.min_paragraphs = min_paragraphs
        self.max_paragraphs = max_paragraphs

    def select(self, memories: Sequence[Memory]) -> tuple[list[str], int]:
        """Render memories that fit the budget.

        Returns:
            Rendered blocks in contribution order, and the number of
            memories dropped.
        """
        blocks = [format_memory(m, self.max_memory_chars) for m in memories]

        # Walk from the newest memory backwards, keeping what fits.
        kept: list[str] = []
        used = 0
        for block in reversed(blocks):
            cost = len(block) + (len(MEMORY_SEPARATOR) if kept else 0)
            if kept and used + cost > self.max_prompt_memory_chars:
                break
            kept.append(block)
            used += cost

        kept.reverse()
        return kept, len(blocks) - len(kept)

    def build(self, memorial: Memorial, memories: Sequence[Memory]) -> str:
        """Build the user prompt for ``memorial``.

        Args:
            memorial: The memorial being narrated.
            memories: Its memories, oldest first.

        Returns:
            The complete instruction document.
        """
        blocks, omitted = self.select(memories)
        memories_text = MEMORY_SEPARATOR.join(blocks)
        if omitted:
            memories_text = OMITTED_NOTICE.format(count=omitted) + "\n\n" + memories_text

        return NARRATIVE_PROMPT.format(
            name=memorial.full_name,
            born=memorial.birth_date or "unknown",
            passed=memorial.passed_date or "unknown",
            tone=TONE_DIRECTIONS[memorial.tone],
            style=STYLE_DIRECTIONS[memorial.style],
            min_paragraphs=self.min_paragraphs,
            max_paragraphs=self.max_paragraphs,
            memories=memories_text,
        )
