"""Template-based fallback narrative.

Used when the language model is unavailable. Output is assembled purely from
the tables in :mod:`memoria.narrative.templates`; the same memorial and
memories always produce the same text. Unlike the model path, memories are
quoted verbatim.
"""

from collections.abc import Sequence

from ..memorial.models import Memorial, Memory
from . import templates

DEFAULT_MIN_MEMORY_CHARS = 50
DEFAULT_MAX_MEMORIES = 5


def join_labels(labels: Sequence[str]) -> str:
    """Join labels as "a", "a and b" or "a, b and c"."""
    if len(labels) <= 1:
        return "".join(labels)
    return ", ".join(labels[:-1]) + " and " + labels[-1]


def distinct_relationships(memories: Sequence[Memory]) -> list[str]:
    """Relationship labels in first-seen order, without case-insensitive duplicates."""
    seen: set[str] = set()
    labels: list[str] = []
    for memory in memories:
        label = (memory.relationship or "").strip()
        if label and label.lower() not in seen:
            seen.add(label.lower())
            labels.append(label)
    return labels


class FallbackComposer:
    """Composes a first-person narrative from templates.

    Args:
        min_memory_chars: Memories must be longer than this to be quoted.
        max_memories: How many memories are quoted at most.
    """

    def __init__(
        self,
        min_memory_chars: int = DEFAULT_MIN_MEMORY_CHARS,
        max_memories: int = DEFAULT_MAX_MEMORIES,
    ) -> None:
        self.min_memory_chars = min_memory_chars
        self.max_memories = max_memories

    def compose(self, memorial: Memorial, memories: Sequence[Memory]) -> str:
        """Compose the narrative.

        Never raises for a valid memorial; with no usable memories the
        result is still an opening, relationship/mood paragraphs where
        applicable, and a closing.
        """
        paragraphs = [self.opening(memorial)]
        paragraphs.extend(self.memory_paragraph(memorial, m) for m in self.select(memories))

        relationships = distinct_relationships(memories)
        if relationships:
            template = templates.resolve(templates.RELATIONSHIPS, memorial.tone, memorial.style)
            paragraphs.append(template.format(relationships=join_labels(relationships)))

        paragraphs.extend(self.mood_paragraphs(memorial, memories))
        paragraphs.append(templates.resolve(templates.CLOSINGS, memorial.tone, memorial.style))

        return "\n\n".join(paragraphs)

    def select(self, memories: Sequence[Memory]) -> list[Memory]:
        """The substantial memories to quote, in contribution order."""
        substantial = [m for m in memories if len(m.content.strip()) > self.min_memory_chars]
        return substantial[: self.max_memories]

    def opening(self, memorial: Memorial) -> str:
        base = templates.resolve(templates.OPENINGS, memorial.tone, memorial.style)
        coda = templates.resolve(templates.OPENING_CODAS, memorial.tone, memorial.style)
        text = base.format(name=memorial.full_name)
        return f"{text} {coda}" if coda else text

    def memory_paragraph(self, memorial: Memorial, memory: Memory) -> str:
        """Quote one memory with attribution, period and emotion."""
        who = self.attribution(memory)
        prefix = templates.resolve(templates.ATTRIBUTIONS, memorial.tone, memorial.style)
        paragraph = prefix.format(who=who) + f'"{memory.content.strip()}"'

        if memory.time_period:
            paragraph += f" during {memory.time_period.strip()}"
        paragraph += "."

        if memory.emotion:
            line = templates.resolve(templates.EMOTION_LINES[memory.emotion], memorial.tone, None)
            paragraph += f" {line}"

        if who != (memory.contributor_name or "").strip():
            # Generic phrases ("my sister") may start the sentence.
            paragraph = paragraph[0].upper() + paragraph[1:]
        return paragraph

    def attribution(self, memory: Memory) -> str:
        """Who a memory is credited to."""
        if memory.contributor_name and memory.contributor_name.strip():
            return memory.contributor_name.strip()
        if memory.relationship and memory.relationship.strip():
            return f"my {memory.relationship.strip().lower()}"
        return templates.GENERIC_CONTRIBUTOR

    def mood_paragraphs(self, memorial: Memorial, memories: Sequence[Memory]) -> list[str]:
        emotions = {m.emotion for m in memories if m.emotion}
        return [
            templates.resolve(table, memorial.tone, memorial.style)
            for triggers, table in templates.MOODS
            if emotions & triggers
        ]
