"""Flattened step indexing shared by playback, pre-synthesis, and scripts.

WHY: Narration timing is keyed by a step's position across *all*
chapters. Pre-synthesis, the narration waiter, the script generator,
and the mixer inputs must agree on that number exactly, or a clip is
measured for one step and waited for on another. One walker, used by
everyone, keeps them in step.

HOW: iter_flat_steps() yields every step in document order with a
zero-based index that does not reset between chapters. narration_items()
filters that walk down to steps carrying narration text.

RULES:
- Every step is counted, narrated or not
- Indices are strictly increasing and gapless, starting at 0
- Blank or whitespace-only narration counts as no narration
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from demo_narrator.spec.models import Chapter, Step


@dataclass(frozen=True)
class FlatStep:
    index: int
    chapter_index: int
    chapter_title: str
    step: Step


@dataclass(frozen=True)
class NarrationItem:
    index: int
    text: str


def iter_flat_steps(chapters: Sequence[Chapter]) -> Iterator[FlatStep]:
    index = 0
    for chapter_index, chapter in enumerate(chapters):
        for step in chapter.steps:
            yield FlatStep(
                index=index,
                chapter_index=chapter_index,
                chapter_title=chapter.title,
                step=step,
            )
            index += 1


def count_steps(chapters: Sequence[Chapter]) -> int:
    return sum(len(chapter.steps) for chapter in chapters)


def narration_text(step: Step) -> str | None:
    """Return the step's narration stripped, or None when there is none."""
    if not step.narration:
        return None
    text = step.narration.strip()
    return text or None


def narration_items(chapters: Sequence[Chapter]) -> list[NarrationItem]:
    items = []
    for flat in iter_flat_steps(chapters):
        text = narration_text(flat.step)
        if text is not None:
            items.append(NarrationItem(index=flat.index, text=text))
    return items
