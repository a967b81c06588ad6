"""Place narration text against the recorded video timeline.

WHY: After capture, each narrated step's text belongs at the moment its
action happened in the recording. The event log is the only reliable
record of that moment.

HOW: Walks narration_items() (flattened step index) and looks up the
event with the same index. Playback emits exactly one event per step,
so index i in the step list is index i in the event list.

RULES:
- Times are relative to the first event (first event = 0)
- A narrated step without an event (run stopped early, or an event log
  from an older spec) falls back to index * 3000ms, lasting 3000ms
"""

from __future__ import annotations

from collections.abc import Sequence

from demo_narrator.core.indexing import narration_items
from demo_narrator.core.ir import ActionEvent, NarrationSegment
from demo_narrator.spec.models import Chapter

DEFAULT_STEP_DURATION_MS = 3000


def generate_script(
    chapters: Sequence[Chapter],
    events: Sequence[ActionEvent],
) -> list[NarrationSegment]:
    t0 = events[0].timestamp if events else 0
    segments = []
    for item in narration_items(chapters):
        if item.index < len(events):
            event = events[item.index]
            start = int(event.timestamp - t0)
            end = int(event.end - t0)
        else:
            start = item.index * DEFAULT_STEP_DURATION_MS
            end = start + DEFAULT_STEP_DURATION_MS
        segments.append(NarrationSegment(text=item.text, start_ms=start, end_ms=end))
    return segments
