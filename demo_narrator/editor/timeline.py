"""Build the render timeline from a recorded event log.

WHY: The raw recording is one continuous take. The rendered video needs
an intro card, a title card per chapter, zoom callouts on clicks, an
outro, and fast-forwarding over dead air where the page was loading.
Those decisions depend only on the event log and the demo file, so they are
made here, after capture, as a pure function that can be re-run (and
re-tuned) without recording again.

HOW: Events are made relative to the first event's timestamp. The
builder walks chapters and their steps in order, consuming one event per
step, and emits intro/chapter/content/callout/outro segments.
extend_timeline_for_narration() lengthens the timeline when the mixed
narration track outlasts the recording.

RULES:
- No events → empty timeline (duration 0)
- Intro [0, 2000) labelled with the demo title
- Chapter title (1500ms) starts at the chapter's first event; stop when events run out
- Content segment per event; speed_factor=3 when the gap to the previous
  event's end exceeds 3000ms (never on the first event)
- Click with a bounding box adds a 1500ms callout, zoom padded by 40px
- Outro [max(0, total - 2000), total) labelled "Thanks for watching"
- Same input → identical Timeline (and identical JSON)
"""

from __future__ import annotations

from collections.abc import Sequence

from demo_narrator.core.ir import (
    ActionEvent,
    Resolution,
    Segment,
    SegmentType,
    Timeline,
    ZoomRegion,
)
from demo_narrator.spec.models import DemoSpec

INTRO_DURATION_MS = 2000
CHAPTER_TITLE_DURATION_MS = 1500
CALLOUT_DURATION_MS = 1500
OUTRO_DURATION_MS = 2000
DEAD_TIME_THRESHOLD_MS = 3000
SPEED_FACTOR = 3
ZOOM_PADDING = 40
OUTRO_LABEL = "Thanks for watching"


def _outro(total_ms: int) -> Segment:
    return Segment(
        type=SegmentType.OUTRO,
        start_ms=max(0, total_ms - OUTRO_DURATION_MS),
        end_ms=total_ms,
        label=OUTRO_LABEL,
    )


def build_timeline(events: Sequence[ActionEvent], spec: DemoSpec) -> Timeline:
    """Convert an event log into render segments.

    Args:
        events: Recorded events in step order.
        spec: The demo spec the events were recorded from.

    Returns:
        An immutable Timeline.
    """
    resolution = Resolution(
        width=spec.meta.resolution.width,
        height=spec.meta.resolution.height,
    )
    if not events:
        return Timeline(segments=(), total_duration_ms=0, resolution=resolution)

    t0 = events[0].timestamp
    last = events[-1]
    total = round(last.timestamp + last.duration - t0)

    segments = [
        Segment(
            type=SegmentType.INTRO,
            start_ms=0,
            end_ms=INTRO_DURATION_MS,
            label=spec.meta.title,
        )
    ]

    event_index = 0
    for chapter in spec.chapters:
        if event_index >= len(events):
            break

        chapter_start = round(events[event_index].timestamp - t0)
        segments.append(
            Segment(
                type=SegmentType.CHAPTER,
                start_ms=chapter_start,
                end_ms=chapter_start + CHAPTER_TITLE_DURATION_MS,
                label=chapter.title,
            )
        )

        for _step in chapter.steps:
            if event_index >= len(events):
                break
            event = events[event_index]
            rel_start = round(event.timestamp - t0)

            speed_factor = None
            if event_index > 0:
                previous = events[event_index - 1]
                if event.timestamp - previous.end > DEAD_TIME_THRESHOLD_MS:
                    speed_factor = SPEED_FACTOR

            segments.append(
                Segment(
                    type=SegmentType.CONTENT,
                    start_ms=rel_start,
                    end_ms=round(rel_start + event.duration),
                    speed_factor=speed_factor,
                )
            )

            box = event.bounding_box
            if event.action == "click" and box is not None:
                segments.append(
                    Segment(
                        type=SegmentType.CALLOUT,
                        start_ms=rel_start,
                        end_ms=rel_start + CALLOUT_DURATION_MS,
                        zoom=ZoomRegion(
                            x=box.x,
                            y=box.y,
                            width=box.width,
                            height=box.height,
                            padding=ZOOM_PADDING,
                        ),
                    )
                )
            event_index += 1

    segments.append(_outro(total))
    return Timeline(segments=tuple(segments), total_duration_ms=total, resolution=resolution)


def extend_timeline_for_narration(timeline: Timeline, narration_total_ms: int) -> Timeline:
    """Make the timeline at least as long as the narration track.

    WHY: Narration is never truncated. If the mixed track runs past the
    last recorded action, the renderer must hold the final frame until
    the voice finishes, with the outro placed at the new end.

    RULES:
    - narration_total_ms <= current total → timeline returned unchanged
    - Otherwise total becomes narration_total_ms and every outro segment
      is moved to [max(0, total - 2000), total)
    - An empty timeline gains only an outro
    """
    if narration_total_ms <= timeline.total_duration_ms:
        return timeline

    total = round(narration_total_ms)
    segments = [s for s in timeline.segments if s.type is not SegmentType.OUTRO]
    segments.append(_outro(total))
    return Timeline(
        segments=tuple(segments),
        total_duration_ms=total,
        resolution=timeline.resolution,
    )
