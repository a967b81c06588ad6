"""Intermediate representation dataclasses for playback, timelines, and narration.

WHY: Playback produces a log of what happened when; the editor turns
that log into render segments; narration places audio clips against the
same clock. Each stage needs well-typed records that can be written to
disk and reloaded without a live browser, so the stages stay decoupled.

HOW: Plain dataclasses grouped by stage:
  BoundingBox / ActionEvent: one completed step and its target box
  NarrationTimingEntry: measured or estimated clip duration
  NarrationSegment: script text placed against the video
  TimedNarrationSegment: clip placed on the mixed audio track
  ZoomRegion / Segment / Timeline: render segments for the video

RULES:
- All segment times are integer milliseconds, rounded from event times
- ActionEvent.timestamp is wall-clock epoch ms; segment times are relative
  to the first event (first event = 0)
- to_dict() emits camelCase keys and omits unset optional fields
- Segment and Timeline are frozen; build a new one instead of mutating
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Playback events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundingBox:
    """Viewport-relative rectangle of a step's target element, in CSS pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BoundingBox:
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class ActionEvent:
    """One successfully completed step.

    WHY: The event list is the sole source of truth for "what happened
    when". The timeline builder, the narration script, and the mixer all
    derive their timing from it rather than from the demo file.

    HOW: The step executor stamps the wall-clock time just before acting
    and measures duration when the action (and its visual feedback) is
    finished.

    RULES:
    - Exactly one event per completed step, appended in step order
    - timestamp is the action *start* in epoch milliseconds
    - selector is the human-readable target descriptor, never a live handle
    - bounding_box is set only when the target had a box at action time
    """

    action: str
    timestamp: float
    duration: float
    selector: str | None = None
    bounding_box: BoundingBox | None = None
    narration: str | None = None

    @property
    def end(self) -> float:
        return self.timestamp + self.duration

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionEvent:
        box = data.get("boundingBox")
        return cls(
            action=data["action"],
            timestamp=data["timestamp"],
            duration=data["duration"],
            selector=data.get("selector"),
            bounding_box=BoundingBox.from_dict(box) if box else None,
            narration=data.get("narration"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "action": self.action,
            "timestamp": self.timestamp,
            "duration": self.duration,
        }
        if self.selector is not None:
            out["selector"] = self.selector
        if self.bounding_box is not None:
            out["boundingBox"] = self.bounding_box.to_dict()
        if self.narration is not None:
            out["narration"] = self.narration
        return out


# ---------------------------------------------------------------------------
# Narration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NarrationTimingEntry:
    """Duration of one step's narration, measured from audio or estimated.

    RULES:
    - Keyed by flattened step index in a NarrationTimingMap
    - audio_path is set only when a synthesized clip exists on disk
    """

    text: str
    duration_ms: int
    audio_path: str | None = None


NarrationTimingMap = dict[int, NarrationTimingEntry]


@dataclass(frozen=True)
class NarrationSegment:
    """Narration text placed against the video timeline (script output)."""

    text: str
    start_ms: int
    end_ms: int


@dataclass(frozen=True)
class TimedNarrationSegment:
    """A narration clip as placed on the mixed audio track."""

    text: str
    start_ms: int
    duration_ms: int

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "startMs": self.start_ms, "durationMs": self.duration_ms}


# ---------------------------------------------------------------------------
# Render timeline
# ---------------------------------------------------------------------------


class SegmentType(str, enum.Enum):
    """Kinds of render segment understood by the renderer."""

    INTRO = "intro"
    CHAPTER = "chapter"
    CONTENT = "content"
    CALLOUT = "callout"
    OUTRO = "outro"


@dataclass(frozen=True)
class ZoomRegion:
    """Area the renderer zooms into for a callout, padded around the target."""

    x: float
    y: float
    width: float
    height: float
    padding: int = 40

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "padding": self.padding,
        }


@dataclass(frozen=True)
class Segment:
    """One render segment on the video timeline.

    RULES:
    - label is set for intro, chapter, and outro segments
    - zoom is set for callout segments only
    - speed_factor is set on content segments that follow dead time
    """

    type: SegmentType
    start_ms: int
    end_ms: int
    label: str | None = None
    zoom: ZoomRegion | None = None
    speed_factor: float | None = None

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Segment:
        zoom = data.get("zoom")
        return cls(
            type=SegmentType(data["type"]),
            start_ms=data["startMs"],
            end_ms=data["endMs"],
            label=data.get("label"),
            zoom=ZoomRegion(**zoom) if zoom else None,
            speed_factor=data.get("speedFactor"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type.value,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
        }
        if self.label is not None:
            out["label"] = self.label
        if self.zoom is not None:
            out["zoom"] = self.zoom.to_dict()
        if self.speed_factor is not None:
            out["speedFactor"] = self.speed_factor
        return out


@dataclass(frozen=True)
class Resolution:
    width: int = 1920
    height: int = 1080


@dataclass(frozen=True)
class Timeline:
    """The complete render plan handed to the rendering collaborator.

    WHY: The renderer needs one ordered list of segments plus the final
    duration and output size; it never sees raw events or the demo file.

    RULES:
    - Built once per render and never mutated
    - to_json() is deterministic (same input → byte-identical output)
    """

    segments: tuple[Segment, ...] = field(default_factory=tuple)
    total_duration_ms: int = 0
    resolution: Resolution = field(default_factory=Resolution)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Timeline:
        res = data.get("resolution") or {}
        return cls(
            segments=tuple(Segment.from_dict(s) for s in data.get("segments", [])),
            total_duration_ms=data.get("totalDurationMs", 0),
            resolution=Resolution(
                width=res.get("width", 1920),
                height=res.get("height", 1080),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "segments": [s.to_dict() for s in self.segments],
            "totalDurationMs": self.total_duration_ms,
            "resolution": {
                "width": self.resolution.width,
                "height": self.resolution.height,
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
