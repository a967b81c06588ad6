"""Exception types raised during playback.

WHY: Playback failures come in three flavours that callers treat very
differently: a spec-authoring bug (no target), a step that failed in the
browser, and a failed run that needs post-mortem artifacts. Typed
exceptions let the CLI decide what to capture and what to print.

HOW: Lower layers raise TargetResolutionError, InvalidStepError, or
StepAssertionError (or Playwright's own errors). The engine wraps any of
them exactly once in PlaybackStepError, which carries the step context
and a copy of the events recorded so far.

RULES:
- PlaybackStepError keeps the original exception as __cause__
- events on PlaybackStepError is a copy, not the engine's live list
- to_dict() is what gets written to failure.json
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from demo_narrator.core.ir import ActionEvent
from demo_narrator.spec.models import Step


class TargetResolutionError(ValueError):
    """Raised when a step needs a target but has neither selector nor target."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f'Step "{action}" requires "selector" or supported "target"')


class InvalidStepError(ValueError):
    """Raised when a step's own fields cannot be acted on (e.g. a bad screenshot name)."""


class StepAssertionError(AssertionError):
    """Raised when an assert step's expectation is not met before its timeout."""

    def __init__(self, expected_text: str, descriptor: str) -> None:
        self.expected_text = expected_text
        self.descriptor = descriptor
        super().__init__(f'Assertion failed: "{expected_text}" not found in {descriptor}')


class PlaybackStepError(RuntimeError):
    """A step failed; carries everything needed for a post-mortem.

    WHY: "Timeout 15000ms exceeded" alone does not say which of forty
    steps failed. The wrapped error names the step, its chapter and
    target, and carries the partial event log so the caller can still
    save what was recorded.

    RULES:
    - step_index is the flattened (0-based) step index
    - selector is the human-readable target descriptor ("" when none)
    - Raise with ``raise PlaybackStepError(...) from cause``
    """

    def __init__(
        self,
        *,
        step_index: int,
        chapter_title: str,
        step: Step,
        selector: str,
        events: Sequence[ActionEvent],
        start_timestamp: int,
        cause: BaseException,
    ) -> None:
        self.step_index = step_index
        self.chapter_title = chapter_title
        self.step = step
        self.selector = selector
        self.events = list(events)
        self.start_timestamp = start_timestamp
        self.cause = cause
        super().__init__(
            f"Playback failed at step {step_index} ({chapter_title}): "
            f"{step.action} {selector}".rstrip()
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "cause": f"{type(self.cause).__name__}: {self.cause}",
            "stepIndex": self.step_index,
            "chapterTitle": self.chapter_title,
            "step": self.step.model_dump(mode="json", by_alias=True, exclude_none=True),
            "selector": self.selector,
            "startTimestamp": self.start_timestamp,
            "events": [e.to_dict() for e in self.events],
        }
