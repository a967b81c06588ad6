"""Editing: turn a recorded event log into a render timeline."""

from demo_narrator.editor.timeline import build_timeline, extend_timeline_for_narration

__all__ = ["build_timeline", "extend_timeline_for_narration"]
