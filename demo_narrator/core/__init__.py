"""Core data model, step indexing, and event log modules.

WHY: The core package holds the contracts shared by playback, editing,
and narration: the ActionEvent log, timeline segments, narration timing
entries, and the one helper that numbers steps across chapters.

HOW: ir.py defines the data structures, indexing.py walks chapters in
document order, event_log.py persists and reloads ActionEvent lists,
metadata.py records the playback start timestamp beside them.

RULES:
- IR dataclasses are the contract; change with care
- Every module that keys narration by step uses indexing.py
- Event log loading validates shape before building dataclasses
"""
