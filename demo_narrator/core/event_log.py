"""Persist and reload the ActionEvent log.

WHY: The event log is the hand-off between capture and everything that
happens afterwards. Editing a timeline or regenerating narration must
work from the file alone, long after the browser is gone, and a
hand-edited or truncated file must be rejected with a clear message
rather than producing a silently wrong video.

HOW: Events are written as a JSON array (indent 2) through a temp file
and os.replace, so an interrupted incremental write never leaves half a
file. Loading parses JSON, validates the document against
EVENT_LOG_SCHEMA with jsonschema, and maps the first violation to a
readable EventLogError before building ActionEvent dataclasses.

RULES:
- Root must be an array; every entry must be an object
- action (string), timestamp (number), duration (number) are required
- selector, boundingBox, narration are optional
- Writing then reading a list yields an equal list
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from demo_narrator.core.ir import ActionEvent

EVENT_LOG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["action", "timestamp", "duration"],
        "properties": {
            "action": {"type": "string"},
            "timestamp": {"type": "number"},
            "duration": {"type": "number"},
            "selector": {"type": "string"},
            "narration": {"type": "string"},
            "boundingBox": {
                "type": "object",
                "required": ["x", "y", "width", "height"],
                "properties": {
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                    "width": {"type": "number"},
                    "height": {"type": "number"},
                },
            },
        },
    },
}
"""JSON Schema for the persisted event log (also used by tests)."""

_REQUIRED_FIELD_KINDS = {
    "action": "a string",
    "timestamp": "a numeric",
    "duration": "a numeric",
}

_VALIDATOR = Draft202012Validator(EVENT_LOG_SCHEMA)


class EventLogError(ValueError):
    """Raised when an event log file is missing, unparsable, or malformed."""


def _describe(error: ValidationError) -> str:
    path = list(error.absolute_path)
    if not path:
        return "Event log must be a JSON array"

    index = path[0]
    if len(path) == 1:
        if error.validator == "required":
            missing = [f for f in error.validator_value if f not in error.instance]
            field = missing[0]
            return f"Event {index} must have {_REQUIRED_FIELD_KINDS[field]} '{field}'"
        return f"Each event must be an object (event {index})"

    field = path[1]
    if field in _REQUIRED_FIELD_KINDS:
        return f"Event {index} must have {_REQUIRED_FIELD_KINDS[field]} '{field}'"
    return f"Event {index} has an invalid '{field}': {error.message}"


def _sort_key(error: ValidationError) -> tuple[int, int]:
    path = list(error.absolute_path)
    return (path[0] if path else -1, len(path))


def parse_event_log(data: Any) -> list[ActionEvent]:
    """Validate a decoded JSON document and build ActionEvents from it."""
    errors = sorted(_VALIDATOR.iter_errors(data), key=_sort_key)
    if errors:
        raise EventLogError(_describe(errors[0]))
    return [ActionEvent.from_dict(item) for item in data]


def read_event_log(path: str | Path) -> list[ActionEvent]:
    """Load an event log file.

    Raises:
        EventLogError: if the file cannot be read or parsed, or violates
            the event log schema.
    """
    log_path = Path(path)
    try:
        data = json.loads(log_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise EventLogError(f"Cannot read event log {log_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise EventLogError(f"Event log {log_path} is not valid JSON: {exc}") from exc
    return parse_event_log(data)


def write_event_log(events: Sequence[ActionEvent], path: str | Path) -> Path:
    """Write events as a JSON array, replacing the file atomically."""
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps([e.to_dict() for e in events], indent=2, ensure_ascii=False)

    tmp_path = log_path.with_name(log_path.name + ".tmp")
    tmp_path.write_text(payload + "\n", encoding="utf-8")
    os.replace(tmp_path, log_path)
    return log_path
