"""Persist and reload capture metadata beside the event log.

WHY: The video recording starts when the browser page opens, not at the
first action. The event log alone cannot say how far into the video the
first event lands, so a capture also writes the playback start
timestamp. An edit run long after the capture can then line the video
clock up with the events.

HOW: CaptureMetadata is written as a small JSON object (indent 2) next to
events.json. Loading validates it against CAPTURE_METADATA_SCHEMA with
jsonschema, the same way the event log is validated.
read_capture_metadata_maybe() is the best-effort variant for edit runs,
where the file may be absent or from an older capture.

RULES:
- schemaVersion must be 1; startTimestamp (number) and createdAt (string)
  are required; specTitle is optional
- A missing or invalid file never fails an edit run
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
SCHEMA_VERSION = 1

CAPTURE_METADATA_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["schemaVersion", "startTimestamp", "createdAt"],
    "properties": {
        "schemaVersion": {"const": SCHEMA_VERSION},
        "startTimestamp": {"type": "number"},
        "createdAt": {"type": "string"},
        "specTitle": {"type": "string"},
    },
}

_VALIDATOR = Draft202012Validator(CAPTURE_METADATA_SCHEMA)


class CaptureMetadataError(ValueError):
    """Raised when a metadata file is missing, unparsable, or malformed."""


@dataclass(frozen=True)
class CaptureMetadata:
    start_timestamp: float
    created_at: str
    spec_title: str | None = None
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def now(cls, start_timestamp: float, spec_title: str | None = None) -> CaptureMetadata:
        return cls(
            start_timestamp=start_timestamp,
            created_at=datetime.now(timezone.utc).isoformat(),
            spec_title=spec_title,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaptureMetadata:
        return cls(
            start_timestamp=data["startTimestamp"],
            created_at=data["createdAt"],
            spec_title=data.get("specTitle"),
            schema_version=data["schemaVersion"],
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "schemaVersion": self.schema_version,
            "startTimestamp": self.start_timestamp,
            "createdAt": self.created_at,
        }
        if self.spec_title is not None:
            out["specTitle"] = self.spec_title
        return out


def parse_capture_metadata(data: Any) -> CaptureMetadata:
    """Validate a decoded JSON document and build CaptureMetadata from it."""
    error = next(iter(_VALIDATOR.iter_errors(data)), None)
    if error is not None:
        if not isinstance(data, dict):
            raise CaptureMetadataError("Capture metadata must be a JSON object")
        if error.validator == "required":
            missing = [f for f in error.validator_value if f not in data]
            raise CaptureMetadataError(f"Capture metadata is missing '{missing[0]}'")
        field = error.absolute_path[0] if error.absolute_path else "?"
        if field == "schemaVersion":
            raise CaptureMetadataError("Unsupported capture metadata schemaVersion")
        raise CaptureMetadataError(f"Capture metadata has an invalid '{field}': {error.message}")
    return CaptureMetadata.from_dict(data)


def write_capture_metadata(meta: CaptureMetadata, path: str | Path) -> Path:
    meta_path = Path(path)
    meta_path.parent.mkdir(parents=True, exist_ok=True)
    meta_path.write_text(json.dumps(meta.to_dict(), indent=2) + "\n", encoding="utf-8")
    return meta_path


def read_capture_metadata(path: str | Path) -> CaptureMetadata:
    """Load a metadata file.

    Raises:
        CaptureMetadataError: if the file cannot be read or parsed, or
            violates the metadata schema.
    """
    meta_path = Path(path)
    try:
        data = json.loads(meta_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CaptureMetadataError(f"Cannot read capture metadata {meta_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CaptureMetadataError(f"Capture metadata {meta_path} is not valid JSON: {exc}") from exc
    return parse_capture_metadata(data)


def read_capture_metadata_maybe(path: str | Path) -> CaptureMetadata | None:
    """Like read_capture_metadata(), but returns None instead of raising."""
    try:
        return read_capture_metadata(path)
    except CaptureMetadataError as exc:
        logger.debug("No usable capture metadata: %s", exc)
        return None
