"""Load demo specs from JSON or YAML files.

WHY: Spec files are authored by hand. The loader turns parse errors and
schema violations into one exception type with a readable message, and
remembers the demo spec's directory so relative upload paths resolve the
same way regardless of the working directory.

HOW: Picks a parser from the file extension (PyYAML safe_load for
.yaml/.yml, json for everything else), then validates the document with
DemoSpec.model_validate.

RULES:
- Missing files, parse errors, and validation errors all raise SpecLoadError
- The original exception is chained for debugging
- spec_dir is the absolute directory containing the spec file
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from demo_narrator.spec.models import DemoSpec

_YAML_SUFFIXES = {".yaml", ".yml"}


class SpecLoadError(ValueError):
    """Raised when a spec file cannot be read, parsed, or validated."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Invalid spec {path}: {message}")


@dataclass(frozen=True)
class LoadedSpec:
    spec: DemoSpec
    spec_dir: Path


def _format_validation_error(exc: ValidationError) -> str:
    lines = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"])
        lines.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(lines)


def parse_spec(data: Any, path: Path) -> DemoSpec:
    """Validate an already-parsed spec document."""
    try:
        return DemoSpec.model_validate(data)
    except ValidationError as exc:
        raise SpecLoadError(path, _format_validation_error(exc)) from exc


def load_spec(path: str | Path) -> LoadedSpec:
    """Read and validate a spec file.

    Args:
        path: Path to a .json, .yaml, or .yml spec file.

    Returns:
        LoadedSpec with the validated DemoSpec and its directory.
    """
    spec_path = Path(path).resolve()
    try:
        raw = spec_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(spec_path, f"cannot read file ({exc})") from exc

    try:
        if spec_path.suffix.lower() in _YAML_SUFFIXES:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise SpecLoadError(spec_path, f"cannot parse file ({exc})") from exc

    return LoadedSpec(spec=parse_spec(data, spec_path), spec_dir=spec_path.parent)
