"""Demo spec models and loading.

WHY: Playback, timeline building, and narration all read the same demo
spec. Keeping the schema and the loader in one package gives a single
place where a malformed spec is rejected.

HOW: models.py defines the pydantic schema, loader.py reads JSON or
YAML files and wraps validation failures in SpecLoadError.
"""

from demo_narrator.spec.loader import LoadedSpec, SpecLoadError, load_spec
from demo_narrator.spec.models import (
    NO_PACING,
    Chapter,
    DemoSpec,
    Pacing,
    Step,
    StepAction,
    Target,
)

__all__ = [
    "NO_PACING",
    "Chapter",
    "DemoSpec",
    "LoadedSpec",
    "Pacing",
    "SpecLoadError",
    "Step",
    "StepAction",
    "Target",
    "load_spec",
]
