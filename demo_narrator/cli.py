"""Command-line interface for Demo Narrator.

WHY: Users need a simple way to record a narrated demo from the
terminal and to re-cut the timeline from a saved event log without
recording again. The CLI wires the pipeline behind two subcommands.

HOW: argparse with ``capture`` and ``edit`` subcommands. Runs the async
pipeline via asyncio.run(). Logging is configured from DEMO_LOG_LEVEL;
status messages go to stderr. A failed step prints the structured error
(as JSON) and exits non-zero, leaving partial artifacts in place.

RULES:
- capture <spec>: --output-dir, --headless/--no-headless, --narration-sync,
  --narration-buffer-ms, --no-narration, --base-url
- edit <events.json> <spec>: --output, --narration-audio
- Exit codes: 0 success, 1 failure, 130 cancelled
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from demo_narrator import __version__, config
from demo_narrator.config import SyncMode
from demo_narrator.pipeline import TIMELINE_FILE, run_capture, run_edit
from demo_narrator.playback.errors import PlaybackStepError
from demo_narrator.spec.loader import load_spec
from demo_narrator.utils.process import ToolInvocationError

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format=config.LOG_FORMAT)


def _default_output_dir(spec_path: Path) -> Path:
    return Path("output") / spec_path.stem


async def _run_capture(args: argparse.Namespace) -> None:
    spec_path = Path(args.spec)
    loaded = load_spec(spec_path)
    output_dir = Path(args.output_dir) if args.output_dir else _default_output_dir(spec_path)

    _status("Recording {} -> {}".format(spec_path.name, output_dir))
    result = await run_capture(
        loaded,
        output_dir,
        headless=args.headless,
        narration=args.narration,
        narration_sync=args.narration_sync,
        narration_buffer_ms=args.narration_buffer_ms,
        base_url=args.base_url,
        on_status=_status,
    )

    _status("")
    _status("Done! {} segment(s), {:.1f}s".format(
        len(result.timeline.segments), result.timeline.total_duration_ms / 1000,
    ))
    _status("  Events:   {}".format(result.events_path))
    _status("  Timeline: {}".format(result.timeline_path))
    if result.video_path:
        _status("  Video:    {}".format(result.video_path))
    if result.narration:
        _status("  Audio:    {}".format(result.narration.audio_path))


async def _run_edit(args: argparse.Namespace) -> None:
    events_path = Path(args.events)
    output = Path(args.output) if args.output else events_path.with_name(TIMELINE_FILE)
    timeline = await run_edit(events_path, args.spec, output, narration_audio=args.narration_audio)
    _status("Saved timeline with {} segment(s) ({:.1f}s) to {}".format(
        len(timeline.segments), timeline.total_duration_ms / 1000, output,
    ))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="demo_narrator",
        description="Record narrated product demos from declarative step lists.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="Play a spec in a browser and record it.")
    capture.add_argument("spec", help="Path to the demo spec (.yaml, .yml, or .json).")
    capture.add_argument(
        "--output-dir",
        default=None,
        help="Directory for events, video, narration, and timeline (default: output/<spec>).",
    )
    capture.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the browser headless (default: %(default)s).",
    )
    capture.add_argument(
        "--narration-sync",
        choices=[m.value for m in SyncMode],
        default=None,
        help="Narration sync mode (default: spec, then DEMO_NARRATION_SYNC, then manual).",
    )
    capture.add_argument(
        "--narration-buffer-ms",
        type=float,
        default=None,
        help="Silence between a clip's end and its action "
             "(default: {}ms).".format(config.DEFAULT_NARRATION_BUFFER_MS),
    )
    capture.add_argument(
        "--no-narration",
        dest="narration",
        action="store_false",
        help="Skip narration even if the demo file enables it.",
    )
    capture.add_argument("--base-url", default=None, help="Override runner.url from the demo file.")
    capture.set_defaults(handler=_run_capture)

    edit = sub.add_parser("edit", help="Rebuild the timeline from a saved event log.")
    edit.add_argument("events", help="Path to events.json from a previous capture.")
    edit.add_argument("spec", help="Path to the demo file the events were recorded from.")
    edit.add_argument(
        "--output",
        default=None,
        help="Timeline output path (default: timeline.json next to the events).",
    )
    edit.add_argument(
        "--narration-audio",
        default=None,
        help="Mixed narration track; extends the timeline to its duration.",
    )
    edit.set_defaults(handler=_run_edit)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        asyncio.run(args.handler(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except PlaybackStepError as e:
        print("Error: {}".format(e), file=sys.stderr)
        print("Cause: {}".format(e.cause), file=sys.stderr)
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        sys.exit(1)
    except ToolInvocationError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        # Spec, event log, and config errors
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
