"""Async invocation of external command-line tools (ffmpeg, ffprobe, piper).

WHY: Duration probing, audio mixing, and local TTS are delegated to
external binaries. When one of them fails, the only useful diagnosis is
the tail of its stderr, since an exit code alone says nothing. Every
invocation goes through one helper that captures output and raises a
typed error carrying the command and the stderr tail.

HOW: run_tool() starts the process with asyncio.create_subprocess_exec,
optionally feeds stdin, waits for it to finish, and raises
ToolInvocationError on a missing binary or a non-zero exit.
probe_duration_ms() wraps ffprobe's format=duration query.

RULES:
- Never invoke a shell; arguments are passed as a list
- stderr tail is limited to STDERR_TAIL_CHARS characters
- A missing binary is a ToolInvocationError too, not FileNotFoundError
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from demo_narrator import config

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 500


class ToolInvocationError(RuntimeError):
    """Raised when an external tool cannot be started or exits non-zero.

    RULES:
    - command is the full argv list
    - returncode is None when the binary could not be started
    - stderr_tail holds the last STDERR_TAIL_CHARS characters of stderr
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None,
        stderr_tail: str,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        status = "could not be started" if returncode is None else f"exited with code {returncode}"
        super().__init__(f"{self.command[0]} {status}: {stderr_tail.strip()}")


@dataclass(frozen=True)
class ToolResult:
    stdout: bytes
    stderr: str


async def run_tool(args: Sequence[str], stdin: bytes | None = None) -> ToolResult:
    """Run an external tool to completion and capture its output.

    Args:
        args: argv list; args[0] is the binary.
        stdin: optional bytes written to the process's stdin.

    Returns:
        ToolResult with raw stdout and decoded stderr.

    Raises:
        ToolInvocationError: binary missing or non-zero exit.
    """
    logger.debug("Running %s", " ".join(args))
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ToolInvocationError(args, None, str(exc)) from exc

    stdout, stderr_bytes = await proc.communicate(stdin)
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        raise ToolInvocationError(args, proc.returncode, stderr[-STDERR_TAIL_CHARS:])
    return ToolResult(stdout=stdout, stderr=stderr)


async def probe_duration_ms(path: str | Path) -> int:
    """Return an audio file's duration in milliseconds using ffprobe."""
    args = [
        config.FFPROBE_BIN,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "csv=p=0",
        str(path),
    ]
    result = await run_tool(args)
    text = result.stdout.decode("utf-8", errors="replace").strip()
    try:
        seconds = float(text)
    except ValueError:
        raise ToolInvocationError(args, 0, f"unexpected duration output: {text!r}") from None
    return int(round(seconds * 1000))
