"""Render program invocation.

Runs the configured render command as a child process and captures its
combined stdout/stderr as the new buffer contents. This is the only module
that touches process primitives.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass

from .errors import RenderFailed, RenderTerminated, ResourceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderCommand:
    """Program path plus arguments, fixed for the process lifetime."""

    argv: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("render command must name a program")

    @property
    def program(self) -> str:
        return self.argv[0]

    def __str__(self) -> str:
        return " ".join(self.argv)


def split_output_lines(output: str) -> list[str]:
    """Split ``output`` on ``"\\n"`` only, keeping each terminator.

    Unlike ``str.splitlines`` this leaves ``\\r``, form feeds, and unicode line
    separators inside the line they belong to. A trailing fragment without a
    newline becomes the last line; there is no trailing empty line.
    """
    if not output:
        return []
    parts = output.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def decode_output(data: bytes) -> str:
    """Decode render output, falling back to replacement for invalid UTF-8."""
    return data.decode("utf-8", errors="replace")


def run_and_capture(command: RenderCommand) -> list[str]:
    """Run ``command`` to completion and return its output lines.

    Raises ``RenderFailed`` for a nonzero exit, ``RenderTerminated`` when the
    child died from a signal, and ``ResourceError`` when the process or its
    pipe could not be created, read, or waited on.
    """
    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            list(command.argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as exc:
        raise ResourceError(f"failed to execute render {command.program!r}: {exc.strerror or exc}") from exc

    with proc:
        try:
            data, _ = proc.communicate()
            returncode = proc.returncode
        except OSError as exc:
            proc.kill()
            proc.wait()
            raise ResourceError(f"failed to read from the render: {exc.strerror or exc}") from exc
        except BaseException:
            proc.kill()
            proc.wait()
            raise

    lines = split_output_lines(decode_output(data))
    logger.debug(
        "render %r exited with %d after %.3fs (%d lines)",
        str(command),
        returncode,
        time.monotonic() - started,
        len(lines),
    )

    first_line = lines[0] if lines else ""
    if returncode < 0:
        raise RenderTerminated(-returncode, first_line)
    if returncode != 0:
        raise RenderFailed(returncode, first_line)
    return lines
