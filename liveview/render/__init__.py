"""Viewport renderer: paints the visible slice of the buffer.

Every frame is composed in full and written with a single ``os.write``.
Nothing here mutates runtime state.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from ..ansi import clip_ansi_line, display_width

STATUS_HINT = "q quit"


@dataclass(frozen=True)
class StatusInfo:
    label: str
    message: str = ""


def scroll_percent(start: int, total_lines: int, visible_rows: int) -> float:
    """Percentage through the scrollable range, 0.0 when nothing scrolls."""
    if total_lines <= 0:
        return 0.0
    max_start = max(0, total_lines - max(1, visible_rows))
    if max_start <= 0:
        return 0.0
    clamped_start = max(0, min(start, max_start))
    return (clamped_start / max_start) * 100.0


def build_status_line(left_text: str, width: int, right_text: str = STATUS_HINT) -> str:
    """Lay out ``left_text`` and ``right_text`` across one row of ``width``.

    The right side wins when space is short; the left side is truncated first.
    """
    usable = max(1, width - 1)
    right_width = display_width(right_text)
    if usable <= right_width:
        return clip_ansi_line(right_text, usable)
    left = clip_ansi_line(left_text, max(0, usable - right_width - 1))
    gap = " " * (usable - display_width(left) - right_width)
    return f"{left}{gap}{right_text}"


def status_left_text(label: str, start: int, total_lines: int, rows: int) -> str:
    end = min(total_lines, start + rows)
    first = start + 1 if total_lines else 0
    percent = scroll_percent(start, total_lines, rows)
    return f"{label} ({first}-{end}/{total_lines} {percent:5.1f}%)"


def compose_frame(
    display_lines: list[str],
    start: int,
    rows: int,
    width: int,
    status: StatusInfo | None = None,
) -> str:
    """Build the full ANSI frame for the viewport starting at ``start``."""
    out: list[str] = ["\033[H\033[J"]
    line_width = max(1, width - 1)
    for row in range(max(0, rows)):
        idx = start + row
        if idx < len(display_lines):
            text = clip_ansi_line(display_lines[idx].rstrip("\r\n"), line_width)
            out.append(text)
            if "\033" in text:
                out.append("\033[0m")
        if row < rows - 1 or status is not None:
            out.append("\r\n")
    if status is not None:
        if status.message:
            right = f"│ {status.message}"
        else:
            right = f"│ {STATUS_HINT}"
        left = status_left_text(status.label, start, len(display_lines), rows)
        out.append("\033[7m")
        out.append(build_status_line(left, width, right))
        out.append("\033[0m")
    return "".join(out)


def render_viewport(
    display_lines: list[str],
    start: int,
    rows: int,
    width: int,
    status: StatusInfo | None = None,
) -> None:
    """Paint one frame to stdout."""
    frame = compose_frame(display_lines, start, rows, width, status)
    os.write(sys.stdout.fileno(), frame.encode("utf-8", errors="replace"))
