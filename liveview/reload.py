"""Reload engine: re-render, diff against the previous buffer, reposition.

The repositioning heuristic looks only for the first diverging line in the
shared prefix, which is O(min(n, m)) and approximates where an editor's
incremental redraw would focus without computing a minimal edit script.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from .errors import RenderError
from .invoker import RenderCommand, run_and_capture
from .viewport import clamp_offset

if TYPE_CHECKING:
    from .runtime.state import AppState

logger = logging.getLogger(__name__)

RenderRunner = Callable[[RenderCommand], list[str]]
LineStyler = Callable[[list[str]], list[str]]


def first_divergence(old_lines: Sequence[str], new_lines: Sequence[str]) -> int | None:
    """Return the first index where the shared prefix differs, if any."""
    for idx, (old, new) in enumerate(zip(old_lines, new_lines)):
        if old != new:
            return idx
    return None


def reposition_target(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    current_offset: int,
    first_load: bool,
) -> int:
    """Pick the unclamped offset to show after replacing ``old_lines``.

    Jumps to the first changed line; with an unchanged shared prefix it
    reveals the tail when lines were appended or removed, and otherwise keeps
    the current position. The first load always starts at the top.
    """
    divergence = first_divergence(old_lines, new_lines)
    if divergence is not None:
        return divergence
    if first_load:
        return 0
    if len(old_lines) != len(new_lines):
        return len(new_lines)
    return current_offset


class ReloadEngine:
    """Owns buffer replacement and offset repositioning for ``AppState``."""

    def __init__(
        self,
        state: AppState,
        run_render: RenderRunner = run_and_capture,
        style_lines: LineStyler | None = None,
    ) -> None:
        self.state = state
        self._run_render = run_render
        self._style_lines = style_lines

    def reload(self) -> None:
        """Re-run the render and reposition the viewport.

        The first reload lets ``RenderError`` propagate since there is no
        previous content to fall back to. Later render errors leave the buffer
        and offset untouched and surface through ``state.status_message``.
        ``ResourceError`` always propagates.
        """
        state = self.state
        try:
            new_lines = self._run_render(state.command)
        except RenderError as exc:
            if not state.loaded:
                raise
            logger.warning("keeping previous content: %s", exc)
            state.status_message = str(exc)
            state.dirty = True
            return

        target = reposition_target(state.lines, new_lines, state.start, first_load=not state.loaded)
        state.lines = new_lines
        state.display_lines = self._display_lines_for(new_lines)
        state.loaded = True
        state.reload_count += 1
        state.status_message = ""
        state.start = clamp_offset(target, len(new_lines), state.rows)
        state.dirty = True
        logger.info(
            "reload #%d: %d lines, target %d, offset %d",
            state.reload_count,
            len(new_lines),
            target,
            state.start,
        )

    def resize(self, rows: int, columns: int | None = None) -> None:
        """Apply a new viewport height and re-clamp the offset."""
        state = self.state
        rows = max(1, rows)
        if columns is not None and columns != state.columns:
            state.columns = columns
            state.dirty = True
        if rows == state.rows:
            return
        state.rows = rows
        state.start = clamp_offset(state.start, len(state.lines), rows)
        state.dirty = True

    def _display_lines_for(self, lines: list[str]) -> list[str]:
        if self._style_lines is None:
            return list(lines)
        styled = self._style_lines(lines)
        if len(styled) != len(lines):
            logger.debug("styled line count %d != %d, using raw lines", len(styled), len(lines))
            return list(lines)
        return styled
