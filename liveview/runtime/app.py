"""Runtime composition layer for liveview.

Builds the initial state, acquires the watch subscription and the terminal,
forces the first reload, and hands control to the event loop. Fatal errors
propagate out of both contexts so the terminal is restored before anyone
prints about them.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from ..config import DEFAULT_STYLE
from ..highlight import make_line_styler
from ..input import handle_key
from ..invoker import RenderCommand
from ..reload import ReloadEngine
from ..render import StatusInfo, render_viewport
from ..watch import DEFAULT_DEBOUNCE_MS, ChangeWatcher
from .loop import RuntimeLoopCallbacks, run_main_loop, sync_viewport_size
from .state import AppState
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewerOptions:
    path: Path
    command: RenderCommand
    lexer: str | None = None
    style: str = DEFAULT_STYLE
    no_color: bool = False
    show_status: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS


def draw_state(state: AppState) -> None:
    """Paint the current viewport for ``state``."""
    status = StatusInfo(label=str(state.path), message=state.status_message) if state.show_status else None
    render_viewport(state.display_lines, state.start, state.rows, state.columns, status)


def run_viewer(options: ViewerOptions) -> int:
    """Run the interactive viewer and return its exit code."""
    state = AppState(path=options.path, command=options.command, show_status=options.show_status)
    engine = ReloadEngine(
        state,
        style_lines=make_line_styler(options.lexer, options.style, options.no_color),
    )

    # Setup failures surface here, before any UI is shown.
    watcher = ChangeWatcher(options.path, debounce_ms=options.debounce_ms)
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())

    callbacks = RuntimeLoopCallbacks(
        reload=engine.reload,
        handle_key=partial(handle_key, state=state),
        resize=engine.resize,
        draw=partial(draw_state, state),
    )

    logger.info("starting viewer for %s with render %r", options.path, str(options.command))
    with watcher, terminal.raw_mode():
        sync_viewport_size(state, engine.resize)
        engine.reload()
        return run_main_loop(state, terminal, stdin_fd, watcher, callbacks)
