"""Main event loop for the viewer.

The single ``select`` call below is the only place the process blocks
(apart from a render in progress). It waits on the watcher's wakeup pipe,
stdin, and the resize pipe; there are no timeouts.
"""

from __future__ import annotations

import logging
import select
import shutil
from collections.abc import Callable
from dataclasses import dataclass

from ..errors import ResourceError
from ..input import has_pending_bytes, read_key
from ..watch import ChangeEvent, ChangeWatcher
from .state import AppState
from .terminal import TerminalController

logger = logging.getLogger(__name__)

EXIT_OK = 0


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Operations injected into ``run_main_loop``.

    Keeping feature logic behind callbacks leaves the loop itself as wiring
    and lets tests drive it with fakes.
    """

    reload: Callable[[], None]
    handle_key: Callable[[str], bool]
    resize: Callable[[int, int], None]
    draw: Callable[[], None]


def viewport_rows(term_lines: int, show_status: bool) -> int:
    """Rows available for content once the status bar is accounted for."""
    return max(1, term_lines - (1 if show_status else 0))


def sync_viewport_size(state: AppState, resize: Callable[[int, int], None]) -> None:
    term = shutil.get_terminal_size((80, 24))
    resize(viewport_rows(term.lines, state.show_status), max(1, term.columns))


def run_main_loop(
    state: AppState,
    terminal: TerminalController,
    stdin_fd: int,
    watcher: ChangeWatcher,
    callbacks: RuntimeLoopCallbacks,
) -> int:
    """Run until the user quits or the watched file is removed.

    Returns the process exit code. A pending batch of filesystem changes is
    handled before input when both are ready in the same wakeup.
    """
    ops = callbacks
    watch_fd = watcher.fileno()

    while True:
        sync_viewport_size(state, ops.resize)
        if state.dirty:
            ops.draw()
            state.dirty = False

        read_fds = [watch_fd, stdin_fd]
        resize_fd = terminal.resize_fileno()
        if resize_fd is not None:
            read_fds.append(resize_fd)
        try:
            ready, _, _ = select.select(read_fds, [], [])
        except OSError as exc:
            raise ResourceError(f"failed to wait for changes: {exc.strerror or exc}") from exc

        if watch_fd in ready:
            event = watcher.poll()
            if event is ChangeEvent.WATCHED_FILE_REMOVED:
                logger.info("watched file %s was removed, exiting", state.path)
                return EXIT_OK
            if event is ChangeEvent.CONTENT_CHANGED:
                ops.reload()
            continue

        if resize_fd is not None and resize_fd in ready:
            if terminal.drain_resize():
                state.dirty = True

        if stdin_fd in ready:
            key = read_key(stdin_fd)
            if key == "":
                logger.info("stdin closed, exiting")
                return EXIT_OK
            while True:
                if ops.handle_key(key):
                    return EXIT_OK
                if not has_pending_bytes():
                    break
                key = read_key(stdin_fd)
