"""Terminal control for the viewer session.

Owns raw-mode lifecycle, alternate-screen switching, wheel reporting, and
the SIGWINCH wakeup pipe the event loop selects on for resizes.
"""

from __future__ import annotations

import contextlib
import os
import signal
import termios
import tty

from ..errors import SetupError

ENTER_TUI_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?1000h\x1b[?1006h"
EXIT_TUI_SEQUENCE = b"\x1b[?1000l\x1b[?1006l\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Manage terminal mode transitions around the interactive session."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        try:
            self._saved_tty_state = termios.tcgetattr(stdin_fd)
        except termios.error as exc:
            raise SetupError("cannot initialize the terminal: stdin is not a tty") from exc
        self._resize_read_fd: int | None = None
        self._resize_write_fd: int | None = None
        self._previous_winch_handler = None

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with mouse wheel reporting."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_TUI_SEQUENCE)

    def disable_tui_mode(self) -> None:
        """Restore the main screen, cursor, and saved tty attributes."""
        os.write(self.stdout_fd, EXIT_TUI_SEQUENCE)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def resize_fileno(self) -> int | None:
        """Readable fd signalled on terminal resize, while raw mode is active."""
        return self._resize_read_fd

    def drain_resize(self) -> bool:
        """Consume pending resize wakeups; return whether there were any."""
        if self._resize_read_fd is None:
            return False
        seen = False
        while True:
            try:
                chunk = os.read(self._resize_read_fd, 64)
            except BlockingIOError:
                return seen
            if not chunk:
                return seen
            seen = True

    def _on_winch(self, _signum, _frame) -> None:
        if self._resize_write_fd is None:
            return
        with contextlib.suppress(BlockingIOError):
            os.write(self._resize_write_fd, b"\0")

    def _install_resize_handler(self) -> None:
        self._resize_read_fd, self._resize_write_fd = os.pipe()
        os.set_blocking(self._resize_read_fd, False)
        os.set_blocking(self._resize_write_fd, False)
        self._previous_winch_handler = signal.signal(signal.SIGWINCH, self._on_winch)

    def _remove_resize_handler(self) -> None:
        if self._resize_read_fd is not None:
            previous = self._previous_winch_handler
            signal.signal(signal.SIGWINCH, previous if previous is not None else signal.SIG_DFL)
            self._previous_winch_handler = None
        fds = (self._resize_read_fd, self._resize_write_fd)
        self._resize_read_fd = None
        self._resize_write_fd = None
        for fd in fds:
            if fd is not None:
                os.close(fd)

    @contextlib.contextmanager
    def raw_mode(self):
        """Bracket the session with TUI enter/exit; exit runs on every path."""
        self._install_resize_handler()
        try:
            self.enable_tui_mode()
            yield
        finally:
            try:
                self.disable_tui_mode()
            finally:
                self._remove_resize_handler()
