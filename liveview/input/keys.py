"""Viewport navigation keys and the ``gg`` two-key sequence."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ..viewport import clamp_offset

if TYPE_CHECKING:
    from ..runtime.state import AppState

MOUSE_WHEEL_LINES = 3


class Navigation(Enum):
    LINE_DOWN = "line_down"
    LINE_UP = "line_up"
    HALF_PAGE_DOWN = "half_page_down"
    HALF_PAGE_UP = "half_page_up"
    WHEEL_DOWN = "wheel_down"
    WHEEL_UP = "wheel_up"
    TOP = "top"
    BOTTOM = "bottom"
    REDRAW = "redraw"
    QUIT = "quit"


KEY_BINDINGS: dict[str, Navigation] = {
    "j": Navigation.LINE_DOWN,
    "DOWN": Navigation.LINE_DOWN,
    "k": Navigation.LINE_UP,
    "UP": Navigation.LINE_UP,
    "d": Navigation.HALF_PAGE_DOWN,
    "CTRL_D": Navigation.HALF_PAGE_DOWN,
    "PAGE_DOWN": Navigation.HALF_PAGE_DOWN,
    "u": Navigation.HALF_PAGE_UP,
    "CTRL_U": Navigation.HALF_PAGE_UP,
    "PAGE_UP": Navigation.HALF_PAGE_UP,
    "HOME": Navigation.TOP,
    "G": Navigation.BOTTOM,
    "END": Navigation.BOTTOM,
    "CTRL_L": Navigation.REDRAW,
    "q": Navigation.QUIT,
    "CTRL_C": Navigation.QUIT,
}


class SequenceState(Enum):
    IDLE = "idle"
    PENDING_G = "pending_g"


class KeySequence:
    """One key of history for the ``gg`` jump-to-top sequence.

    A first ``g`` arms the pending state, a second consecutive ``g`` fires
    and disarms, and any other key disarms without firing.
    """

    def __init__(self) -> None:
        self.state = SequenceState.IDLE

    def feed(self, key: str) -> bool:
        """Advance with ``key`` and return whether ``gg`` just completed."""
        if key != "g":
            self.state = SequenceState.IDLE
            return False
        if self.state is SequenceState.PENDING_G:
            self.state = SequenceState.IDLE
            return True
        self.state = SequenceState.PENDING_G
        return False

    def reset(self) -> None:
        self.state = SequenceState.IDLE


def navigation_for_key(key: str) -> Navigation | None:
    """Map a key token to its navigation command, if it has one."""
    if key.startswith("MOUSE_WHEEL_DOWN"):
        return Navigation.WHEEL_DOWN
    if key.startswith("MOUSE_WHEEL_UP"):
        return Navigation.WHEEL_UP
    return KEY_BINDINGS.get(key)


def proposed_offset(command: Navigation, offset: int, nlines: int, rows: int) -> int:
    """Return the unclamped offset ``command`` asks for."""
    half_page = rows // 2
    if command is Navigation.LINE_DOWN:
        return offset + 1
    if command is Navigation.LINE_UP:
        return offset - 1
    if command is Navigation.HALF_PAGE_DOWN:
        return offset + half_page
    if command is Navigation.HALF_PAGE_UP:
        return offset - half_page
    if command is Navigation.WHEEL_DOWN:
        return offset + MOUSE_WHEEL_LINES
    if command is Navigation.WHEEL_UP:
        return offset - MOUSE_WHEEL_LINES
    if command is Navigation.TOP:
        return 0
    if command is Navigation.BOTTOM:
        return nlines
    return offset


def apply_navigation(state: AppState, command: Navigation) -> None:
    """Move the viewport for ``command``; offsets are always re-clamped."""
    nlines = len(state.lines)
    target = proposed_offset(command, state.start, nlines, state.rows)
    new_start = clamp_offset(target, nlines, state.rows)
    if new_start != state.start or command is Navigation.REDRAW:
        state.dirty = True
    state.start = new_start


def handle_key(key: str, state: AppState) -> bool:
    """Handle one key and return ``True`` when the viewer should quit."""
    if state.key_sequence.feed(key):
        apply_navigation(state, Navigation.TOP)
        return False
    command = navigation_for_key(key)
    if command is None:
        return False
    if command is Navigation.QUIT:
        return True
    apply_navigation(state, command)
    return False
