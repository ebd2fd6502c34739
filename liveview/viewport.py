"""Viewport offset clamping shared by reloads and navigation."""

from __future__ import annotations


def max_offset(nlines: int, rows: int) -> int:
    """Return the largest valid first-visible-line index."""
    return max(0, nlines - max(1, rows))


def clamp_offset(offset: int, nlines: int, rows: int) -> int:
    """Clamp a proposed first-visible-line index into the valid range.

    Negative offsets clamp to 0, a buffer that fits inside ``rows`` always
    gets offset 0, and anything past the last full page clamps to
    ``nlines - rows``.
    """
    if offset < 0:
        return 0
    return min(offset, max_offset(nlines, rows))
