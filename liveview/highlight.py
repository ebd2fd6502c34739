"""Terminal-safe display text and optional pygments highlighting.

Render output is shown verbatim apart from control bytes: SGR color escapes
pass through, everything else that could move the cursor or ring the bell is
escaped. Highlighting is opt-in via an explicit lexer name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from pygments import highlight as pygments_highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .ansi import ANSI_ESCAPE_RE
from .config import DEFAULT_STYLE
from .errors import SetupError
from .invoker import split_output_lines

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")


def _escape_controls(text: str) -> str:
    out: list[str] = []
    for ch in text:
        code = ord(ch)
        if ch in {"\n", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def sanitize_render_text(text: str, keep_color: bool = True) -> str:
    """Escape terminal control bytes, optionally preserving SGR color codes.

    A trailing ``\\r`` before the newline (CRLF output) is dropped rather than
    escaped. Non-SGR escape sequences are always escaped.
    """
    if text.endswith("\r\n"):
        text = text[:-2] + "\n"
    if _CONTROL_RE.search(text) is None:
        return text

    out: list[str] = []
    pos = 0
    for match in _SGR_RE.finditer(text):
        out.append(_escape_controls(text[pos : match.start()]))
        if keep_color:
            out.append(match.group(0))
        pos = match.end()
    out.append(_escape_controls(text[pos:]))
    return "".join(out)


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def normalize_style(style: str) -> str:
    """Return ``style`` if pygments knows it, otherwise the default style."""
    try:
        get_style_by_name(style)
    except ClassNotFound:
        logger.debug("unknown pygments style %r, using %s", style, DEFAULT_STYLE)
        return DEFAULT_STYLE
    return style


def resolve_lexer(name: str) -> Lexer:
    """Look up a pygments lexer by alias, keeping leading/trailing newlines."""
    try:
        return get_lexer_by_name(name, stripnl=False, ensurenl=False)
    except ClassNotFound as exc:
        raise SetupError(f"unknown lexer: {name}") from exc


def highlight_lines(lines: list[str], lexer: Lexer, style: str = DEFAULT_STYLE) -> list[str]:
    """Highlight ``lines`` as one document and split back into lines.

    Returns the plain lines unchanged when highlighting fails or would change
    the line count, so display lines stay index-aligned with the buffer.
    """
    if not lines:
        return []
    source = "".join(lines)
    try:
        rendered = pygments_highlight(source, lexer, Terminal256Formatter(style=normalize_style(style)))
    except Exception:
        logger.exception("highlighting failed")
        return list(lines)
    highlighted = split_output_lines(rendered)
    if len(highlighted) != len(lines):
        return list(lines)
    return highlighted


def make_line_styler(
    lexer_name: str | None = None,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> Callable[[list[str]], list[str]]:
    """Build the buffer-to-display transform used by the reload engine."""
    lexer = resolve_lexer(lexer_name) if lexer_name and not no_color else None

    def style_lines(lines: list[str]) -> list[str]:
        safe = [sanitize_render_text(line, keep_color=not no_color) for line in lines]
        if lexer is None:
            return safe
        # Highlight plain text so render-provided colors do not confuse the lexer.
        return highlight_lines([strip_ansi(line) for line in safe], lexer, style)

    return style_lines
