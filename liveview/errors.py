"""Error hierarchy for liveview.

Everything fatal derives from ``LiveviewError`` so ``cli.main`` can report it
with a single handler once the terminal has been restored.
"""

from __future__ import annotations


class LiveviewError(Exception):
    """Base error for all liveview failures."""


class SetupError(LiveviewError):
    """The watch subscription or terminal could not be initialized."""


class ResourceError(LiveviewError):
    """Pipe, process, watch, or read failure unrelated to the render's exit status."""


class RenderError(LiveviewError):
    """The render program ran but did not succeed.

    ``first_line`` is the first line the render wrote to its combined
    stdout/stderr stream, without its terminator, or ``""`` when it wrote nothing.
    """

    category = "render error"

    def __init__(self, first_line: str = "") -> None:
        self.first_line = first_line.rstrip("\r\n")
        super().__init__(self._format_message())

    def _detail(self) -> str:
        return ""

    def _format_message(self) -> str:
        if self.first_line:
            return f"{self.category}: {self.first_line}"
        detail = self._detail()
        return f"{self.category} ({detail})" if detail else self.category


class RenderFailed(RenderError):
    """Render exited with a nonzero status."""

    category = "render failed"

    def __init__(self, returncode: int, first_line: str = "") -> None:
        self.returncode = returncode
        super().__init__(first_line)

    def _detail(self) -> str:
        return f"exit status {self.returncode}"


class RenderTerminated(RenderError):
    """Render never exited normally (killed by a signal)."""

    category = "render terminated"

    def __init__(self, signal: int, first_line: str = "") -> None:
        self.signal = signal
        super().__init__(first_line)

    def _detail(self) -> str:
        return f"signal {self.signal}"
