"""Runtime orchestration: viewer bootstrap and the event loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .app import ViewerOptions
    from .loop import RuntimeLoopCallbacks


def run_viewer(*args, **kwargs):
    """Lazily import the viewer entrypoint to keep package imports light."""
    from .app import run_viewer as _run_viewer

    return _run_viewer(*args, **kwargs)


def run_main_loop(*args, **kwargs):
    """Lazily import loop runner to avoid package-import cycles."""
    from .loop import run_main_loop as _run_main_loop

    return _run_main_loop(*args, **kwargs)


def __getattr__(name: str):
    if name == "RuntimeLoopCallbacks":
        from . import loop as _loop

        return _loop.RuntimeLoopCallbacks
    if name == "ViewerOptions":
        from . import app as _app

        return _app.ViewerOptions
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "run_viewer",
    "run_main_loop",
    "RuntimeLoopCallbacks",
    "ViewerOptions",
]
