"""Command-line front door for liveview.

Parses CLI options, merges them with config defaults, and runs the viewer.
This is also the single place fatal errors are reported, after the runtime
has restored the terminal.
"""

from __future__ import annotations

import argparse
import logging
import sys
import termios
from pathlib import Path

from . import config
from .errors import LiveviewError
from .invoker import RenderCommand
from .log import setup_logging
from .runtime import ViewerOptions, run_viewer

EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="liveview",
        description=(
            "Watch FILE and show the output of RENDER_PROG, re-running it on every change "
            "and scrolling to the first line that changed."
        ),
    )
    parser.add_argument("path", metavar="FILE", type=Path, help="File to watch.")
    parser.add_argument("render", metavar="RENDER_PROG", help="Program whose output is displayed.")
    parser.add_argument(
        "render_args",
        metavar="ARGS",
        nargs=argparse.REMAINDER,
        help="Arguments passed to RENDER_PROG unchanged.",
    )
    parser.add_argument("--lexer", default=None, help="Pygments lexer used to highlight the render output.")
    parser.add_argument("--style", default=None, help="Pygments style name (default from config, else monokai).")
    parser.add_argument("--no-color", action="store_true", help="Strip colors from the render output.")
    parser.add_argument("--no-status", action="store_true", help="Hide the status bar.")
    parser.add_argument(
        "--debounce-ms",
        type=_positive_int,
        default=None,
        help="Milliseconds to group filesystem notifications into one reload.",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Append log records to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug records.")
    return parser


def render_argv(argv: list[str], args: argparse.Namespace) -> tuple[str, ...]:
    """Return RENDER_PROG and its arguments exactly as given on the command line.

    argparse drops a ``--`` that directly follows RENDER_PROG; it is put back
    so the render sees the same arguments the user typed.
    """
    rest = list(args.render_args)
    boundary = len(argv) - len(rest)
    if boundary >= 2 and argv[boundary - 1] == "--" and argv[boundary - 2] == args.render:
        rest.insert(0, "--")
    return (args.render, *rest)


def options_from_args(args: argparse.Namespace, argv: list[str] | None = None) -> ViewerOptions:
    """Merge parsed CLI arguments over config-file defaults."""
    command_argv = render_argv(argv, args) if argv is not None else (args.render, *args.render_args)
    return ViewerOptions(
        path=args.path,
        command=RenderCommand(argv=command_argv),
        lexer=args.lexer,
        style=args.style if args.style is not None else config.load_style(),
        no_color=args.no_color,
        show_status=config.load_status_bar() and not args.no_status,
        debounce_ms=args.debounce_ms if args.debounce_ms is not None else config.load_debounce_ms(),
    )


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the viewer, and return the process exit code.

    Usage errors exit through argparse with status 2. Fatal runtime errors are
    printed to stderr only after the viewer has torn down the terminal.
    """
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_file, verbose=args.verbose)
    except OSError as exc:
        parser.error(f"cannot open log file {args.log_file}: {exc.strerror or exc}")

    try:
        return run_viewer(options_from_args(args, argv))
    except LiveviewError as exc:
        return _report_fatal(str(exc))
    except (OSError, termios.error) as exc:
        logger.debug("terminal I/O traceback", exc_info=True)
        return _report_fatal(f"terminal I/O failed: {_os_error_text(exc)}")


def _os_error_text(exc: BaseException) -> str:
    strerror = getattr(exc, "strerror", None)
    if strerror:
        return strerror
    # termios.error carries (errno, message) in args.
    if len(exc.args) == 2 and isinstance(exc.args[1], str):
        return exc.args[1]
    return str(exc)


def _report_fatal(message: str) -> int:
    logger.error("fatal: %s", message)
    sys.stderr.write(f"liveview: {message}\n")
    sys.stderr.flush()
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
