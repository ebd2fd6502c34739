"""Change watcher for the single viewed file.

``watchfiles`` runs in a background thread watching the file's parent
directory (non-recursively, filtered to the one path), so editors that save
by writing a new file and renaming it over the original keep being seen.
Each batch is queued and announced by one byte on a self-pipe; the event loop
blocks on that pipe with ``select`` and calls ``poll`` from its own thread.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from enum import Enum
from pathlib import Path

from watchfiles import Change, watch

from .config import DEFAULT_DEBOUNCE_MS
from .errors import ResourceError, SetupError

logger = logging.getLogger(__name__)

WATCH_STEP_MS = 25
STOP_TIMEOUT_SECONDS = 2.0

RawChange = tuple[Change, str]


class ChangeEvent(Enum):
    CONTENT_CHANGED = "content_changed"
    WATCHED_FILE_REMOVED = "watched_file_removed"


def collapse_changes(changes: set[RawChange], path: Path) -> ChangeEvent | None:
    """Reduce one batch of raw notifications to at most one event.

    A removal wins over everything else in the batch unless ``path`` exists
    again by the time the batch is handled (rename-based saves delete and
    recreate the path within one batch). Any other notification collapses to
    a single content change.
    """
    if not changes:
        return None
    removed = any(kind == Change.deleted for kind, _raw_path in changes)
    if removed and not path.exists():
        return ChangeEvent.WATCHED_FILE_REMOVED
    return ChangeEvent.CONTENT_CHANGED


class ChangeWatcher:
    """Watch subscription for one file, usable as a context manager."""

    def __init__(self, path: Path, debounce_ms: int = DEFAULT_DEBOUNCE_MS) -> None:
        try:
            resolved = path.resolve(strict=True)
        except OSError as exc:
            raise SetupError(f"failed to watch {path}: {exc.strerror or exc}") from exc
        if not resolved.is_file():
            raise SetupError(f"failed to watch {path}: not a regular file")
        self.path = resolved
        self.debounce_ms = max(1, debounce_ms)
        self._batches: queue.SimpleQueue[set[RawChange]] = queue.SimpleQueue()
        self._failure: BaseException | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._read_fd: int | None = None
        self._write_fd: int | None = None

    def __enter__(self) -> ChangeWatcher:
        self.start()
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def fileno(self) -> int:
        """Readable fd that becomes ready whenever ``poll`` has work."""
        if self._read_fd is None:
            raise ResourceError("watcher is not started")
        return self._read_fd

    def start(self) -> None:
        if self._thread is not None:
            return
        try:
            self._read_fd, self._write_fd = os.pipe()
        except OSError as exc:
            raise SetupError(f"failed to create watch channel: {exc.strerror or exc}") from exc
        os.set_blocking(self._read_fd, False)
        os.set_blocking(self._write_fd, False)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, name="liveview-watcher", daemon=True)
        self._thread.start()
        logger.info("watching %s", self.path)

    def close(self) -> None:
        """Stop the watcher thread and release the wakeup pipe."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=STOP_TIMEOUT_SECONDS)
            self._thread = None
        fds = (self._read_fd, self._write_fd)
        self._read_fd = None
        self._write_fd = None
        for fd in fds:
            if fd is not None:
                os.close(fd)
        logger.debug("stopped watching %s", self.path)

    def poll(self) -> ChangeEvent | None:
        """Drain every pending batch and collapse them into one event.

        Never blocks. Re-raises a watcher-thread failure as ``ResourceError``.
        """
        self._drain_wakeups()
        merged: set[RawChange] = set()
        while True:
            try:
                merged |= self._batches.get_nowait()
            except queue.Empty:
                break
        if self._failure is not None:
            failure = self._failure
            raise ResourceError(f"failed to read change notifications: {failure}") from failure
        event = collapse_changes(merged, self.path)
        if event is not None:
            logger.debug("collapsed %d notifications into %s", len(merged), event.value)
        return event

    def _matches(self, _change: Change, raw_path: str) -> bool:
        return os.path.normpath(raw_path) == str(self.path)

    def _watch_loop(self) -> None:
        try:
            for changes in watch(
                self.path.parent,
                watch_filter=self._matches,
                debounce=self.debounce_ms,
                step=WATCH_STEP_MS,
                stop_event=self._stop_event,
                recursive=False,
                raise_interrupt=False,
            ):
                self.publish(changes)
        except Exception as exc:
            if self._stop_event.is_set():
                return
            logger.exception("watcher thread failed")
            self._failure = exc
            self._wake()

    def publish(self, changes: set[RawChange]) -> None:
        """Queue one batch of raw notifications and wake the event loop."""
        if not changes:
            return
        self._batches.put(set(changes))
        self._wake()

    def _wake(self) -> None:
        if self._write_fd is None:
            return
        try:
            os.write(self._write_fd, b"\0")
        except BlockingIOError:
            # Pipe already full of wakeups; the loop will drain all batches at once.
            pass

    def _drain_wakeups(self) -> None:
        if self._read_fd is None:
            return
        while True:
            try:
                chunk = os.read(self._read_fd, 4096)
            except BlockingIOError:
                return
            if not chunk:
                return
