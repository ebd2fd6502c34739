"""Change watcher batching, removal handling, and wakeup channel."""

from __future__ import annotations

import select
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

from watchfiles import Change

from liveview.errors import ResourceError, SetupError
from liveview.watch import ChangeEvent, ChangeWatcher, collapse_changes


def _fake_watch_until_stopped(*_paths, stop_event: threading.Event, **_kwargs):
    stop_event.wait()
    return
    yield  # pragma: no cover


class CollapseChangesTests(unittest.TestCase):
    def test_empty_batch_yields_nothing(self) -> None:
        self.assertIsNone(collapse_changes(set(), Path("/nonexistent")))

    def test_many_modifications_collapse_to_one_content_change(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            target.write_text("x\n", encoding="utf-8")
            batch = {(Change.modified, str(target)), (Change.added, str(target))}
            self.assertIs(collapse_changes(batch, target), ChangeEvent.CONTENT_CHANGED)

    def test_removal_wins_over_pending_modifications(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            batch = {(Change.modified, str(target)), (Change.deleted, str(target))}
            self.assertIs(collapse_changes(batch, target), ChangeEvent.WATCHED_FILE_REMOVED)

    def test_removal_then_recreate_counts_as_content_change(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            target.write_text("new inode\n", encoding="utf-8")
            batch = {(Change.deleted, str(target)), (Change.added, str(target))}
            self.assertIs(collapse_changes(batch, target), ChangeEvent.CONTENT_CHANGED)


class ChangeWatcherSetupTests(unittest.TestCase):
    def test_missing_file_is_a_setup_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SetupError) as ctx:
                ChangeWatcher(Path(tmp) / "missing.md")
        self.assertIn("failed to watch", str(ctx.exception))

    def test_directory_is_a_setup_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SetupError):
                ChangeWatcher(Path(tmp))

    def test_fileno_requires_started_watcher(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            target.write_text("x\n", encoding="utf-8")
            with self.assertRaises(ResourceError):
                ChangeWatcher(target).fileno()


class ChangeWatcherChannelTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.target = Path(self._tmp.name) / "doc.md"
        self.target.write_text("x\n", encoding="utf-8")
        patcher = mock.patch("liveview.watch.watch", side_effect=_fake_watch_until_stopped)
        self.watch_mock = patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def _ready(self, watcher: ChangeWatcher, timeout: float = 0.0) -> bool:
        ready, _, _ = select.select([watcher.fileno()], [], [], timeout)
        return bool(ready)

    def test_watches_parent_directory_non_recursively(self) -> None:
        with ChangeWatcher(self.target, debounce_ms=20):
            pass
        args, kwargs = self.watch_mock.call_args
        self.assertEqual(args, (self.target.resolve().parent,))
        self.assertFalse(kwargs["recursive"])
        self.assertEqual(kwargs["debounce"], 20)

    def test_filter_keeps_only_the_target_path(self) -> None:
        watcher = ChangeWatcher(self.target)
        resolved = str(self.target.resolve())
        self.assertTrue(watcher._matches(Change.modified, resolved))
        self.assertFalse(watcher._matches(Change.modified, resolved + "~"))

    def test_batches_queued_before_poll_yield_one_event(self) -> None:
        with ChangeWatcher(self.target) as watcher:
            self.assertFalse(self._ready(watcher))
            watcher.publish({(Change.modified, str(self.target))})
            watcher.publish({(Change.modified, str(self.target))})
            self.assertTrue(self._ready(watcher))

            self.assertIs(watcher.poll(), ChangeEvent.CONTENT_CHANGED)
            self.assertFalse(self._ready(watcher))
            self.assertIsNone(watcher.poll())

    def test_removal_in_any_pending_batch_wins(self) -> None:
        with ChangeWatcher(self.target) as watcher:
            watcher.publish({(Change.modified, str(self.target))})
            self.target.unlink()
            watcher.publish({(Change.deleted, str(self.target))})
            watcher.publish({(Change.modified, str(self.target))})

            self.assertIs(watcher.poll(), ChangeEvent.WATCHED_FILE_REMOVED)

    def test_thread_failure_surfaces_as_resource_error(self) -> None:
        self.watch_mock.side_effect = RuntimeError("inotify limit reached")
        with ChangeWatcher(self.target) as watcher:
            self.assertTrue(self._ready(watcher, timeout=2.0))
            with self.assertRaises(ResourceError) as ctx:
                watcher.poll()
        self.assertIn("inotify limit reached", str(ctx.exception))

    def test_close_stops_thread_and_releases_pipe(self) -> None:
        watcher = ChangeWatcher(self.target)
        watcher.start()
        self.assertTrue(watcher.is_running)
        watcher.close()
        self.assertFalse(watcher.is_running)
        with self.assertRaises(ResourceError):
            watcher.fileno()


class ChangeWatcherFilesystemTests(unittest.TestCase):
    def _wait_for_event(self, watcher: ChangeWatcher, action, expected: ChangeEvent, timeout: float = 10.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            action()
            ready, _, _ = select.select([watcher.fileno()], [], [], 0.5)
            if ready and watcher.poll() is expected:
                return True
        return False

    def test_real_write_and_delete(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "doc.md"
            target.write_text("v0\n", encoding="utf-8")
            counter = iter(range(1_000_000))

            with ChangeWatcher(target, debounce_ms=20) as watcher:
                self.assertTrue(
                    self._wait_for_event(
                        watcher,
                        lambda: target.write_text(f"v{next(counter)}\n", encoding="utf-8"),
                        ChangeEvent.CONTENT_CHANGED,
                    )
                )

                target.unlink()
                self.assertTrue(self._wait_for_event(watcher, lambda: None, ChangeEvent.WATCHED_FILE_REMOVED))


if __name__ == "__main__":
    unittest.main()
