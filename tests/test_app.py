"""Viewer bootstrap tests: setup order, first load, and teardown on failure."""

from __future__ import annotations

import unittest
from pathlib import Path
from unittest import mock

from liveview.errors import RenderFailed, SetupError
from liveview.invoker import RenderCommand
from liveview.runtime.app import ViewerOptions, run_viewer


class ViewerBootstrapTests(unittest.TestCase):
    def setUp(self) -> None:
        patches = {
            "watcher_cls": mock.patch("liveview.runtime.app.ChangeWatcher"),
            "terminal_cls": mock.patch("liveview.runtime.app.TerminalController"),
            "loop": mock.patch("liveview.runtime.app.run_main_loop", return_value=0),
            "stdin": mock.patch("liveview.runtime.app.sys.stdin"),
            "stdout": mock.patch("liveview.runtime.app.sys.stdout"),
            "size": mock.patch(
                "liveview.runtime.loop.shutil.get_terminal_size",
                return_value=mock.Mock(columns=80, lines=25),
            ),
        }
        self.mocks = {}
        for name, patcher in patches.items():
            self.mocks[name] = patcher.start()
            self.addCleanup(patcher.stop)
        self.mocks["stdin"].fileno.return_value = 0
        self.mocks["stdout"].fileno.return_value = 1

    def _options(self, *argv: str) -> ViewerOptions:
        return ViewerOptions(path=Path("doc.txt"), command=RenderCommand(argv=argv))

    def test_first_load_happens_before_the_loop_starts(self) -> None:
        code = run_viewer(self._options("sh", "-c", "printf 'one\\ntwo\\n'"))

        self.assertEqual(code, 0)
        self.mocks["watcher_cls"].assert_called_once_with(Path("doc.txt"), debounce_ms=50)
        state = self.mocks["loop"].call_args.args[0]
        self.assertEqual(state.lines, ["one\n", "two\n"])
        self.assertTrue(state.loaded)
        self.assertEqual(state.start, 0)
        self.assertEqual(state.rows, 24)

    def test_first_render_failure_propagates_after_teardown(self) -> None:
        terminal = self.mocks["terminal_cls"].return_value
        watcher = self.mocks["watcher_cls"].return_value

        with self.assertRaises(RenderFailed) as ctx:
            run_viewer(self._options("sh", "-c", "echo 'bad input' >&2; exit 4"))

        self.assertEqual(str(ctx.exception), "render failed: bad input")
        self.mocks["loop"].assert_not_called()
        terminal.raw_mode.return_value.__exit__.assert_called_once()
        watcher.__exit__.assert_called_once()

    def test_watch_setup_error_happens_before_terminal_setup(self) -> None:
        self.mocks["watcher_cls"].side_effect = SetupError("cannot watch doc.txt: No such file or directory")

        with self.assertRaises(SetupError):
            run_viewer(self._options("cat", "doc.txt"))

        self.mocks["terminal_cls"].assert_not_called()


if __name__ == "__main__":
    unittest.main()
