"""CLI argument and default-path behavior tests.

Verifies how ``imagedeck.cli.main`` resolves targets and prints the active tab.
"""

from __future__ import annotations

import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from imagedeck import cli


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "img10.png").write_bytes(b"x")
        (self.root / "img2.png").write_bytes(b"x")
        (self.root / "album").mkdir()
        config_patch = mock.patch("imagedeck.runtime.config.CONFIG_PATH", self.root / "config.json")
        config_patch.start()
        self.addCleanup(config_patch.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_main(self, argv: list[str], stdin: str = "", default_path: Path | None = None) -> str:
        out = io.StringIO()
        with (
            mock.patch.object(sys, "argv", ["imagedeck", *argv]),
            mock.patch.object(sys, "stdout", out),
            mock.patch.object(sys, "stdin", io.StringIO(stdin)),
        ):
            cli.main(default_path=default_path)
        return out.getvalue()

    def test_defaults_to_current_working_directory(self) -> None:
        previous_cwd = Path.cwd()
        try:
            os.chdir(self.root)
            output = self.run_main([])
        finally:
            os.chdir(previous_cwd)
        self.assertIn("> img2.png", output)
        self.assertIn("  img10.png", output)

    def test_explicit_file_is_marked_current(self) -> None:
        output = self.run_main([str(self.root / "img10.png")], default_path=self.root / "unused")
        self.assertIn("> img10.png", output)
        self.assertIn("[2/2]", output)

    def test_missing_path_exits(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self.run_main([str(self.root / "missing")])
        self.assertIn("Path not found", str(ctx.exception))

    def test_interactive_navigation(self) -> None:
        output = self.run_main([str(self.root), "--interactive"], stdin="n\nbogus\nq\nn\n")
        self.assertIn("[2/2]", output)
        self.assertIn("unknown command: 'bogus'", output)
        self.assertEqual(output.count("[2/2]"), 1)

    def test_interactive_open_command_opens_a_tab(self) -> None:
        (self.root / "album" / "cover.png").write_bytes(b"c")
        output = self.run_main([str(self.root), "--interactive"], stdin=f"o {self.root / 'album' / 'cover.png'}\nq\n")
        self.assertIn("> cover.png", output)
        self.assertIn("[1/1]", output)

    def test_collation_follows_the_user_locale(self) -> None:
        with mock.patch("imagedeck.cli.locale.setlocale") as setlocale:
            self.run_main([str(self.root)])
        setlocale.assert_called_once_with(cli.locale.LC_COLLATE, "")

    def test_unsupported_locale_is_tolerated(self) -> None:
        with mock.patch("imagedeck.cli.locale.setlocale", side_effect=cli.locale.Error("unsupported")):
            output = self.run_main([str(self.root)])
        self.assertIn("> img2.png", output)

    def test_logging_is_configured_only_when_verbose(self) -> None:
        with mock.patch("imagedeck.cli.logging.basicConfig") as basic_config:
            self.run_main([str(self.root)])
            basic_config.assert_not_called()
            self.run_main([str(self.root), "--verbose"])
            basic_config.assert_called_once()

    def test_explorer_lists_folders(self) -> None:
        output = self.run_main([str(self.root), "--explorer"])
        self.assertIn("page 1/1", output)
        self.assertIn("  album", output)

    def test_explorer_rejects_files(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_main([str(self.root / "img2.png"), "--explorer"])


if __name__ == "__main__":
    unittest.main()
