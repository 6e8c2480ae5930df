"""CLI argument and default-path behavior tests.

Verifies how ``diffwatch.cli.main`` picks the target directory and merges
command-line overrides into the persisted config.
"""

from __future__ import annotations

import argparse
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from diffwatch import cli
from diffwatch.changes.types import FileRecord, Snapshot
from diffwatch.config import EngineConfig, load_engine_config


class CliDefaultPathTests(unittest.TestCase):
    def test_main_defaults_to_current_working_directory_when_no_path_arg(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            previous_cwd = Path.cwd()
            try:
                os.chdir(root)
                with mock.patch("diffwatch.cli.run", new_callable=mock.AsyncMock) as run, mock.patch(
                    "diffwatch.cli.load_engine_config", return_value=EngineConfig()
                ):
                    cli.main([])
            finally:
                os.chdir(previous_cwd)

        run.assert_awaited_once()
        _args, path, config = run.call_args.args
        self.assertEqual(path, root)
        self.assertEqual(config, EngineConfig())

    def test_explicit_path_and_overrides_win(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            with mock.patch("diffwatch.cli.run", new_callable=mock.AsyncMock) as run, mock.patch(
                "diffwatch.cli.load_engine_config", return_value=EngineConfig(history_limit=7)
            ):
                cli.main([str(root), "--interval", "250", "--style", "native"], default_path=root / "unused")

        _args, path, config = run.call_args.args
        self.assertEqual(path, root)
        self.assertEqual(config.poll_interval_ms, 250)
        self.assertEqual(config.style, "native")
        self.assertEqual(config.history_limit, 7)

    def test_missing_path_exits_with_message(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "nope"
            with mock.patch("diffwatch.cli.run", new_callable=mock.AsyncMock) as run:
                with self.assertRaises(SystemExit) as ctx:
                    cli.main([str(missing)])

        self.assertEqual(str(ctx.exception), f"Path not found: {missing}")
        run.assert_not_awaited()

    def test_non_repository_directory_exits_with_message(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            args = cli.build_parser().parse_args([str(root), "--once"])
            with self.assertRaises(SystemExit) as ctx:
                cli.asyncio.run(cli.run(args, root, EngineConfig()))

        self.assertEqual(str(ctx.exception), f"Not a git repository: {root}")


class ParserTests(unittest.TestCase):
    def test_history_flag_with_and_without_count(self) -> None:
        parser = cli.build_parser()
        self.assertIsNone(parser.parse_args([]).history)
        self.assertEqual(parser.parse_args(["--history"]).history, 0)
        self.assertEqual(parser.parse_args(["--history", "5"]).history, 5)

    def test_non_positive_interval_is_rejected(self) -> None:
        with mock.patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                cli.build_parser().parse_args(["--interval", "0"])

    def test_positive_int_type(self) -> None:
        self.assertEqual(cli._positive_int("3"), 3)
        with self.assertRaises(argparse.ArgumentTypeError):
            cli._positive_int("x")
        with self.assertRaises(argparse.ArgumentTypeError):
            cli._positive_int("-1")


class WatchViewTests(unittest.TestCase):
    def test_reprints_only_when_entries_change(self) -> None:
        view = cli.WatchView(colorize=False, branch="main", branch_count=2)
        first = Snapshot(records=(FileRecord("a.ts", "new", 1.0),), generation=1)
        same = Snapshot(records=(FileRecord("a.ts", "new", 1.0),), generation=2)
        changed = Snapshot(records=(FileRecord("b.ts", "unstaged", 5.0), FileRecord("a.ts", "new", 1.0)), generation=3)

        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            view.print_snapshot(first, 0)
            view.print_snapshot(same, 0)
            self.assertEqual(out.getvalue().count("Branch: main"), 1)
            self.assertIn("> A a.ts", out.getvalue())
            view.print_snapshot(changed, 0)
            self.assertEqual(out.getvalue().count("Branch: main"), 2)

    def test_branch_switch_reprints_unchanged_list(self) -> None:
        view = cli.WatchView(colorize=False, branch="main", branch_count=1)
        snapshot = Snapshot(records=(FileRecord("a.ts", "new", 1.0),))

        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            view.print_snapshot(snapshot)
            view.branch = "feature"
            view.print_snapshot(snapshot)
            view.branch_count = 2
            view.print_snapshot(snapshot)
            view.print_snapshot(snapshot)

        self.assertIn("Branch: main (1 total)", out.getvalue())
        self.assertIn("Branch: feature (1 total)", out.getvalue())
        self.assertEqual(out.getvalue().count("Branch: "), 3)


class SaveConfigFlagTests(unittest.TestCase):
    def test_save_config_persists_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            config_path = root / "config" / "config.json"
            with mock.patch("diffwatch.config.CONFIG_PATH", config_path), mock.patch(
                "diffwatch.cli.run", new_callable=mock.AsyncMock
            ):
                cli.main([str(root), "--interval", "750", "--style", "native", "--save-config"])
                saved = load_engine_config()

        self.assertEqual(saved.poll_interval_ms, 750)
        self.assertEqual(saved.style, "native")

    def test_overrides_are_not_persisted_without_flag(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            config_path = root / "config" / "config.json"
            with mock.patch("diffwatch.config.CONFIG_PATH", config_path), mock.patch(
                "diffwatch.cli.run", new_callable=mock.AsyncMock
            ):
                cli.main([str(root), "--interval", "750"])

            self.assertFalse(config_path.exists())


if __name__ == "__main__":
    unittest.main()
