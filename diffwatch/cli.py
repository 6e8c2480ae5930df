"""Command-line front door for diffwatch.

Parses CLI options, verifies the target is a git work tree, and either
prints one view (changes, history, a commit's files, a diff) or keeps
polling and reprints the change list whenever it changes.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from .changes.pipeline import SnapshotSource
from .changes.scheduler import PollingScheduler
from .changes.search import ContentSearchFilter, build_search_backend, filter_snapshot
from .changes.types import Snapshot
from .config import EngineConfig, load_engine_config, save_engine_config
from .git.diff import render_file_view
from .git.history import list_changed_files, list_commits
from .git.repo import NotARepositoryError, branch_count, current_branch, require_repository
from .render import format_changed_files, format_history, format_snapshot, format_status_line

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


def _terminal_width() -> int:
    return max(20, shutil.get_terminal_size((80, 24)).columns)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diffwatch",
        description="Watch a git working tree and list changed files, newest first.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Repository path. Defaults to current directory.")
    parser.add_argument("--once", action="store_true", help="Print the change list once and exit.")
    parser.add_argument(
        "--history",
        nargs="?",
        type=_positive_int,
        const=0,
        default=None,
        metavar="N",
        help="Print commit history (N most recent; default from config) and exit.",
    )
    parser.add_argument("--commit", metavar="SHA", help="Print files changed by commit SHA and exit.")
    parser.add_argument("--diff", metavar="FILE", help="Print the diff of FILE against HEAD and exit.")
    parser.add_argument("--search", metavar="QUERY", default="", help="Only list files whose content contains QUERY.")
    parser.add_argument("--interval", type=_positive_int, default=None, metavar="MS", help="Polling interval in ms.")
    parser.add_argument("--style", default=None, help="Pygments style name for diffs.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Persist --interval and --style as the new defaults.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log more (repeat for debug).")
    return parser


def _write_lines(lines: list[str]) -> None:
    sys.stdout.write("\n".join(lines) + "\n")
    sys.stdout.flush()


@dataclass
class WatchView:
    """What the watch loop last printed, plus branch info shown with it."""

    colorize: bool
    search_query: str = ""
    branch: str = "unknown"
    branch_count: int = 0
    last_printed: Snapshot | None = None
    last_branch_info: tuple[str, int] | None = None

    def print_snapshot(self, snapshot: Snapshot, selected_index: int | None = None) -> None:
        branch_info = (self.branch, self.branch_count)
        if (
            self.last_printed is not None
            and snapshot.same_entries(self.last_printed)
            and branch_info == self.last_branch_info
        ):
            return
        self.last_printed = snapshot
        self.last_branch_info = branch_info
        lines = [
            format_status_line(
                self.branch,
                self.branch_count,
                len(snapshot),
                search_query=self.search_query,
                colorize=self.colorize,
            )
        ]
        lines.extend(
            format_snapshot(snapshot, selected_index=selected_index, colorize=self.colorize, width=_terminal_width())
        )
        lines.append("")
        _write_lines(lines)


async def watch(repo_root: Path, config: EngineConfig, *, search_query: str, colorize: bool) -> None:
    """Poll until cancelled, reprinting the (optionally filtered) change list on change."""
    view = WatchView(colorize=colorize, search_query=search_query)
    source = SnapshotSource(repo_root)
    scheduler: PollingScheduler | None = None
    search_filter: ContentSearchFilter | None = None

    def show_current() -> None:
        assert scheduler is not None
        snapshot = scheduler.snapshot
        if search_filter is not None:
            snapshot = search_filter.view(snapshot)
        view.print_snapshot(snapshot, scheduler.selected_index)

    if search_query.strip():
        search_filter = ContentSearchFilter(
            build_search_backend(config.search_backend, repo_root),
            debounce_seconds=config.search_debounce_seconds,
            on_results=show_current,
        )

    async def run_pass() -> Snapshot:
        snapshot = await source()
        view.branch = await current_branch(repo_root)
        view.branch_count = await branch_count(repo_root)
        return snapshot

    def on_publish(snapshot: Snapshot) -> None:
        if search_filter is not None:
            search_filter.refresh(snapshot)
            return
        show_current()

    def should_skip() -> bool:
        return config.skip_polling_while_searching and search_filter is not None and search_filter.searching

    scheduler = PollingScheduler(
        run_pass,
        interval_seconds=config.poll_interval_seconds,
        should_skip=should_skip,
        on_publish=on_publish,
    )
    try:
        await scheduler.start()
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        if search_filter is not None:
            search_filter.clear()


async def print_once(repo_root: Path, config: EngineConfig, *, search_query: str, colorize: bool) -> None:
    snapshot = await SnapshotSource(repo_root)()
    if search_query.strip():
        snapshot = await filter_snapshot(snapshot, search_query, build_search_backend(config.search_backend, repo_root))
    view = WatchView(
        colorize=colorize,
        search_query=search_query,
        branch=await current_branch(repo_root),
        branch_count=await branch_count(repo_root),
    )
    view.print_snapshot(snapshot)


async def run(args: argparse.Namespace, path: Path, config: EngineConfig) -> None:
    try:
        repo_root = await require_repository(path)
    except NotARepositoryError as exc:
        raise SystemExit(str(exc)) from exc

    colorize = not args.no_color and sys.stdout.isatty()
    if args.history is not None:
        limit = args.history or config.history_limit
        _write_lines(format_history(await list_commits(repo_root, limit), colorize=colorize))
        return
    if args.commit:
        _write_lines(format_changed_files(await list_changed_files(repo_root, args.commit)))
        return
    if args.diff:
        sys.stdout.write(await render_file_view(repo_root, args.diff, style=config.style, no_color=not colorize))
        sys.stdout.flush()
        return
    if args.once:
        await print_once(repo_root, config, search_query=args.search, colorize=colorize)
        return
    await watch(repo_root, config, search_query=args.search, colorize=colorize)


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and run diffwatch against a repository directory.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    config = load_engine_config().with_overrides(poll_interval_ms=args.interval, style=args.style)
    if args.save_config:
        save_engine_config(config)
    logger.info("watching %s every %d ms", path, config.poll_interval_ms)
    try:
        asyncio.run(run(args, path.resolve(), config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
