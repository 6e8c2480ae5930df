"""Line-oriented formatting of snapshots, history, and the status line.

Produces plain or ANSI-colored text rows for the CLI front door.
"""

from __future__ import annotations

from .changes.types import (
    STATUS_DELETED,
    STATUS_IGNORED,
    STATUS_MODIFIED,
    STATUS_NEW,
    STATUS_RENAMED,
    STATUS_UNKNOWN,
    STATUS_UNSTAGED,
    FileRecord,
    Snapshot,
)
from .git.history import ChangedFileRecord, CommitRecord

RESET = "\033[0m"

STATUS_SYMBOLS: dict[str, str] = {
    STATUS_MODIFIED: "M",
    STATUS_NEW: "A",
    STATUS_DELETED: "D",
    STATUS_RENAMED: "R",
    STATUS_UNSTAGED: "M",
    STATUS_IGNORED: "!",
    STATUS_UNKNOWN: "?",
}

STATUS_COLORS: dict[str, str] = {
    STATUS_MODIFIED: "\033[33m",
    STATUS_NEW: "\033[92m",
    STATUS_DELETED: "\033[91m",
    STATUS_RENAMED: "\033[34m",
    STATUS_UNSTAGED: "\033[36m",
    STATUS_IGNORED: "\033[90m",
}

_HASH = "\033[36m"
_AUTHOR = "\033[92m"
_DATE = "\033[33m"
_LABEL = "\033[36m"
_DIM = "\033[90m"
_SELECTED = "\033[7m"


def _paint(text: str, sgr: str, colorize: bool) -> str:
    if not colorize or not sgr:
        return text
    return f"{sgr}{text}{RESET}"


def status_symbol(status: str) -> str:
    return STATUS_SYMBOLS.get(status, "?")


def truncate_path(path: str, max_length: int) -> str:
    """Keep the tail of long paths, which carries the file name."""
    if max_length <= 3 or len(path) <= max_length:
        return path
    return "..." + path[-(max_length - 3):]


def format_file_row(record: FileRecord, *, selected: bool = False, colorize: bool = True, width: int = 80) -> str:
    symbol = _paint(status_symbol(record.status), STATUS_COLORS.get(record.status, ""), colorize)
    row = f"{symbol} {truncate_path(record.path, max(1, width - 2))}"
    if selected:
        return _paint(row, _SELECTED, colorize) if colorize else f"> {row}"
    return row if colorize else f"  {row}"


def format_snapshot(
    snapshot: Snapshot,
    *,
    selected_index: int | None = None,
    colorize: bool = True,
    width: int = 80,
) -> list[str]:
    if not snapshot:
        return [_paint("No changes.", _DIM, colorize)]
    return [
        format_file_row(record, selected=(index == selected_index), colorize=colorize, width=width)
        for index, record in enumerate(snapshot)
    ]


def format_commit_row(commit: CommitRecord, *, colorize: bool = True) -> str:
    return " ".join(
        [
            _paint(commit.short_hash.ljust(8), _HASH, colorize),
            _paint(commit.author[:24].ljust(24), _AUTHOR, colorize),
            _paint(commit.date[:19].ljust(19), _DATE, colorize),
            commit.display_message(),
        ]
    )


def format_history(commits: list[CommitRecord], *, colorize: bool = True) -> list[str]:
    if not commits:
        return [_paint("No commit history found.", _DIM, colorize)]
    return [format_commit_row(commit, colorize=colorize) for commit in commits]


def format_changed_files(files: list[ChangedFileRecord]) -> list[str]:
    """One ``<code> <path>`` row per file, showing the first letter of git's code."""
    return [f"{(changed.raw_status[:1] or '~')} {changed.path}" for changed in files]


def format_status_line(
    branch: str,
    branch_count: int,
    file_count: int,
    *,
    search_query: str = "",
    colorize: bool = True,
) -> str:
    parts = [
        f"{_paint('Branch:', _LABEL, colorize)} {_paint(branch, _DATE, colorize)}",
        _paint(f"({branch_count} total)", _DIM, colorize),
        f"{file_count} file{'s' if file_count != 1 else ''}",
    ]
    if search_query.strip():
        parts.append(f"search: {search_query.strip()!r}")
    return " ".join(parts)


__all__ = [
    "STATUS_SYMBOLS",
    "format_changed_files",
    "format_commit_row",
    "format_file_row",
    "format_history",
    "format_snapshot",
    "format_status_line",
    "status_symbol",
    "truncate_path",
]
