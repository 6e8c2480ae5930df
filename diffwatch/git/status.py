"""Read ``git status`` into the flag-tuple report shape."""

from __future__ import annotations

from pathlib import Path

from ..changes.types import GitStatusReport, RawStatusEntry, RenamePair
from .runner import DEFAULT_GIT_TIMEOUT_SECONDS, run_git

STATUS_ARGS = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]


def parse_porcelain_status(output: str) -> GitStatusReport:
    """Parse ``git status --porcelain=v1 -z`` output.

    Each record is ``XY <path>``; rename and copy records are followed by an
    extra NUL-separated token holding the source path.
    """
    entries: list[RawStatusEntry] = []
    renames: list[RenamePair] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if len(token) < 4 or token[2] != " ":
            continue

        status = token[:2]
        path_text = token[3:]
        if status == "!!":
            continue

        entries.append(RawStatusEntry(path=path_text, index_flag=status[0], working_flag=status[1]))
        if "R" in status or "C" in status:
            source = tokens[index] if index < len(tokens) else ""
            index += 1
            if "R" in status and source:
                renames.append(RenamePair(source=source, target=path_text))

    return GitStatusReport(entries=tuple(entries), renames=tuple(renames))


async def read_git_status(
    repo_root: Path,
    timeout_seconds: float = DEFAULT_GIT_TIMEOUT_SECONDS,
) -> GitStatusReport:
    """Query git for the working-tree status; raises ``GitCommandError`` on failure."""
    result = await run_git(repo_root, STATUS_ARGS, timeout_seconds=timeout_seconds)
    return parse_porcelain_status(result.stdout)


__all__ = ["STATUS_ARGS", "parse_porcelain_status", "read_git_status"]
