"""Commit history reader.

Maps ``git log`` and ``git show --name-status`` output into read-only records
for the history view. Both operations fall back to an empty list on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .runner import GitCommandError, run_git

logger = logging.getLogger(__name__)

SHORT_HASH_LENGTH = 7
MESSAGE_MAX_LENGTH = 60
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"--format=%H{_FIELD_SEP}%s{_FIELD_SEP}%an{_FIELD_SEP}%ai{_RECORD_SEP}"


@dataclass(frozen=True)
class CommitRecord:
    short_hash: str
    message: str
    author: str
    date: str

    def display_message(self, max_length: int = MESSAGE_MAX_LENGTH) -> str:
        return truncate_message(self.message, max_length)


@dataclass(frozen=True)
class ChangedFileRecord:
    """One file touched by a commit; ``raw_status`` is git's code verbatim (``M``, ``R100``...)."""

    path: str
    raw_status: str


def short_hash(full_hash: str) -> str:
    return full_hash[:SHORT_HASH_LENGTH]


def truncate_message(message: str, max_length: int = MESSAGE_MAX_LENGTH) -> str:
    if len(message) <= max_length:
        return message
    return message[: max(0, max_length - 3)] + "..."


def parse_log_output(output: str) -> list[CommitRecord]:
    commits: list[CommitRecord] = []
    for raw_record in output.split(_RECORD_SEP):
        record = raw_record.strip("\n")
        if not record:
            continue
        fields = record.split(_FIELD_SEP)
        if len(fields) != 4 or not fields[0]:
            continue
        full_hash, message, author, date = fields
        commits.append(
            CommitRecord(
                short_hash=short_hash(full_hash.strip()),
                message=message,
                author=author,
                date=date,
            )
        )
    return commits


def parse_name_status(output: str) -> list[ChangedFileRecord]:
    """Parse ``--name-status`` lines into records.

    The first whitespace-separated token is the status; the remaining tokens,
    rejoined with single spaces, form the path.
    """
    files: list[ChangedFileRecord] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        status = parts[0]
        path = " ".join(parts[1:])
        if status and path:
            files.append(ChangedFileRecord(path=path, raw_status=status))
    return files


async def list_commits(repo_root: Path, limit: int | None = None) -> list[CommitRecord]:
    """Return commits in the order ``git log`` yields them (newest first)."""
    args = ["log", _LOG_FORMAT]
    if limit is not None and limit > 0:
        args.append(f"--max-count={limit}")
    try:
        result = await run_git(repo_root, args)
    except GitCommandError as exc:
        logger.debug("commit history unavailable: %s", exc)
        return []
    return parse_log_output(result.stdout)


async def list_changed_files(repo_root: Path, commit_id: str) -> list[ChangedFileRecord]:
    try:
        result = await run_git(repo_root, ["show", "--name-status", "--format=", commit_id])
    except GitCommandError as exc:
        logger.warning("failed to get files for commit %s: %s", commit_id, exc)
        return []
    return parse_name_status(result.stdout)


__all__ = [
    "ChangedFileRecord",
    "CommitRecord",
    "MESSAGE_MAX_LENGTH",
    "SHORT_HASH_LENGTH",
    "list_changed_files",
    "list_commits",
    "parse_log_output",
    "parse_name_status",
    "short_hash",
    "truncate_message",
]
