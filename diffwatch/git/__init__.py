"""Git collaborators: status, history, diffs, and repository discovery."""

from __future__ import annotations

from .diff import FileContent, colorize_diff, get_raw_diff, read_file_content, render_file_view
from .history import ChangedFileRecord, CommitRecord, list_changed_files, list_commits
from .repo import (
    NotARepositoryError,
    branch_count,
    current_branch,
    is_git_repository,
    require_repository,
    resolve_repo_root,
    revert_file,
)
from .runner import GitCommandError, run_git
from .status import read_git_status

__all__ = [
    "ChangedFileRecord",
    "CommitRecord",
    "FileContent",
    "GitCommandError",
    "NotARepositoryError",
    "branch_count",
    "colorize_diff",
    "current_branch",
    "get_raw_diff",
    "is_git_repository",
    "list_changed_files",
    "list_commits",
    "read_file_content",
    "read_git_status",
    "render_file_view",
    "require_repository",
    "resolve_repo_root",
    "revert_file",
    "run_git",
]
