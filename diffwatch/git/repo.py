"""Repository discovery, branch info, and user-initiated file actions."""

from __future__ import annotations

import logging
from pathlib import Path

from .runner import GitCommandError, run_git

logger = logging.getLogger(__name__)


class NotARepositoryError(Exception):
    """Raised once at startup when the target directory is not inside a git work tree."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Not a git repository: {path}")


async def resolve_repo_root(cwd: Path) -> Path:
    """Return the work-tree top level for ``cwd``, or ``cwd`` itself on failure."""
    try:
        result = await run_git(cwd, ["rev-parse", "--show-toplevel"])
    except GitCommandError:
        return cwd
    top_level = result.stdout.strip()
    if not top_level:
        return cwd
    return Path(top_level)


async def is_git_repository(path: Path) -> bool:
    try:
        await run_git(path, ["rev-parse", "--git-dir"])
    except GitCommandError:
        return False
    return True


async def require_repository(path: Path) -> Path:
    """Resolve the repository root for ``path`` or raise ``NotARepositoryError``."""
    if not path.is_dir() or not await is_git_repository(path):
        raise NotARepositoryError(path)
    return await resolve_repo_root(path)


async def current_branch(repo_root: Path) -> str:
    try:
        result = await run_git(repo_root, ["rev-parse", "--abbrev-ref", "HEAD"])
    except GitCommandError:
        return "unknown"
    return result.stdout.strip() or "unknown"


async def branch_count(repo_root: Path) -> int:
    """Count local and remote-tracking branches; 0 when git cannot answer."""
    try:
        result = await run_git(repo_root, ["branch", "-a", "--format=%(refname)"])
    except GitCommandError:
        return 0
    return sum(1 for line in result.stdout.splitlines() if line.strip())


async def revert_file(repo_root: Path, path: str) -> bool:
    """Restore ``path`` from HEAD, discarding staged and unstaged edits."""
    try:
        await run_git(repo_root, ["checkout", "HEAD", "--", path])
    except GitCommandError as exc:
        logger.warning("revert of %s failed: %s", path, exc)
        return False
    return True


__all__ = [
    "NotARepositoryError",
    "branch_count",
    "current_branch",
    "is_git_repository",
    "require_repository",
    "resolve_repo_root",
    "revert_file",
]
