"""One reconciliation pass: status -> normalize -> enrich -> sort."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from .enrich import StatMtime, enrich_modified_times, stat_mtime
from .normalize import normalize_status_report
from .sort import sort_records
from .types import Snapshot, StatusReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSourceDeps:
    """Collaborators a reconciliation pass reads repository state through."""

    read_status: Callable[[Path], Awaitable[StatusReport]]
    stat_mtime: StatMtime
    resolve_repo_root: Callable[[Path], Awaitable[Path]]


def default_change_source_deps() -> ChangeSourceDeps:
    """Production collaborators backed by git and the local filesystem."""
    from ..git.repo import resolve_repo_root
    from ..git.status import read_git_status

    return ChangeSourceDeps(
        read_status=read_git_status,
        stat_mtime=stat_mtime,
        resolve_repo_root=resolve_repo_root,
    )


async def build_snapshot(cwd: Path, deps: ChangeSourceDeps, generation: int = 0) -> Snapshot:
    """Compute a fresh snapshot for ``cwd``.

    Any failure of the status query yields an empty snapshot rather than an
    exception; per-file stat failures only zero that file's mtime.
    """
    try:
        repo_root = await deps.resolve_repo_root(cwd)
        report = await deps.read_status(repo_root)
    except Exception as exc:
        logger.debug("status query failed for %s: %s", cwd, exc)
        return Snapshot(records=(), generation=generation)

    records = normalize_status_report(report)
    enriched = await enrich_modified_times(records, repo_root, deps.stat_mtime)
    return Snapshot(records=sort_records(enriched), generation=generation)


class SnapshotSource:
    """Callable pass runner handed to the scheduler; numbers each snapshot it builds."""

    def __init__(self, cwd: Path, deps: ChangeSourceDeps | None = None) -> None:
        self.cwd = cwd
        self.deps = deps if deps is not None else default_change_source_deps()
        self._generation = 0

    async def __call__(self) -> Snapshot:
        self._generation += 1
        return await build_snapshot(self.cwd, self.deps, generation=self._generation)


__all__ = [
    "ChangeSourceDeps",
    "SnapshotSource",
    "build_snapshot",
    "default_change_source_deps",
]
