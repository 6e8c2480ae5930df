"""Content search over the changed-file list.

The filter narrows a snapshot to paths whose content contains a literal,
case-insensitive query. Query edits are debounced; every dispatched search
carries a generation number and results from superseded generations are
dropped, so completion order never decides what is shown.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from ..git.runner import GitCommandError, run_git
from .types import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3
SEARCH_BACKEND_GIT = "git"
SEARCH_BACKEND_RG = "rg"
SEARCH_BACKENDS = (SEARCH_BACKEND_GIT, SEARCH_BACKEND_RG)

SearchFn = Callable[[str, Sequence[str]], Awaitable[set[str]]]

_SHELL_META_RE = re.compile(r"[\\`$();|&<>{}\[\]]")


def sanitize_query(query: str) -> str:
    """Trim and drop shell metacharacters. Backends still search literally."""
    return _SHELL_META_RE.sub("", query).strip()


def is_blank_query(query: str | None) -> bool:
    return not query or not query.strip()


def restrict_snapshot(snapshot: Snapshot, matched_paths: set[str]) -> Snapshot:
    """Subsequence of ``snapshot`` whose paths matched, in snapshot order."""
    kept = tuple(record for record in snapshot.records if record.path in matched_paths)
    return Snapshot(records=kept, generation=snapshot.generation)


async def _search_or_nothing(search: SearchFn, query: str, snapshot: Snapshot) -> set[str]:
    sanitized = sanitize_query(query)
    if not sanitized or not snapshot:
        return set()
    try:
        return set(await search(sanitized, snapshot.paths()))
    except Exception as exc:
        logger.debug("content search for %r failed: %s", sanitized, exc)
        return set()


async def filter_snapshot(snapshot: Snapshot, query: str, search: SearchFn) -> Snapshot:
    """Undebounced one-shot filter. A blank query means no filtering."""
    if is_blank_query(query):
        return snapshot
    matched = await _search_or_nothing(search, query, snapshot)
    return restrict_snapshot(snapshot, matched)


class GitGrepSearch:
    """``git grep`` over the candidate paths, tracked or untracked."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    async def __call__(self, query: str, candidate_paths: Sequence[str]) -> set[str]:
        if not query or not candidate_paths:
            return set()
        args = ["grep", "--untracked", "-i", "-l", "-F", "-e", query, "--", *candidate_paths]
        # Exit status 1 is git grep's "no matches".
        result = await run_git(self.repo_root, args, ok_returncodes=(0, 1))
        return {line.strip() for line in result.stdout.splitlines() if line.strip()}


class RipgrepSearch:
    """``rg`` over the candidate paths with literal, case-insensitive matching."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    async def __call__(self, query: str, candidate_paths: Sequence[str]) -> set[str]:
        if not query or not candidate_paths:
            return set()
        if shutil.which("rg") is None:
            raise OSError("rg is not installed.")

        cmd = [
            "rg",
            "--files-with-matches",
            "--ignore-case",
            "--fixed-strings",
            "--no-ignore",
            "--hidden",
            "-e",
            query,
            "--",
            *candidate_paths,
        ]
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=self.repo_root,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        matched = {
            line.strip()
            for line in stdout.decode("utf-8", errors="replace").splitlines()
            if line.strip()
        }
        # Deleted candidates make rg exit 2 while still listing real matches.
        if proc.returncode not in (0, 1) and not matched:
            err = stderr.decode("utf-8", errors="replace").strip()
            raise OSError(err or f"rg failed with exit code {proc.returncode}")
        return matched


def build_search_backend(name: str, repo_root: Path) -> SearchFn:
    if name == SEARCH_BACKEND_RG:
        return RipgrepSearch(repo_root)
    return GitGrepSearch(repo_root)


class ContentSearchFilter:
    """Debounced, generation-tagged content filter over published snapshots."""

    def __init__(
        self,
        search: SearchFn,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_results: Callable[[], None] | None = None,
    ) -> None:
        self._search = search
        self._debounce_seconds = max(0.0, debounce_seconds)
        self._on_results = on_results

        self.query = ""
        self._matched_paths: set[str] | None = None
        self._generation = 0
        self._pending: asyncio.Task[None] | None = None
        self._pending_generation = 0
        self._dispatched_generation = 0
        self.searches_dispatched = 0

    @property
    def active(self) -> bool:
        return not is_blank_query(self.query)

    @property
    def searching(self) -> bool:
        """True while a search for the current query is waiting or running."""
        return self._pending is not None and not self._pending.done()

    @property
    def generation(self) -> int:
        return self._generation

    def set_query(self, query: str, snapshot: Snapshot) -> None:
        """Record a query edit; only the value that settles is searched.

        Must be called from inside a running event loop.
        """
        if sanitize_query(query) != sanitize_query(self.query):
            self._matched_paths = None
        self.query = query
        self._generation += 1
        self._cancel_undispatched()

        if is_blank_query(query):
            self._matched_paths = None
            self._pending = None
            self._notify()
            return

        generation = self._generation
        self._pending_generation = generation
        self._pending = asyncio.create_task(
            self._debounced_search(generation, query, snapshot),
            name=f"diffwatch-search-{generation}",
        )

    def refresh(self, snapshot: Snapshot) -> None:
        """Re-run the active query against a newly published snapshot."""
        if self.active:
            self.set_query(self.query, snapshot)

    def clear(self) -> None:
        self.query = ""
        self._generation += 1
        self._cancel_undispatched()
        self._pending = None
        self._matched_paths = None

    def view(self, snapshot: Snapshot) -> Snapshot:
        """Filtered view of ``snapshot``; the full snapshot while inactive.

        A new query shows nothing until its first results arrive. Re-running
        the same query (``refresh``) keeps showing its last results meanwhile.
        """
        if not self.active:
            return snapshot
        if self._matched_paths is None:
            return Snapshot(records=(), generation=snapshot.generation)
        return restrict_snapshot(snapshot, self._matched_paths)

    async def wait_settled(self) -> None:
        """Wait until the latest pending search (if any) has finished."""
        while self._pending is not None and not self._pending.done():
            await asyncio.wait({self._pending})

    def _cancel_undispatched(self) -> None:
        pending = self._pending
        if pending is None or pending.done():
            return
        if self._dispatched_generation == self._pending_generation:
            # Already handed to the backend; it runs out and is discarded as stale.
            return
        pending.cancel()

    async def _debounced_search(self, generation: int, query: str, snapshot: Snapshot) -> None:
        if self._debounce_seconds > 0:
            await asyncio.sleep(self._debounce_seconds)
        if generation != self._generation:
            return
        self._dispatched_generation = generation
        self.searches_dispatched += 1
        matched = await _search_or_nothing(self._search, query, snapshot)
        if generation != self._generation:
            logger.debug("discarding stale search results for generation %d", generation)
            return
        self._matched_paths = matched
        self._notify()

    def _notify(self) -> None:
        if self._on_results is None:
            return
        try:
            self._on_results()
        except Exception:
            logger.exception("search result listener failed")


__all__ = [
    "ContentSearchFilter",
    "DEFAULT_DEBOUNCE_SECONDS",
    "GitGrepSearch",
    "RipgrepSearch",
    "SEARCH_BACKENDS",
    "SEARCH_BACKEND_GIT",
    "SEARCH_BACKEND_RG",
    "SearchFn",
    "build_search_backend",
    "filter_snapshot",
    "is_blank_query",
    "restrict_snapshot",
    "sanitize_query",
]
