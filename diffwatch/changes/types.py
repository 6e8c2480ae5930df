"""Domain datatypes for working-tree change snapshots."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

STATUS_MODIFIED = "modified"
STATUS_NEW = "new"
STATUS_DELETED = "deleted"
STATUS_RENAMED = "renamed"
STATUS_UNKNOWN = "unknown"
STATUS_UNSTAGED = "unstaged"
STATUS_UNCHANGED = "unchanged"
STATUS_IGNORED = "ignored"

STATUS_KINDS = frozenset(
    {
        STATUS_MODIFIED,
        STATUS_NEW,
        STATUS_DELETED,
        STATUS_RENAMED,
        STATUS_UNKNOWN,
        STATUS_UNSTAGED,
        STATUS_UNCHANGED,
        STATUS_IGNORED,
    }
)

EPOCH = 0.0


@dataclass(frozen=True)
class FileRecord:
    """One changed path with its canonical status and mtime (POSIX seconds)."""

    path: str
    status: str
    modified_at: float = EPOCH

    def __post_init__(self) -> None:
        if self.status not in STATUS_KINDS:
            raise ValueError(f"unknown status kind: {self.status!r}")

    def with_modified_at(self, modified_at: float) -> "FileRecord":
        return FileRecord(path=self.path, status=self.status, modified_at=modified_at)


@dataclass(frozen=True)
class RawStatusEntry:
    """Per-path status as reported by git: two independent flag slots."""

    path: str
    index_flag: str = ""
    working_flag: str = ""


@dataclass(frozen=True)
class RenamePair:
    source: str
    target: str


@dataclass(frozen=True)
class GitStatusReport:
    """Flag-tuple status report plus the separate rename list."""

    entries: tuple[RawStatusEntry, ...] = ()
    renames: tuple[RenamePair, ...] = ()


@dataclass(frozen=True)
class FlatStatusReport:
    """Categorized path lists, the older shape some providers return."""

    modified: tuple[str, ...] = ()
    staged: tuple[str, ...] = ()
    not_added: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    renamed: tuple[RenamePair, ...] = ()


StatusReport = GitStatusReport | FlatStatusReport


@dataclass(frozen=True)
class Snapshot:
    """Immutable, ordered change list observed at one poll instant.

    ``generation`` increases by one for every pass the scheduler publishes.
    """

    records: tuple[FileRecord, ...] = ()
    generation: int = 0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> FileRecord:
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def paths(self) -> tuple[str, ...]:
        return tuple(record.path for record in self.records)

    def same_entries(self, other: "Snapshot") -> bool:
        """Compare paths, kinds and order, ignoring mtimes and generation."""
        return [(r.path, r.status) for r in self.records] == [(r.path, r.status) for r in other.records]


EMPTY_SNAPSHOT = Snapshot()


__all__ = [
    "EMPTY_SNAPSHOT",
    "EPOCH",
    "FileRecord",
    "FlatStatusReport",
    "GitStatusReport",
    "RawStatusEntry",
    "RenamePair",
    "STATUS_DELETED",
    "STATUS_IGNORED",
    "STATUS_KINDS",
    "STATUS_MODIFIED",
    "STATUS_NEW",
    "STATUS_RENAMED",
    "STATUS_UNCHANGED",
    "STATUS_UNKNOWN",
    "STATUS_UNSTAGED",
    "Snapshot",
    "StatusReport",
]
