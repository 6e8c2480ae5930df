"""Collapse raw git status signals into one canonical record per path.

Two report shapes are accepted: per-path flag tuples (the porcelain shape)
and flat categorized lists. Both use first-write-wins dedup by path, so the
order of the raw input matters and is never rearranged here.
"""

from __future__ import annotations

from collections.abc import Iterable

from .types import (
    STATUS_DELETED,
    STATUS_MODIFIED,
    STATUS_NEW,
    STATUS_RENAMED,
    STATUS_UNSTAGED,
    FileRecord,
    FlatStatusReport,
    GitStatusReport,
    RawStatusEntry,
    RenamePair,
    StatusReport,
)


def _normalize_flag(flag: str | None) -> str:
    """Blank and missing flags both mean "no change in this slot"."""
    if not flag:
        return ""
    return flag.strip()


def _rename_members(renames: Iterable[RenamePair]) -> set[str]:
    members: set[str] = set()
    for pair in renames:
        members.add(pair.source)
        members.add(pair.target)
    return members


def resolve_entry_status(entry: RawStatusEntry, rename_members: set[str]) -> str | None:
    """Return the canonical status for one raw entry, or ``None`` to drop it.

    Rules are checked in priority order; the first match wins.
    """
    index_flag = _normalize_flag(entry.index_flag)
    working_flag = _normalize_flag(entry.working_flag)

    if entry.path in rename_members:
        return STATUS_RENAMED
    if "D" in index_flag or "D" in working_flag:
        return STATUS_DELETED
    if index_flag == "?" and working_flag == "?":
        return STATUS_NEW
    if "A" in index_flag and index_flag != "?":
        return STATUS_MODIFIED
    if index_flag in ("", "M") and "M" in working_flag:
        return STATUS_UNSTAGED
    return None


class _RecordCollector:
    """Ordered accumulator that keeps the first status seen for each path."""

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self.records: list[FileRecord] = []

    def add(self, path: str, status: str) -> None:
        if not path or path in self._seen:
            return
        self._seen.add(path)
        self.records.append(FileRecord(path=path, status=status))


def normalize_status_entries(
    entries: Iterable[RawStatusEntry],
    renames: Iterable[RenamePair] = (),
) -> list[FileRecord]:
    rename_members = _rename_members(renames)
    collector = _RecordCollector()
    for entry in entries:
        status = resolve_entry_status(entry, rename_members)
        if status is None:
            continue
        collector.add(entry.path, status)
    return collector.records


def normalize_flat_status(report: FlatStatusReport) -> list[FileRecord]:
    """Normalize the flat-list report shape.

    Category order mirrors the flag-tuple rules' vocabulary: working-tree
    modifications are ``unstaged`` and index entries are ``modified``.
    """
    collector = _RecordCollector()
    for path in report.modified:
        collector.add(path, STATUS_UNSTAGED)
    for path in report.staged:
        collector.add(path, STATUS_MODIFIED)
    for path in report.not_added:
        collector.add(path, STATUS_NEW)
    for path in report.deleted:
        collector.add(path, STATUS_DELETED)
    for pair in report.renamed:
        collector.add(pair.target, STATUS_RENAMED)
    return collector.records


def normalize_status_report(report: StatusReport) -> list[FileRecord]:
    if isinstance(report, FlatStatusReport):
        return normalize_flat_status(report)
    if isinstance(report, GitStatusReport):
        return normalize_status_entries(report.entries, report.renames)
    raise TypeError(f"unsupported status report: {type(report).__name__}")


__all__ = [
    "normalize_flat_status",
    "normalize_status_entries",
    "normalize_status_report",
    "resolve_entry_status",
]
