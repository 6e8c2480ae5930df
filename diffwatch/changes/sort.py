"""Deterministic ordering for change snapshots."""

from __future__ import annotations

from collections.abc import Iterable

from .types import FileRecord


def path_collation_key(path: str) -> tuple[str, str]:
    """Case-insensitive path order, independent of the process locale.

    On case-only ties lower case sorts first (``a.ts`` before ``A.ts``).
    """
    return path.casefold(), path.swapcase()


def snapshot_sort_key(record: FileRecord) -> tuple[float, tuple[str, str]]:
    return -record.modified_at, path_collation_key(record.path)


def sort_records(records: Iterable[FileRecord]) -> tuple[FileRecord, ...]:
    """Newest mtime first, then path ascending."""
    return tuple(sorted(records, key=snapshot_sort_key))


__all__ = ["path_collation_key", "snapshot_sort_key", "sort_records"]
