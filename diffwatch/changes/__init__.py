"""Change-reconciliation engine.

Turns raw git status into immutable, mtime-ordered snapshots, polls for new
ones, and filters them by file content.
"""

from __future__ import annotations

from .enrich import enrich_modified_times, stat_mtime
from .normalize import normalize_flat_status, normalize_status_entries, normalize_status_report
from .pipeline import ChangeSourceDeps, SnapshotSource, build_snapshot, default_change_source_deps
from .scheduler import PollingScheduler, clamp_selection
from .search import ContentSearchFilter, build_search_backend, filter_snapshot, sanitize_query
from .sort import sort_records
from .types import (
    EMPTY_SNAPSHOT,
    FileRecord,
    FlatStatusReport,
    GitStatusReport,
    RawStatusEntry,
    RenamePair,
    Snapshot,
)

__all__ = [
    "ChangeSourceDeps",
    "ContentSearchFilter",
    "EMPTY_SNAPSHOT",
    "FileRecord",
    "FlatStatusReport",
    "GitStatusReport",
    "PollingScheduler",
    "RawStatusEntry",
    "RenamePair",
    "Snapshot",
    "SnapshotSource",
    "build_search_backend",
    "build_snapshot",
    "clamp_selection",
    "default_change_source_deps",
    "enrich_modified_times",
    "filter_snapshot",
    "normalize_flat_status",
    "normalize_status_entries",
    "normalize_status_report",
    "sanitize_query",
    "sort_records",
    "stat_mtime",
]
