"""Attach filesystem modification times to normalized change records."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from .types import EPOCH, FileRecord

logger = logging.getLogger(__name__)

StatMtime = Callable[[Path], Awaitable[float]]


async def stat_mtime(path: Path) -> float:
    """Return ``path``'s mtime in seconds, stat'ing off the event loop.

    Raises ``FileNotFoundError`` for missing files like ``os.stat`` does.
    """
    st = await asyncio.to_thread(os.stat, path)
    return st.st_mtime


def resolve_record_path(record_path: str, repo_root: Path) -> Path:
    candidate = Path(record_path)
    if candidate.is_absolute():
        return candidate
    return repo_root / candidate


async def _enrich_one(record: FileRecord, repo_root: Path, stat: StatMtime) -> FileRecord:
    target = resolve_record_path(record.path, repo_root)
    try:
        modified_at = await stat(target)
    except FileNotFoundError:
        return record.with_modified_at(EPOCH)
    except Exception as exc:
        logger.debug("stat failed for %s: %s", target, exc)
        return record.with_modified_at(EPOCH)
    return record.with_modified_at(float(modified_at))


async def enrich_modified_times(
    records: Iterable[FileRecord],
    repo_root: Path,
    stat: StatMtime = stat_mtime,
) -> list[FileRecord]:
    """Stat every record concurrently; a failed stat only affects its record."""
    pending = [_enrich_one(record, repo_root, stat) for record in records]
    if not pending:
        return []
    return list(await asyncio.gather(*pending))


__all__ = [
    "StatMtime",
    "enrich_modified_times",
    "resolve_record_path",
    "stat_mtime",
]
