"""Periodic snapshot polling with skip, stop, and selection bookkeeping.

The scheduler owns the published ``Snapshot``. Passes are serialized by a
lock so a slow pass can never interleave with the next tick or with a manual
``refresh()``; each completed pass replaces the snapshot wholesale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .types import EMPTY_SNAPSHOT, FileRecord, Snapshot

logger = logging.getLogger(__name__)

SCHEDULER_IDLE = "idle"
SCHEDULER_RUNNING = "running"
SCHEDULER_STOPPED = "stopped"

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


def clamp_selection(index: int | None, length: int) -> int | None:
    """Keep a selection index inside a list of ``length`` rows.

    Returns ``None`` for an empty list. A missing selection becomes the first
    row once rows exist.
    """
    if length <= 0:
        return None
    if index is None:
        return 0
    return max(0, min(index, length - 1))


class PollingScheduler:
    """Drive ``run_pass`` on a fixed interval and publish its snapshots."""

    def __init__(
        self,
        run_pass: Callable[[], Awaitable[Snapshot]],
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        should_skip: Callable[[], bool] | None = None,
        on_publish: Callable[[Snapshot], None] | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._run_pass = run_pass
        self._interval_seconds = interval_seconds
        self._should_skip = should_skip
        self._listeners: list[Callable[[Snapshot], None]] = []
        if on_publish is not None:
            self._listeners.append(on_publish)

        self.state = SCHEDULER_IDLE
        self.snapshot: Snapshot = EMPTY_SNAPSHOT
        self.selected_index: int | None = None
        self.passes_run = 0
        self.ticks_skipped = 0

        self._pass_lock = asyncio.Lock()
        self._stop_requested = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    def add_listener(self, listener: Callable[[Snapshot], None]) -> None:
        self._listeners.append(listener)

    @property
    def selected_record(self) -> FileRecord | None:
        if self.selected_index is None:
            return None
        return self.snapshot[self.selected_index]

    def select(self, index: int) -> int | None:
        self.selected_index = clamp_selection(index, len(self.snapshot))
        return self.selected_index

    def move_selection(self, delta: int) -> int | None:
        current = self.selected_index if self.selected_index is not None else 0
        return self.select(current + delta)

    async def start(self) -> None:
        """Run one pass immediately, then keep polling until ``stop()``."""
        if self.state != SCHEDULER_IDLE:
            return
        self.state = SCHEDULER_RUNNING
        await self._run_one_pass()
        if self.state != SCHEDULER_RUNNING:
            return
        self._task = asyncio.create_task(self._poll_loop(), name="diffwatch-poll")

    async def stop(self) -> None:
        """Stop polling. Safe to call repeatedly.

        A pass already in flight is allowed to finish and publish; no tick
        fires once this returns.
        """
        if self.state == SCHEDULER_STOPPED:
            return
        self.state = SCHEDULER_STOPPED
        self._stop_requested.set()
        task = self._task
        self._task = None
        if task is not None and task is not asyncio.current_task():
            await task
        # Drain a manual refresh that may still hold the lock.
        async with self._pass_lock:
            pass

    async def refresh(self) -> Snapshot:
        """Force an immediate pass outside the timer (after a user action)."""
        if self.state == SCHEDULER_STOPPED:
            return self.snapshot
        await self._run_one_pass()
        return self.snapshot

    async def _poll_loop(self) -> None:
        while self.state == SCHEDULER_RUNNING:
            try:
                await asyncio.wait_for(self._stop_requested.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                pass
            if self.state != SCHEDULER_RUNNING:
                return
            if self._tick_skipped():
                self.ticks_skipped += 1
                continue
            await self._run_one_pass()

    def _tick_skipped(self) -> bool:
        """Read the skip predicate; a failing predicate never skips."""
        if self._should_skip is None:
            return False
        try:
            return bool(self._should_skip())
        except Exception:
            logger.exception("skip predicate failed; polling anyway")
            return False

    async def _run_one_pass(self) -> None:
        async with self._pass_lock:
            try:
                snapshot = await self._run_pass()
            except Exception:
                logger.exception("snapshot pass failed; keeping previous snapshot")
                return
            self.passes_run += 1
            self._publish(snapshot)

    def _publish(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self.selected_index = clamp_selection(self.selected_index, len(snapshot))
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("snapshot listener failed")


__all__ = [
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "PollingScheduler",
    "SCHEDULER_IDLE",
    "SCHEDULER_RUNNING",
    "SCHEDULER_STOPPED",
    "clamp_selection",
]
