"""Tests for the polling scheduler: ticks, skipping, stop, and selection."""

from __future__ import annotations

import asyncio
import unittest
from collections.abc import Callable

from diffwatch.changes.scheduler import (
    SCHEDULER_IDLE,
    SCHEDULER_RUNNING,
    SCHEDULER_STOPPED,
    PollingScheduler,
    clamp_selection,
)
from diffwatch.changes.types import FileRecord, Snapshot

INTERVAL = 0.01


def _snapshot(count: int, generation: int = 0) -> Snapshot:
    return Snapshot(
        records=tuple(FileRecord(f"f{idx}.ts", "unstaged") for idx in range(count)),
        generation=generation,
    )


async def _wait_for(condition: Callable[[], bool], timeout_seconds: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout_seconds
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(INTERVAL / 2)


class ClampSelectionTests(unittest.TestCase):
    def test_clamps_to_last_row_when_list_shrinks(self) -> None:
        self.assertEqual(clamp_selection(7, 3), 2)
        self.assertEqual(clamp_selection(2, 3), 2)

    def test_empty_list_has_no_selection(self) -> None:
        self.assertIsNone(clamp_selection(0, 0))
        self.assertIsNone(clamp_selection(None, 0))

    def test_missing_or_negative_selection_starts_at_first_row(self) -> None:
        self.assertEqual(clamp_selection(None, 4), 0)
        self.assertEqual(clamp_selection(-3, 4), 0)

    def test_matches_max_zero_length_minus_one_for_any_shrink(self) -> None:
        for index in range(6):
            for length in range(1, index + 1):
                self.assertEqual(clamp_selection(index, length), max(0, length - 1))


class PollingSchedulerTests(unittest.IsolatedAsyncioTestCase):
    async def test_start_runs_one_pass_immediately_then_keeps_polling(self) -> None:
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(calls, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL)
        self.assertEqual(scheduler.state, SCHEDULER_IDLE)
        await scheduler.start()
        self.assertEqual(scheduler.state, SCHEDULER_RUNNING)
        self.assertEqual(calls, 1)
        self.assertEqual(scheduler.snapshot.generation, 1)

        await _wait_for(lambda: scheduler.passes_run >= 3)
        await scheduler.stop()
        self.assertEqual(len(scheduler.snapshot), scheduler.snapshot.generation)

    async def test_skip_condition_is_read_on_every_tick(self) -> None:
        skip = True
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(1, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL, should_skip=lambda: skip)
        await scheduler.start()
        await _wait_for(lambda: scheduler.ticks_skipped >= 3)
        self.assertEqual(calls, 1)
        self.assertEqual(scheduler.snapshot.generation, 1)

        skip = False
        await _wait_for(lambda: calls >= 2)
        await scheduler.stop()

    async def test_failing_skip_condition_does_not_end_polling(self) -> None:
        skip_calls = 0
        calls = 0

        def flaky_skip() -> bool:
            nonlocal skip_calls
            skip_calls += 1
            if skip_calls == 1:
                raise RuntimeError("ui state glitch")
            return False

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(1, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL, should_skip=flaky_skip)
        with self.assertLogs("diffwatch.changes.scheduler", level="ERROR"):
            await scheduler.start()
            await _wait_for(lambda: calls >= 3)
        await scheduler.stop()

        self.assertEqual(scheduler.state, SCHEDULER_STOPPED)
        self.assertEqual(scheduler.ticks_skipped, 0)

    async def test_stop_is_idempotent_and_no_tick_fires_afterwards(self) -> None:
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(1)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL)
        await scheduler.start()
        await _wait_for(lambda: calls >= 2)
        await scheduler.stop()
        await scheduler.stop()
        calls_at_stop = calls

        await asyncio.sleep(INTERVAL * 5)
        self.assertEqual(calls, calls_at_stop)
        self.assertEqual(scheduler.state, SCHEDULER_STOPPED)

    async def test_stop_before_start_prevents_polling(self) -> None:
        async def run_pass() -> Snapshot:
            raise AssertionError("should not run")

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL)
        await scheduler.stop()
        await scheduler.start()
        self.assertEqual(scheduler.state, SCHEDULER_STOPPED)
        self.assertEqual(scheduler.passes_run, 0)

    async def test_in_flight_pass_finishes_and_publishes_once_after_stop(self) -> None:
        second_started = asyncio.Event()
        release_second = asyncio.Event()
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            if calls == 2:
                second_started.set()
                await release_second.wait()
            return _snapshot(calls, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL)
        await scheduler.start()
        await second_started.wait()

        stop_task = asyncio.create_task(scheduler.stop())
        await asyncio.sleep(INTERVAL)
        self.assertFalse(stop_task.done())
        release_second.set()
        await stop_task

        self.assertEqual(scheduler.snapshot.generation, 2)
        await asyncio.sleep(INTERVAL * 5)
        self.assertEqual(calls, 2)

    async def test_passes_never_overlap_with_ticks_or_manual_refresh(self) -> None:
        running = 0
        max_running = 0

        async def run_pass() -> Snapshot:
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(INTERVAL * 2)
            running -= 1
            return _snapshot(1)

        scheduler = PollingScheduler(run_pass, interval_seconds=INTERVAL)
        await scheduler.start()
        await asyncio.gather(scheduler.refresh(), scheduler.refresh())
        await _wait_for(lambda: scheduler.passes_run >= 5)
        await scheduler.stop()

        self.assertEqual(max_running, 1)

    async def test_selection_is_clamped_when_snapshot_shrinks(self) -> None:
        sizes = iter([5, 2, 0, 3])

        async def run_pass() -> Snapshot:
            return _snapshot(next(sizes))

        scheduler = PollingScheduler(run_pass, interval_seconds=60.0)
        await scheduler.start()
        self.assertEqual(scheduler.selected_index, 0)
        scheduler.select(4)
        self.assertEqual(scheduler.selected_record, FileRecord("f4.ts", "unstaged"))

        await scheduler.refresh()
        self.assertEqual(scheduler.selected_index, 1)
        await scheduler.refresh()
        self.assertIsNone(scheduler.selected_index)
        self.assertIsNone(scheduler.selected_record)
        await scheduler.refresh()
        self.assertEqual(scheduler.selected_index, 0)
        await scheduler.stop()

    async def test_move_selection_stays_in_range(self) -> None:
        async def run_pass() -> Snapshot:
            return _snapshot(3)

        scheduler = PollingScheduler(run_pass, interval_seconds=60.0)
        await scheduler.start()
        self.assertEqual(scheduler.move_selection(10), 2)
        self.assertEqual(scheduler.move_selection(-1), 1)
        self.assertEqual(scheduler.move_selection(-10), 0)
        await scheduler.stop()

    async def test_failed_pass_keeps_previous_snapshot(self) -> None:
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            if calls == 2:
                raise RuntimeError("boom")
            return _snapshot(calls, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=60.0)
        await scheduler.start()
        with self.assertLogs("diffwatch.changes.scheduler", level="ERROR"):
            await scheduler.refresh()
        self.assertEqual(scheduler.snapshot.generation, 1)
        await scheduler.refresh()
        self.assertEqual(scheduler.snapshot.generation, 3)
        await scheduler.stop()

    async def test_listeners_see_every_published_snapshot(self) -> None:
        published: list[int] = []
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(0, generation=calls)

        def broken_listener(_snapshot: Snapshot) -> None:
            raise ValueError("listener bug")

        scheduler = PollingScheduler(
            run_pass,
            interval_seconds=60.0,
            on_publish=lambda snapshot: published.append(snapshot.generation),
        )
        scheduler.add_listener(broken_listener)
        with self.assertLogs("diffwatch.changes.scheduler", level="ERROR"):
            await scheduler.start()
            await scheduler.refresh()
        await scheduler.stop()

        self.assertEqual(published, [1, 2])

    async def test_refresh_after_stop_returns_last_snapshot(self) -> None:
        calls = 0

        async def run_pass() -> Snapshot:
            nonlocal calls
            calls += 1
            return _snapshot(1, generation=calls)

        scheduler = PollingScheduler(run_pass, interval_seconds=60.0)
        await scheduler.start()
        await scheduler.stop()
        snapshot = await scheduler.refresh()
        self.assertEqual(snapshot.generation, 1)
        self.assertEqual(calls, 1)

    def test_rejects_non_positive_interval(self) -> None:
        async def run_pass() -> Snapshot:
            return _snapshot(0)

        with self.assertRaises(ValueError):
            PollingScheduler(run_pass, interval_seconds=0)


if __name__ == "__main__":
    unittest.main()
