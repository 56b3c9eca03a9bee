"""Tests for the sequential poll scheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

from rcon_bridge.cycle import CycleResult, CycleStatus, FaultKind, PollCycle
from rcon_bridge.scheduler import Scheduler

QUIET = CycleResult(CycleStatus.QUIET)


def make_cycle() -> MagicMock:
    cycle = MagicMock(spec=PollCycle)
    cycle.run_once = AsyncMock(return_value=QUIET)
    return cycle


class TestScheduler:
    """Tests for cycle sequencing."""

    async def test_runs_until_stopped(self) -> None:
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=0.01)

        async def run_once() -> CycleResult:
            if cycle.run_once.await_count == 3:
                scheduler.stop()
            return QUIET

        cycle.run_once.side_effect = run_once

        await asyncio.wait_for(scheduler.run(), timeout=2.0)

        assert cycle.run_once.await_count == 3
        assert scheduler.cycles_run == 3
        assert scheduler.is_stopped

    async def test_first_cycle_runs_immediately(self) -> None:
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=60.0)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.05)

        assert cycle.run_once.await_count == 1

        scheduler.stop()
        await asyncio.wait_for(task, timeout=1.0)

    async def test_stop_interrupts_wait(self) -> None:
        """Stopping does not wait out the remaining interval."""
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=60.0)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.05)
        scheduler.stop()

        await asyncio.wait_for(task, timeout=1.0)
        assert cycle.run_once.await_count == 1

    async def test_cycles_never_overlap(self) -> None:
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=0.0)
        active = 0
        max_active = 0

        async def slow_cycle() -> CycleResult:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.02)
            active -= 1
            if cycle.run_once.await_count >= 4:
                scheduler.stop()
            return CycleResult(CycleStatus.FAILED, fault=FaultKind.CONNECT)

        cycle.run_once.side_effect = slow_cycle

        await asyncio.wait_for(scheduler.run(), timeout=2.0)

        assert max_active == 1
        assert cycle.run_once.await_count == 4

    async def test_survives_cycle_exception(self) -> None:
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=0.0)

        async def flaky_cycle() -> CycleResult:
            if cycle.run_once.await_count == 1:
                raise RuntimeError("unexpected")
            scheduler.stop()
            return QUIET

        cycle.run_once.side_effect = flaky_cycle

        await asyncio.wait_for(scheduler.run(), timeout=2.0)

        assert cycle.run_once.await_count == 2

    async def test_stopped_before_start_runs_nothing(self) -> None:
        cycle = make_cycle()
        scheduler = Scheduler(cycle, interval=0.0)

        scheduler.stop()
        await scheduler.run()

        cycle.run_once.assert_not_awaited()
