"""Sequential poll scheduler.

Runs the first cycle immediately and each following cycle once the previous
one, cooldown included, has finished. Cycles never overlap.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from rcon_bridge.cycle import CycleResult, CycleStatus, PollCycle

logger = logging.getLogger(__name__)


class Scheduler:
    """Drives a PollCycle at a fixed interval.

    The interval is measured from the start of one cycle to the start of the
    next; a cycle that overruns it is followed immediately by the next one.

    Attributes:
        cycle: The cycle runner
        interval: Seconds between the starts of consecutive cycles
    """

    def __init__(self, cycle: PollCycle, interval: float) -> None:
        self.cycle = cycle
        self.interval = interval
        self.cycles_run = 0
        self._stopped = asyncio.Event()

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        """Stop issuing cycles. A cycle already running is left to finish."""
        self._stopped.set()

    async def run(self) -> None:
        """Run cycles until stop() is called."""
        loop = asyncio.get_running_loop()
        logger.info("Polling every %.1f seconds", self.interval)

        while not self._stopped.is_set():
            started = loop.time()
            try:
                result = await self.cycle.run_once()
            except Exception:
                logger.exception("Poll cycle raised unexpectedly")
            else:
                self._log_outcome(result)
            self.cycles_run += 1

            delay = max(0.0, self.interval - (loop.time() - started))
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=delay)

        logger.info("Scheduler stopped after %d cycles", self.cycles_run)

    @staticmethod
    def _log_outcome(result: CycleResult) -> None:
        if result.status is CycleStatus.PUBLISHED:
            logger.debug("Cycle published %d message(s)", result.chunks_sent)
        elif result.status is CycleStatus.FAILED:
            logger.debug("Cycle failed (%s)", result.fault.value if result.fault else "?")
        else:
            logger.debug("Cycle finished: %s", result.status.value)
