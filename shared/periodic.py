"""Fixed-interval task runner with a not-already-running guard."""
import asyncio
import logging

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Fires ``run_cycle()`` every ``interval`` seconds.

    Ticks are started on a timer, not after the previous one finishes. A
    tick that fires while the previous cycle is still in flight is skipped,
    so a slow API causes at most one overlapping attempt and never a queue.
    Exceptions from a cycle are logged and swallowed to keep the loop alive.
    """

    name = "periodic"

    def __init__(self, interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._stop = asyncio.Event()
        self._busy = False
        self._inflight: set[asyncio.Task] = set()

    async def run_cycle(self):
        raise NotImplementedError

    @property
    def is_running_cycle(self) -> bool:
        return self._busy

    async def tick(self) -> bool:
        """Run one guarded cycle. Returns False when skipped as overlapping."""
        if self._busy:
            logger.debug("Cycle still running, tick skipped", extra={"task": self.name})
            return False
        self._busy = True
        try:
            await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{self.name} cycle failed: {e}", exc_info=True)
        finally:
            self._busy = False
        return True

    async def start(self):
        """Tick immediately, then on every interval until ``stop()``."""
        self._stop.clear()
        logger.info("Periodic task started", extra={"task": self.name, "interval": self.interval})
        while not self._stop.is_set():
            task = asyncio.create_task(self.tick(), name=f"{self.name}-tick")
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("Periodic task stopped", extra={"task": self.name})

    def stop(self):
        self._stop.set()
