"""
Roast Scheduler
In-process trigger sources for the sweep: the periodic loop, detached
lazy sweeps from read paths, and one-shot timers sized to a deadline.
None of them is needed for correctness; any one of them (or the cron
endpoint) eventually processes every due record.
"""
import asyncio
from typing import Coroutine, Optional, Set
from gitrekt.core.config import settings
from gitrekt.services.roast_lifecycle_service import RoastLifecycleService, roast_lifecycle
from gitrekt.utils.logger import logger


class RoastScheduler:

    def __init__(self, lifecycle: RoastLifecycleService = None, interval_seconds: int = None):
        self.lifecycle = lifecycle or roast_lifecycle
        self.interval_seconds = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
        self._tasks: Set[asyncio.Task] = set()
        self._periodic: Optional[asyncio.Task] = None
        self._timers: Set[asyncio.TimerHandle] = set()

    def spawn(self, coro: Coroutine, label: str) -> asyncio.Task:
        """Run coro detached; failures are logged, never raised to the caller"""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)

        def _done(finished: asyncio.Task):
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error(f"[Scheduler] Background {label} failed: {exc}")

        task.add_done_callback(_done)
        return task

    def spawn_sweep(self, reason: str = "lazy") -> asyncio.Task:
        return self.spawn(self._sweep(reason), f"{reason} sweep")

    async def _sweep(self, reason: str) -> int:
        processed = await self.lifecycle.sweep_expired()
        if processed:
            logger.info(f"[Scheduler] {reason} sweep processed {processed} record(s)")
        return processed

    def schedule_one_shot(self, delay_seconds: float) -> asyncio.TimerHandle:
        """Sweep once the given delay has passed (a deadline's remaining time)"""
        loop = asyncio.get_running_loop()
        # Small slack so the deadline is in the past when the sweep reads the clock
        delay = max(0.0, delay_seconds) + 1.0

        def _fire():
            self._timers.discard(handle)
            self.spawn_sweep("one-shot")

        handle = loop.call_later(delay, _fire)
        self._timers.add(handle)
        return handle

    async def _run_periodic(self):
        logger.info(f"[Scheduler] Periodic sweep every {self.interval_seconds}s")
        while True:
            try:
                await self._sweep("periodic")
            except Exception as e:
                logger.error(f"[Scheduler] Periodic sweep error: {e}")
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self._periodic is None or self._periodic.done():
            self._periodic = asyncio.get_running_loop().create_task(self._run_periodic())

    async def stop(self):
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

        pending = list(self._tasks)
        if self._periodic is not None:
            pending.append(self._periodic)
            self._periodic = None
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


roast_scheduler = RoastScheduler()
