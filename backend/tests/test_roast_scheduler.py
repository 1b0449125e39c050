import asyncio

import pytest

from gitrekt.services.roast_scheduler import RoastScheduler


class FakeLifecycle:
    def __init__(self, error=None):
        self.error = error
        self.sweeps = 0

    async def sweep_expired(self):
        self.sweeps += 1
        if self.error:
            raise self.error
        return 2


async def test_spawned_sweep_runs_detached():
    lifecycle = FakeLifecycle()
    scheduler = RoastScheduler(lifecycle=lifecycle, interval_seconds=60)

    assert await scheduler.spawn_sweep("lazy") == 2
    assert lifecycle.sweeps == 1


async def test_failed_background_sweep_is_only_logged(caplog):
    scheduler = RoastScheduler(lifecycle=FakeLifecycle(error=RuntimeError("mongo down")), interval_seconds=60)

    task = scheduler.spawn_sweep("lazy")
    with pytest.raises(RuntimeError):
        await task
    await asyncio.sleep(0)

    assert "lazy sweep failed: mongo down" in caplog.text
    assert not scheduler._tasks


async def test_one_shot_fires_after_the_deadline():
    scheduler = RoastScheduler(lifecycle=FakeLifecycle(), interval_seconds=60)
    loop = asyncio.get_running_loop()

    handle = scheduler.schedule_one_shot(300)
    try:
        assert handle.when() - loop.time() == pytest.approx(301, abs=1)
    finally:
        handle.cancel()

    late = scheduler.schedule_one_shot(-5)
    try:
        assert late.when() - loop.time() == pytest.approx(1, abs=0.5)
    finally:
        late.cancel()


async def test_periodic_loop_survives_errors_and_stops():
    lifecycle = FakeLifecycle(error=RuntimeError("boom"))
    scheduler = RoastScheduler(lifecycle=lifecycle, interval_seconds=0.01)

    scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert lifecycle.sweeps >= 2
    assert scheduler._periodic is None


async def test_stop_cancels_pending_one_shots():
    lifecycle = FakeLifecycle()
    scheduler = RoastScheduler(lifecycle=lifecycle, interval_seconds=60)

    handles = [scheduler.schedule_one_shot(delay) for delay in (10, 600)]
    await scheduler.stop()

    assert all(handle.cancelled() for handle in handles)
    assert not scheduler._timers
    assert lifecycle.sweeps == 0


async def test_fired_one_shot_sweeps_and_forgets_its_timer():
    lifecycle = FakeLifecycle()
    scheduler = RoastScheduler(lifecycle=lifecycle, interval_seconds=60)

    scheduler.schedule_one_shot(0)
    await asyncio.sleep(1.2)

    assert lifecycle.sweeps == 1
    assert not scheduler._timers
