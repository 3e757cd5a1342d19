"""
Testes unitários para o agendador de ciclos.
"""

import asyncio
from datetime import datetime

import pytest

from rate_collector.scheduler import RateScheduler


class FakeCollector:
    def __init__(self, settings, fail: bool = False):
        self.settings = settings
        self.fail = fail
        self.cycles = 0
        self.cleanups = 0

    async def run_cycle(self):
        self.cycles += 1
        if self.fail:
            raise RuntimeError("browser morreu")
        return "ok"

    async def clean_old_records(self, days_to_keep=None):
        self.cleanups += 1
        return 5


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class TestRateScheduler:

    @pytest.mark.asyncio
    async def test_tick_runs_cycle(self, settings):
        collector = FakeCollector(settings)
        scheduler = RateScheduler(collector, clock=Clock(datetime(2024, 1, 1, 10, 0)))

        assert await scheduler.tick() == "ok"
        assert collector.cycles == 1
        assert collector.cleanups == 0

    @pytest.mark.asyncio
    async def test_cycle_error_does_not_propagate(self, settings):
        collector = FakeCollector(settings, fail=True)
        scheduler = RateScheduler(collector, clock=Clock(datetime(2024, 1, 1, 10, 0)))

        assert await scheduler.tick() is None
        assert scheduler.cycle_count == 1

    @pytest.mark.asyncio
    async def test_cleanup_once_per_day(self, settings):
        collector = FakeCollector(settings)
        clock = Clock(datetime(2024, 1, 1, settings.cleanup_hour, 0))
        scheduler = RateScheduler(collector, clock=clock)

        await scheduler.tick()
        await scheduler.tick()
        assert collector.cleanups == 1

        clock.now = datetime(2024, 1, 2, settings.cleanup_hour, 5)
        await scheduler.tick()
        assert collector.cleanups == 2

    @pytest.mark.asyncio
    async def test_run_loop_sleeps_interval(self, settings):
        collector = FakeCollector(settings)
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)
            if len(delays) == 3:
                scheduler.is_running = False

        scheduler = RateScheduler(
            collector,
            sleep=fake_sleep,
            clock=Clock(datetime(2024, 1, 1, 10, 0)),
        )
        await scheduler.run()

        assert collector.cycles == 3
        assert delays == [settings.scrape_interval_minutes * 60] * 3
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_start_and_stop(self, settings):
        collector = FakeCollector(settings)
        scheduler = RateScheduler(collector, clock=Clock(datetime(2024, 1, 1, 10, 0)))

        task = scheduler.start()
        assert scheduler.start() is task

        await asyncio.sleep(0.01)
        await scheduler.stop()

        assert task.done()
        assert collector.cycles == 1
        assert not scheduler.is_running
