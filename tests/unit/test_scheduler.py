"""Test the manual and asyncio schedulers."""

import asyncio

import pytest

from spa_ble.scheduler import AsyncioScheduler, ManualScheduler, RepeatingTimer


class TestManualScheduler:
    """Test virtual-time scheduling."""

    def test_callbacks_run_in_deadline_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_later(2.0, order.append, "late")
        scheduler.call_later(1.0, order.append, "early")
        scheduler.call_soon(order.append, "soon")

        executed = scheduler.advance(2.0)

        assert order == ["soon", "early", "late"]
        assert executed == 3
        assert scheduler.time() == 2.0

    def test_advance_stops_at_target(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_later(1.5, order.append, "x")

        scheduler.advance(1.0)
        assert order == []
        assert scheduler.pending == 1

        scheduler.advance(0.5)
        assert order == ["x"]
        assert scheduler.pending == 0

    def test_cancelled_timer_does_not_run(self):
        scheduler = ManualScheduler()
        order = []
        handle = scheduler.call_later(1.0, order.append, "x")
        handle.cancel()
        handle.cancel()

        assert scheduler.advance(5.0) == 0
        assert order == []

    def test_negative_advance_rejected(self):
        with pytest.raises(ValueError):
            ManualScheduler().advance(-1)

    def test_run_pending_only_runs_due_work(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_soon(order.append, "now")
        scheduler.call_later(0.1, order.append, "later")

        assert scheduler.run_pending() == 1
        assert order == ["now"]

    @pytest.mark.asyncio
    async def test_sleep_resumes_after_advance(self):
        scheduler = ManualScheduler()
        task = asyncio.create_task(scheduler.sleep(0.5))
        await asyncio.sleep(0)
        assert not task.done()

        scheduler.advance(0.5)
        await task
        assert scheduler.time() == 0.5


class TestRepeatingTimer:
    """Test repeating timers."""

    def test_fires_every_interval(self):
        scheduler = ManualScheduler()
        ticks = []
        scheduler.call_repeating(0.8, lambda: ticks.append(scheduler.time()))

        scheduler.advance(2.5)

        assert ticks == pytest.approx([0.8, 1.6, 2.4])

    def test_cancel_from_inside_callback(self):
        """cancel() inside the callback stops further runs."""
        scheduler = ManualScheduler()
        ticks = []
        timer = None

        def tick():
            ticks.append(scheduler.time())
            timer.cancel()

        timer = scheduler.call_repeating(1.0, tick)
        scheduler.advance(5.0)

        assert ticks == [1.0]
        assert timer.cancelled()
        assert scheduler.pending == 0

    def test_rearms_when_callback_raises(self):
        scheduler = ManualScheduler()
        calls = []

        def boom():
            calls.append(1)
            raise RuntimeError("listener failed")

        timer = scheduler.call_repeating(1.0, boom)
        with pytest.raises(RuntimeError):
            scheduler.advance(1.0)
        assert scheduler.pending == 1
        timer.cancel()

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RepeatingTimer(ManualScheduler(), 0, lambda: None)


class TestAsyncioScheduler:
    """Test the event-loop backed scheduler."""

    @pytest.mark.asyncio
    async def test_call_later_and_sleep(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()
        scheduler.call_later(0.01, fired.set)

        await scheduler.sleep(0.02)

        assert fired.is_set()

    @pytest.mark.asyncio
    async def test_repeating_timer_cancel(self):
        scheduler = AsyncioScheduler()
        ticks = []
        timer = scheduler.call_repeating(0.01, lambda: ticks.append(1))

        await asyncio.sleep(0.06)
        timer.cancel()
        count = len(ticks)
        await asyncio.sleep(0.03)

        assert count >= 2
        assert len(ticks) == count
