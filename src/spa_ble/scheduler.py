"""Timer and clock abstraction used by the emulator.

Every delay, scan tick and periodic notification goes through a scheduler so
tests can swap the asyncio clock for a manually advanced one.

Usage:
    scheduler = ManualScheduler()
    manager = EmulatedBleManager(scheduler=scheduler)
    manager.start_device_scan(None, None, on_result)
    scheduler.advance(0.8)  # runs exactly one scan tick
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Any, Protocol

_LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Cancellable handle returned by every scheduling call.

    cancel() may be called any number of times, including from inside the
    timer's own callback.
    """

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Clock plus one-shot, repeating and sleep primitives."""

    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def call_repeating(
            self, interval: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle: ...

    async def sleep(self, delay: float) -> None: ...


class RepeatingTimer:
    """Re-arms a one-shot timer after every run until cancelled."""

    def __init__(
            self,
            scheduler: Scheduler,
            interval: float,
            callback: Callable[..., Any],
            args: tuple[Any, ...] = (),
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._args = args
        self._cancelled = False
        self._handle: TimerHandle | None = None
        self._arm()

    @property
    def interval(self) -> float:
        return self._interval

    def _arm(self) -> None:
        self._handle = self._scheduler.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._cancelled:
            return
        try:
            self._callback(*self._args)
        finally:
            if not self._cancelled:
                self._arm()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        """Initialize scheduler.

        Args:
            loop: Event loop to schedule on. Defaults to the loop running at
                call time, so the scheduler may be created outside a loop.
        """
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.loop.call_later(max(delay, 0.0), callback, *args)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.loop.call_soon(callback, *args)

    def call_repeating(
            self, interval: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        return RepeatingTimer(self, interval, callback, args)

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(max(delay, 0.0))


class ManualTimer:
    """One-shot timer owned by a ManualScheduler."""

    __slots__ = ("when", "_callback", "_args", "_cancelled")

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]):
        self.when = when
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        self._callback(*self._args)


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


class ManualScheduler:
    """Virtual-time scheduler advanced explicitly by the test.

    Callbacks only run inside advance()/run_pending(), in deadline order
    (insertion order for equal deadlines). sleep() parks the caller on an
    asyncio future resolved when virtual time passes its deadline, so the
    caller resumes on the next loop iteration after advance() returns.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self._now + max(delay, 0.0), callback, args)
        heapq.heappush(self._queue, (timer.when, next(self._counter), timer))
        return timer

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        return self.call_later(0.0, callback, *args)

    def call_repeating(
            self, interval: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        return RepeatingTimer(self, interval, callback, args)

    async def sleep(self, delay: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        timer = self.call_later(delay, _resolve, future)
        try:
            await future
        finally:
            timer.cancel()

    @property
    def pending(self) -> int:
        """Number of live timers still queued."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled())

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every timer that falls due.

        Timers scheduled by callbacks during the advance run too if their
        deadline is within the window.

        Returns:
            Number of callbacks executed
        """
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards ({seconds})")

        target = self._now + seconds
        executed = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            if timer.cancelled():
                continue
            self._now = when
            timer.run()
            executed += 1

        self._now = target
        _LOGGER.debug("Advanced virtual clock to %.3f (%d callbacks)", target, executed)
        return executed

    def run_pending(self) -> int:
        """Run callbacks due at the current instant (call_soon work)."""
        return self.advance(0.0)
