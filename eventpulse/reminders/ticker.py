"""Periodic trigger for reminder sweeps.

A Ticker fires a coroutine callback on a fixed interval. Runs of the same
ticker never overlap: when a fire comes due while the previous run is still
in flight, that fire is skipped. Deadlines come from the event loop's
monotonic clock, so slow runs do not make the cadence drift.
"""

import asyncio
from datetime import timedelta
from typing import Awaitable, Callable, Optional

from eventpulse.utils.logger import log_debug, log_error, log_info, log_warning


TickCallback = Callable[[], Awaitable[object]]


class Ticker:
    """Named, independently stoppable periodic job."""

    def __init__(
        self,
        name: str,
        interval: timedelta,
        callback: TickCallback,
        *,
        run_immediately: bool = True,
    ):
        """Initialize the ticker.

        Args:
            name: Cadence name reported in status output
            interval: Time between fires
            callback: Coroutine function run on each fire
            run_immediately: Fire once right after start instead of after one interval
        """
        if interval <= timedelta(0):
            raise ValueError("Ticker interval must be positive")

        self.name = name
        self.interval = interval
        self._callback = callback
        self._run_immediately = run_immediately

        self._loop_task: Optional[asyncio.Task] = None
        self._run_task: Optional[asyncio.Task] = None
        self._is_running = False

        self.ticks = 0
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def in_flight(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    def start(self) -> None:
        """Start ticking. No-op when already running."""
        if self._is_running:
            log_debug(f"Ticker {self.name} already running")
            return

        self._is_running = True
        self._loop_task = asyncio.create_task(self._loop(), name=f"ticker:{self.name}")
        log_debug(f"Ticker {self.name} started (every {self.interval.total_seconds():g}s)")

    async def stop(self) -> None:
        """Stop firing and wait for an in-flight run to finish.

        The in-flight run is not cancelled, so a started dispatch always
        reaches its flag update.
        """
        if not self._is_running:
            return

        self._is_running = False
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._run_task and not self._run_task.done():
            log_info(f"Waiting for in-flight {self.name} run to finish")
            await asyncio.wait({self._run_task})
        self._run_task = None

        log_debug(f"Ticker {self.name} stopped")

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        period = self.interval.total_seconds()
        next_fire = loop.time() if self._run_immediately else loop.time() + period

        while self._is_running:
            delay = next_fire - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if not self._is_running:
                break

            self._fire()

            next_fire += period
            now = loop.time()
            if next_fire <= now:
                # Fell behind by whole periods; realign instead of bursting.
                missed = int((now - next_fire) // period) + 1
                self.skipped_ticks += missed
                next_fire += missed * period

    def _fire(self) -> None:
        if self.in_flight:
            self.skipped_ticks += 1
            log_warning(f"Skipping {self.name} tick: previous run still in progress")
            return

        self.ticks += 1
        self._run_task = asyncio.create_task(self._run(), name=f"ticker-run:{self.name}")

    async def _run(self) -> None:
        try:
            await self._callback()
        except Exception as e:
            log_error(f"Error in {self.name} tick: {e}", exc_info=True)

    def __repr__(self) -> str:
        return f"Ticker(name={self.name!r}, interval={self.interval}, running={self._is_running})"


__all__ = ["Ticker", "TickCallback"]
