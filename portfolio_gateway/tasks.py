"""Periodic task scheduling for the price monitor."""

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Optional

import schedule

logger = logging.getLogger(__name__)


class PollLoop:
    """Runs an async tick on a fixed interval.

    Timing is handled by a private ``schedule.Scheduler``; an asyncio driver
    task calls ``run_pending()`` every ``resolution_seconds``. A tick that is
    due while the previous one is still running is skipped.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        resolution_seconds: float = 1.0,
    ):
        self._tick = tick
        self.interval_seconds = interval_seconds
        self.resolution_seconds = resolution_seconds
        self.scheduler = schedule.Scheduler()
        self._driver: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._driver is not None

    @property
    def tick_in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def start(self) -> None:
        """Schedule the tick and start the driver. Must be called from the event loop."""
        if self._driver is not None:
            return

        self.scheduler.every(self.interval_seconds).seconds.do(self._fire)
        self._driver = asyncio.get_event_loop().create_task(self._drive())
        logger.info(f"Poll loop started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel the schedule. A tick already running is left to finish."""
        if self._driver is None:
            return

        self.scheduler.clear()
        self._driver.cancel()
        self._driver = None
        logger.info("Poll loop stopped")

    async def close(self) -> None:
        """Stop the loop, cancel any tick still in flight and wait for both."""
        driver = self._driver
        self.stop()
        if self.tick_in_flight:
            self._in_flight.cancel()

        for task in (driver, self._in_flight):
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._in_flight = None

    async def _drive(self) -> None:
        while True:
            self.scheduler.run_pending()
            await asyncio.sleep(self.resolution_seconds)

    def _fire(self) -> None:
        if self.tick_in_flight:
            logger.debug("Previous poll tick still running, skipping this one")
            return
        self._in_flight = asyncio.get_event_loop().create_task(self._run_tick())

    async def _run_tick(self) -> None:
        try:
            await self._tick()
        except Exception as e:
            logger.error(f"Poll tick failed: {e}")
