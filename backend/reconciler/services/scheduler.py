"""Scheduler — fixed-interval tick loop with cooperative stop.

Invariants:
    - Interval must be finite and > 0, checked at construction (ConfigurationError)
    - First tick fires one interval after run() starts
    - Ticks never overlap or queue: a tick that overruns the interval is followed
      immediately by the next one, and the cadence restarts from there
    - request_stop() ends the loop after the tick in progress; it never interrupts it
    - A stopped scheduler runs again only after reset()
    - The stop signal is handed to each tick so work can stop at its own safe points
    - An exception from a tick is logged and the loop keeps its cadence

Design Decisions:
    - Explicit value owning its interval and stop event: no module-level timer state,
      two schedulers in one process never interfere
    - loop.time() (monotonic) for cadence: wall-clock jumps do not bunch up ticks
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

from reconciler.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

Tick = Callable[[asyncio.Event], Awaitable[Any]]


class Scheduler:
    """Runs a tick callback every `interval_seconds` until stopped."""

    def __init__(self, interval_seconds: float, name: str = "scheduler"):
        if not isinstance(interval_seconds, (int, float)) or isinstance(
            interval_seconds, bool,
        ):
            raise ConfigurationError(
                f"expected seconds as a number, got {interval_seconds!r}",
                "check_interval",
            )
        if not math.isfinite(interval_seconds) or interval_seconds <= 0:
            raise ConfigurationError(
                f"must be a positive number of seconds, got {interval_seconds}",
                "check_interval",
            )
        self.interval = float(interval_seconds)
        self.name = name
        self._stop = asyncio.Event()
        self._running = False
        self.ticks_completed = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Ask the loop to exit once the current tick (if any) has finished."""
        self._stop.set()

    def reset(self) -> None:
        """Clear an earlier stop request so run() can start again."""
        if self._running:
            raise RuntimeError(f"{self.name} is already running")
        self._stop.clear()

    async def run(self, tick: Tick) -> None:
        """Block until request_stop(); call `tick(stop_event)` once per interval."""
        loop = asyncio.get_running_loop()
        self._running = True
        next_tick = loop.time() + self.interval
        logger.info(
            "%s started (interval %.3fs)", self.name, self.interval,
            extra={"interval_seconds": self.interval},
        )
        try:
            while not self._stop.is_set():
                delay = next_tick - loop.time()
                if delay > 0 and await self._stopped_within(delay):
                    break
                try:
                    await tick(self._stop)
                except Exception:
                    logger.error("%s tick failed", self.name, exc_info=True)
                self.ticks_completed += 1

                now = loop.time()
                next_tick += self.interval
                if next_tick <= now:
                    next_tick = now
        finally:
            self._running = False
            logger.info("%s stopped after %d ticks", self.name, self.ticks_completed)

    async def _stopped_within(self, delay: float) -> bool:
        """Wait up to `delay` seconds; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True
