"""Event Completion Service — lifecycle boundary between the host and the sweep.

Invariants:
    - start() launches exactly one scheduler task; calling it twice is a no-op
    - A stopped service can be started again
    - stop() lets the in-flight pass finish before returning (unless the timeout expires,
      in which case the task is cancelled and a warning logged)
    - Passes never overlap, including run_once() during a scheduled pass
    - Configuration is read once, in from_settings(); invalid values raise ConfigurationError
    - last_report is replaced after each pass; no other state survives between passes

Design Decisions:
    - Scheduler and sweep injected: tests drive them with fakes and tiny intervals
    - Pass task shielded in stop(): cancelling the host's shutdown wait never aborts a write
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from reconciler.config import Settings
from reconciler.core.completion_policy import grace_period_from_hours
from reconciler.core.errors import ConfigurationError
from reconciler.core.repository_protocols import StatusStoreScope
from reconciler.core.sweep_report import SweepReport
from reconciler.services.reconciliation_sweep import ReconciliationSweep, utc_now
from reconciler.services.scheduler import Scheduler

logger = logging.getLogger(__name__)


class EventCompletionService:
    """Runs the reconciliation sweep on a fixed cadence for the hosting process."""

    def __init__(self, sweep: ReconciliationSweep, scheduler: Scheduler):
        self.sweep = sweep
        self.scheduler = scheduler
        self.last_report: SweepReport | None = None
        self.passes_completed = 0
        self._task: asyncio.Task | None = None
        self._pass_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store_scope: StatusStoreScope,
        clock: Callable[[], datetime] = utc_now,
    ) -> "EventCompletionService":
        try:
            grace = grace_period_from_hours(settings.event_completed_after_hours)
        except ValueError as e:
            raise ConfigurationError(str(e), "event_completed_after_hours") from e
        sweep = ReconciliationSweep(
            store_scope,
            grace_period=grace,
            page_size=settings.event_playlist_page_size,
            max_concurrency=settings.event_sweep_max_concurrency,
            clock=clock,
        )
        scheduler = Scheduler(
            settings.event_check_interval_seconds, name="Event completion sweep",
        )
        return cls(sweep, scheduler)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def completed_after_hours(self) -> float:
        return self.sweep.grace_period.total_seconds() / 3600

    async def start(self) -> None:
        if self.running:
            logger.warning("Event completion service already running")
            return
        self.scheduler.reset()
        self._task = asyncio.create_task(
            self.scheduler.run(self._tick), name="event-completion-sweep",
        )
        self._task.add_done_callback(self._on_task_done)

    async def stop(self, timeout: float | None = None) -> None:
        """Request stop and wait for the current pass to finish."""
        logger.info("Periodic event check service is stopping.")
        self.scheduler.request_stop()
        if self._task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Event completion service did not stop within %.1fs, cancelling",
                timeout,
            )
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None

    async def run_once(self) -> SweepReport:
        """Run a single pass outside the scheduler (maintenance scripts, tests)."""
        return await self._tick(asyncio.Event())

    async def _tick(self, cancel: asyncio.Event) -> SweepReport:
        async with self._pass_lock:
            report = await self.sweep.run_pass(cancel)
            self.last_report = report
            self.passes_completed += 1
        return report

    @staticmethod
    def _on_task_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Event completion scheduler crashed", exc_info=exc,
            )
