"""Reconciliation Sweep — one pass over active events and their playlists.

Invariants:
    - Candidates are re-read at the start of every pass (new/running, not deleted)
    - Per event: all playlist pages drained, then playlists patched, then the event decided
    - The event decision uses the post-transition view of its playlists
    - Every write is conditional; a refused write is "already handled", not a failure
    - A failure on one record becomes a RecordResult + one ERROR log entry; the pass goes on
    - Nothing escapes run_pass except asyncio.CancelledError
    - Cancellation is observed before each event; an event in progress runs to the end
    - Store handles are scoped: one for the candidate list, one per event, always released

Design Decisions:
    - `now` captured once per pass: every decision in a pass uses the same clock reading
    - Bounded parallelism across events via Semaphore (default 1 = sequential);
      each event owns its own store handle, so sessions are never shared between tasks
    - Pages drained until an empty page: a short page is not trusted as the last one
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from reconciler.core.completion_policy import (
    should_complete_event, should_complete_playlist,
)
from reconciler.core.domain_types import (
    DEFAULT_PAGE_SIZE, EventId, EventSnapshot, EventStatus, PageRequest,
    PlaylistSnapshot,
)
from reconciler.core.errors import PreconditionFailedError, ReconcilerError
from reconciler.core.repository_protocols import StatusStore, StatusStoreScope
from reconciler.core.sweep_report import (
    EventResult, RecordKind, RecordResult, SweepReport,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationSweep:
    """Completes overdue playlists and the events whose playlists are all completed."""

    def __init__(
        self,
        store_scope: StatusStoreScope,
        grace_period: timedelta,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_concurrency: int = 1,
        clock: Callable[[], datetime] = utc_now,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._scope = store_scope
        self.grace_period = grace_period
        self._page_size = page_size
        self._max_concurrency = max_concurrency
        self._clock = clock

    async def run_pass(self, cancel: asyncio.Event | None = None) -> SweepReport:
        """Run one full pass. Returns the report; never raises for record failures."""
        now = self._clock()
        report = SweepReport(pass_id=uuid4().hex[:12], started_at=now)
        logger.info(
            "Reconciliation pass started at %s", now.isoformat(),
            extra={"pass_id": report.pass_id},
        )

        try:
            async with self._scope() as store:
                candidates = await store.list_active_events()
        except Exception as e:
            report.aborted_reason = f"{_error_code(e)}: {e}"
            logger.error(
                "Could not list candidate events, pass aborted: %s", e,
                extra={"pass_id": report.pass_id, "error_code": _error_code(e)},
                exc_info=not isinstance(e, ReconcilerError),
            )
            return self._finish(report)

        report.candidates = len(candidates)
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def guarded(event: EventSnapshot) -> EventResult | None:
            async with semaphore:
                if cancel is not None and cancel.is_set():
                    return None
                return await self._process_event(event, now, report.pass_id)

        outcomes = await asyncio.gather(*(guarded(ev) for ev in candidates))
        report.events = [r for r in outcomes if r is not None]
        report.cancelled = len(report.events) < len(candidates)
        if report.cancelled:
            logger.info(
                "Pass cancelled after %d of %d events",
                len(report.events), len(candidates),
                extra={"pass_id": report.pass_id},
            )
        return self._finish(report)

    # ─── Per event ───────────────────────────────────────────────

    async def _process_event(
        self, event: EventSnapshot, now: datetime, pass_id: str,
    ) -> EventResult:
        result = EventResult(event_id=str(event.id))
        try:
            async with self._scope() as store:
                await self._reconcile_event(store, event, now, pass_id, result)
        except Exception as e:
            # Handle could not be opened or released; writes already made stand.
            result.load_failure = self._failure(
                RecordKind.EVENT, str(event.id), e, pass_id, event_id=str(event.id),
            )
        return result

    async def _reconcile_event(
        self,
        store: StatusStore,
        event: EventSnapshot,
        now: datetime,
        pass_id: str,
        result: EventResult,
    ) -> None:
        try:
            playlists = await self._load_playlists(store, event.id)
        except Exception as e:
            result.load_failure = self._failure(
                RecordKind.EVENT, str(event.id), e, pass_id, event_id=str(event.id),
            )
            return

        for playlist in playlists:
            status = await self._reconcile_playlist(
                store, playlist, now, pass_id, result,
            )
            result.child_statuses.append(status)

        if not should_complete_event(result.child_statuses):
            return
        result.event, _ = await self._attempt(
            RecordKind.EVENT,
            lambda: store.patch_event_status(event.id, EventStatus.COMPLETED),
            pass_id,
            event_id=str(event.id),
        )

    async def _load_playlists(
        self, store: StatusStore, event_id: EventId,
    ) -> list[PlaylistSnapshot]:
        """Drain every page; duplicates across pages are dropped."""
        seen: dict[str, PlaylistSnapshot] = {}
        page = PageRequest(1, self._page_size)
        while True:
            batch = await store.list_playlists(event_id, page)
            if not batch:
                break
            for playlist in batch:
                seen.setdefault(str(playlist.id), playlist)
            page = page.next()
        return list(seen.values())

    async def _reconcile_playlist(
        self,
        store: StatusStore,
        playlist: PlaylistSnapshot,
        now: datetime,
        pass_id: str,
        result: EventResult,
    ) -> EventStatus:
        """Patch the playlist if overdue. Returns its latest known status."""
        if not should_complete_playlist(playlist, now, self.grace_period):
            return playlist.status
        record, latest = await self._attempt(
            RecordKind.PLAYLIST,
            lambda: store.patch_playlist_status(playlist.id, EventStatus.COMPLETED),
            pass_id,
            event_id=str(playlist.event_id),
            playlist_id=str(playlist.id),
        )
        result.playlists.append(record)
        return latest or playlist.status

    # ─── Per-record boundary ─────────────────────────────────────

    async def _attempt(
        self,
        kind: RecordKind,
        write: Callable[[], Awaitable[EventSnapshot | PlaylistSnapshot]],
        pass_id: str,
        event_id: str,
        playlist_id: str | None = None,
    ) -> tuple[RecordResult, EventStatus | None]:
        """Run one conditional write; convert its outcome into a RecordResult."""
        record_id = playlist_id if kind == RecordKind.PLAYLIST else event_id
        extra = {"pass_id": pass_id, "event_id": event_id, "playlist_id": playlist_id}
        try:
            snapshot = await write()
        except PreconditionFailedError as e:
            logger.info(
                "%s %s already handled elsewhere (status=%s)",
                kind.value, record_id, e.current_status,
                extra={**extra, "error_code": e.code, "outcome": "already_handled"},
            )
            return (
                RecordResult.already_handled(kind, record_id, e.message),
                _known_status(e.current_status),
            )
        except Exception as e:
            return self._failure(kind, record_id, e, pass_id, event_id, playlist_id), None

        logger.debug(
            "%s %s completed", kind.value, record_id,
            extra={**extra, "outcome": "completed"},
        )
        return RecordResult.completed(kind, record_id), snapshot.status

    @staticmethod
    def _failure(
        kind: RecordKind,
        record_id: str,
        error: Exception,
        pass_id: str,
        event_id: str,
        playlist_id: str | None = None,
    ) -> RecordResult:
        """Log exactly one ERROR entry for a failed record and return its result."""
        code = _error_code(error)
        extra = error.to_log_extra() if isinstance(error, ReconcilerError) else {}
        extra.update(
            pass_id=pass_id, event_id=event_id, error_code=code, outcome="failed",
        )
        if playlist_id is not None:
            extra["playlist_id"] = playlist_id
        logger.error(
            "Failed to reconcile %s %s: %s", kind.value, record_id, error,
            extra=extra,
            exc_info=not isinstance(error, ReconcilerError),
        )
        return RecordResult.failed(kind, record_id, code, str(error))

    def _finish(self, report: SweepReport) -> SweepReport:
        report.finished_at = self._clock()
        summary = report.summary()
        logger.info(
            "Reconciliation pass finished: %d events completed, %d playlists completed, "
            "%d failures",
            summary["events_completed"], summary["playlists_completed"],
            summary["failures"],
            extra={
                "pass_id": report.pass_id,
                "candidates": summary["candidates"],
                "events_completed": summary["events_completed"],
                "playlists_completed": summary["playlists_completed"],
                "failures": summary["failures"],
                "duration_ms": summary["duration_ms"],
            },
        )
        return report


def _error_code(error: Exception) -> str:
    if isinstance(error, ReconcilerError):
        return error.code
    return "INTERNAL_ERROR"


def _known_status(value: str | None) -> EventStatus | None:
    try:
        return EventStatus(value) if value is not None else None
    except ValueError:
        return None
