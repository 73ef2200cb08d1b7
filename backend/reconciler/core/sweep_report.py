"""Sweep Report — per-record results collected into a pass-level report.

Invariants:
    - Every write attempt produces exactly one RecordResult (completed, already_handled, failed)
    - Skipped records (not eligible) produce no RecordResult
    - EventResult.child_statuses is the post-transition view used for the event decision
    - SweepReport counters are derived from results, never tracked separately
    - Pure dataclasses: no IO, built by the sweep, read by logs and the API

Design Decisions:
    - Result values over control-flow exceptions: a failed record is data in the report,
      so one bad row never unwinds the pass
    - already_handled is not a failure: another actor got there first
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from reconciler.core.domain_types import EventStatus


class RecordKind(str, Enum):
    EVENT = "event"
    PLAYLIST = "playlist"


class RecordOutcome(str, Enum):
    """What happened to one write attempt."""
    COMPLETED = "completed"
    ALREADY_HANDLED = "already_handled"
    FAILED = "failed"


@dataclass(frozen=True)
class RecordResult:
    """Outcome of one conditional write (or of reading one event's playlists)."""
    kind: RecordKind
    record_id: str
    outcome: RecordOutcome
    error_code: str | None = None
    detail: str | None = None

    @property
    def is_failure(self) -> bool:
        return self.outcome == RecordOutcome.FAILED

    @classmethod
    def completed(cls, kind: RecordKind, record_id: str) -> "RecordResult":
        return cls(kind, record_id, RecordOutcome.COMPLETED)

    @classmethod
    def already_handled(
        cls, kind: RecordKind, record_id: str, detail: str | None = None,
    ) -> "RecordResult":
        return cls(
            kind, record_id, RecordOutcome.ALREADY_HANDLED,
            "PRECONDITION_FAILED", detail,
        )

    @classmethod
    def failed(
        cls, kind: RecordKind, record_id: str, error_code: str, detail: str,
    ) -> "RecordResult":
        return cls(kind, record_id, RecordOutcome.FAILED, error_code, detail)


@dataclass
class EventResult:
    """Everything one pass did for one event."""
    event_id: str
    playlists: list[RecordResult] = field(default_factory=list)
    child_statuses: list[EventStatus] = field(default_factory=list)
    event: RecordResult | None = None
    # Set when the playlists could not be read; the event is then left alone.
    load_failure: RecordResult | None = None

    @property
    def results(self) -> list[RecordResult]:
        out = list(self.playlists)
        if self.load_failure is not None:
            out.append(self.load_failure)
        if self.event is not None:
            out.append(self.event)
        return out

    @property
    def event_completed(self) -> bool:
        return (
            self.event is not None
            and self.event.outcome == RecordOutcome.COMPLETED
        )


@dataclass
class SweepReport:
    """Pass-level report: what one reconciliation pass read, wrote, and failed."""
    pass_id: str
    started_at: datetime
    finished_at: datetime | None = None
    candidates: int = 0
    events: list[EventResult] = field(default_factory=list)
    cancelled: bool = False
    # Set when the candidate list itself could not be read.
    aborted_reason: str | None = None

    @property
    def results(self) -> list[RecordResult]:
        return [r for ev in self.events for r in ev.results]

    @property
    def events_processed(self) -> int:
        return len(self.events)

    @property
    def events_completed(self) -> int:
        return sum(1 for ev in self.events if ev.event_completed)

    @property
    def playlists_completed(self) -> int:
        return sum(
            1 for r in self.results
            if r.kind == RecordKind.PLAYLIST and r.outcome == RecordOutcome.COMPLETED
        )

    @property
    def writes(self) -> int:
        """Successful status writes this pass."""
        return sum(1 for r in self.results if r.outcome == RecordOutcome.COMPLETED)

    @property
    def already_handled(self) -> int:
        return sum(
            1 for r in self.results if r.outcome == RecordOutcome.ALREADY_HANDLED
        )

    @property
    def failures(self) -> list[RecordResult]:
        return [r for r in self.results if r.is_failure]

    @property
    def duration_ms(self) -> int | None:
        if self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def summary(self) -> dict:
        """Flat counters for logging and the status endpoint."""
        return {
            "pass_id": self.pass_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": (
                self.finished_at.isoformat() if self.finished_at else None
            ),
            "duration_ms": self.duration_ms,
            "candidates": self.candidates,
            "events_processed": self.events_processed,
            "events_completed": self.events_completed,
            "playlists_completed": self.playlists_completed,
            "already_handled": self.already_handled,
            "failures": len(self.failures),
            "cancelled": self.cancelled,
            "aborted_reason": self.aborted_reason,
        }
