"""Sweep Schemas — public view of scheduler state and pass reports.

Invariants:
    - Responses expose ids, outcomes, and error codes; never raw exception text beyond detail
    - from_report() is the single mapping from SweepReport to the API shape
"""

from datetime import datetime

from pydantic import BaseModel

from reconciler.core.sweep_report import RecordResult, SweepReport


class RecordResultResponse(BaseModel):
    kind: str
    record_id: str
    outcome: str
    error_code: str | None = None
    detail: str | None = None

    @classmethod
    def from_result(cls, result: RecordResult) -> "RecordResultResponse":
        return cls(
            kind=result.kind.value,
            record_id=result.record_id,
            outcome=result.outcome.value,
            error_code=result.error_code,
            detail=result.detail,
        )


class SweepSummary(BaseModel):
    """Counters for one pass."""
    pass_id: str
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int | None = None
    candidates: int
    events_processed: int
    events_completed: int
    playlists_completed: int
    already_handled: int
    failures: int
    cancelled: bool
    aborted_reason: str | None = None


class SweepReportResponse(SweepSummary):
    """Counters plus every write attempt of the pass."""
    results: list[RecordResultResponse]

    @classmethod
    def from_report(cls, report: SweepReport) -> "SweepReportResponse":
        return cls(
            **report.summary(),
            results=[RecordResultResponse.from_result(r) for r in report.results],
        )


class SchedulerStatusResponse(BaseModel):
    running: bool
    check_interval_seconds: float
    completed_after_hours: float
    passes_completed: int
    last_pass: SweepSummary | None = None
