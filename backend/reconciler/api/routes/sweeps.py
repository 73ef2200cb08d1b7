"""Sweep Status — read-only view of the scheduler and the last reconciliation pass.

Invariants:
    - Routes never trigger a pass: the scheduler owns the cadence
    - 503 when the completion service is not running in this process
    - 404 from /last until the first pass has finished
"""

from fastapi import APIRouter, HTTPException, Request, status

from reconciler.core.errors import ResourceNotFoundError
from reconciler.schemas.sweep import (
    SchedulerStatusResponse, SweepReportResponse, SweepSummary,
)
from reconciler.services.event_completion_service import EventCompletionService

router = APIRouter(prefix="/api/v1/sweeps", tags=["sweeps"])


def _service(request: Request) -> EventCompletionService:
    service = getattr(request.app.state, "completion_service", None)
    if service is None:
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event completion service is not enabled",
        )
    return service


@router.get("/status", response_model=SchedulerStatusResponse)
async def sweep_status(request: Request):
    """Scheduler state plus the counters of the last pass."""
    service = _service(request)
    last = service.last_report
    return SchedulerStatusResponse(
        running=service.running,
        check_interval_seconds=service.scheduler.interval,
        completed_after_hours=service.completed_after_hours,
        passes_completed=service.passes_completed,
        last_pass=SweepSummary(**last.summary()) if last else None,
    )


@router.get("/last", response_model=SweepReportResponse)
async def last_sweep(request: Request):
    """Full report of the most recent pass."""
    service = _service(request)
    if service.last_report is None:
        raise ResourceNotFoundError("SweepReport", "last")
    return SweepReportResponse.from_report(service.last_report)
