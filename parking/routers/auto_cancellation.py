from fastapi import APIRouter, Depends, HTTPException, Request

from parking.schemas.reservation import ReconcileResponse, SchedulerStatusResponse
from parking.services.scheduler import AutoCancellationScheduler

router = APIRouter()


def get_scheduler(request: Request) -> AutoCancellationScheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=503, detail="Auto-cancellation service not initialized"
        )
    return scheduler


@router.get("/status", response_model=SchedulerStatusResponse)
def read_status(scheduler: AutoCancellationScheduler = Depends(get_scheduler)):
    return scheduler.status()


@router.post("/run", response_model=ReconcileResponse)
def run_now(scheduler: AutoCancellationScheduler = Depends(get_scheduler)):
    """
    Run one reconciliation pass immediately.

    Skipped when a pass is already in flight or when the pass failed; the
    failure is visible in /status.
    """
    result = scheduler.run_pass()
    if result is None:
        return ReconcileResponse(skipped=True)
    return ReconcileResponse(
        skipped=False,
        scanned_count=result.scanned_count,
        cancelled_count=result.cancelled_count,
        failed_count=result.failed_count,
        notified_count=result.notified_count,
    )
