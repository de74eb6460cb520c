from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
import uvicorn

from parking.config import get_settings
from parking.database import Base, SessionLocal, engine
from parking.init_db import create_initial_spots
from parking.routers import auto_cancellation, reservations
from parking.services.notifier import CancellationNotifier
from parking.services.reconciler import LateReservationReconciler
from parking.services.scheduler import AutoCancellationScheduler
import parking.models  # noqa: F401  registers all tables on Base

settings = get_settings()

# Configure base logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("parking")


def build_scheduler(session_factory=SessionLocal) -> AutoCancellationScheduler:
    notifier = CancellationNotifier(workers=settings.notifier_workers)
    reconciler = LateReservationReconciler(
        session_factory,
        notifier=notifier,
        threshold_minutes=settings.late_threshold_minutes,
    )
    return AutoCancellationScheduler(
        reconciler,
        interval_seconds=settings.auto_cancel_interval_seconds,
        threshold_minutes=settings.late_threshold_minutes,
        stop_timeout_seconds=settings.auto_cancel_stop_timeout_seconds,
        notifier=notifier,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        create_initial_spots(db, settings.parking_spot_count)

    scheduler = build_scheduler()
    app.state.scheduler = scheduler

    if settings.auto_cancel_enabled:
        scheduler.start()
    else:
        logger.info("Auto-cancellation disabled (AUTO_CANCEL_ENABLED is false)")

    try:
        yield
    finally:
        scheduler.shutdown()


app = FastAPI(
    title="Parking Reservations API",
    description="Reservation lifecycle and automatic reclamation of late preorders",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)
app.include_router(
    auto_cancellation.router, prefix="/auto-cancellation", tags=["auto-cancellation"]
)


@app.get("/")
def read_root():
    return {"message": "Welcome to the Parking Reservations API"}


# Global unhandled exception handler -> logs ERROR
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error | path=%s | method=%s | client=%s",
        request.url.path,
        request.method,
        request.client.host if request.client else "unknown",
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


if __name__ == "__main__":
    uvicorn.run("parking.main:app", host="0.0.0.0", port=5009, reload=True)
