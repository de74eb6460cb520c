from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
import logging

from parking.crud import reservation as reservation_crud
from parking.models.reservation import ReservationStatus, SPOT_HOLDING_STATUSES
from parking.services.transition_executor import TransitionResult, transition

logger = logging.getLogger(__name__)


def activate_reservation(
    db: Session, reservation_id: int, now: Optional[datetime] = None
) -> TransitionResult:
    """
    Subscriber with a preorder arrived: preorder -> active.

    Races with the automatic cancellation; whichever commits first wins and
    the other sees ``applied=False``.
    """
    return transition(
        db,
        reservation_id,
        ReservationStatus.PREORDER,
        ReservationStatus.ACTIVE,
        stamps={"actual_start_time": now or datetime.now()},
    )


def finish_reservation(
    db: Session,
    reservation_id: int,
    spot_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Subscriber left: active -> finished and the spot is freed."""
    return transition(
        db,
        reservation_id,
        ReservationStatus.ACTIVE,
        ReservationStatus.FINISHED,
        spot_id=spot_id,
        stamps={"actual_end_time": now or datetime.now()},
    )


def cancel_reservation(
    db: Session,
    reservation_id: int,
    expected_status: Optional[ReservationStatus] = None,
    spot_id: Optional[int] = None,
) -> TransitionResult:
    """
    Manual cancellation of a preorder or active reservation.

    No notification is sent; the caller reports the outcome to the
    subscriber directly.

    Args:
        db: Database session
        reservation_id: Reservation to cancel
        expected_status: preorder or active; when None the currently stored
            status is used if it can still be cancelled
        spot_id: Spot to release, defaults to the assigned one
    """
    if expected_status is None:
        reservation = reservation_crud.get_reservation(db, reservation_id)
        current = reservation.status if reservation else None
        # End the read so the conditional update starts its own unit of work
        db.rollback()

        if current not in SPOT_HOLDING_STATUSES:
            logger.info(
                f"Reservation {reservation_id} cannot be cancelled "
                f"(status: {current.value if current else 'not found'})"
            )
            return TransitionResult(
                reservation_id=reservation_id,
                applied=False,
                from_status=current,
                to_status=ReservationStatus.CANCELLED,
            )
        expected_status = current

    return transition(
        db,
        reservation_id,
        expected_status,
        ReservationStatus.CANCELLED,
        spot_id=spot_id,
    )
