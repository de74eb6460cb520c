"""
Atomic reservation state transitions.

Every status change of a reservation goes through :func:`transition`. A
transition is a single unit of work against the store:

1. conditional update of the reservation status (compare-and-swap on the
   stored status)
2. release of the spot when the reservation leaves ``preorder``/``active``
3. commit

When the conditional update matches no row the reservation already moved (or
does not exist): the unit is rolled back and the result reports
``applied=False``. That outcome is expected under concurrency and is never
raised as an error.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parking.crud import reservation as reservation_crud
from parking.crud import spot as spot_crud
from parking.models.reservation import ReservationStatus

logger = logging.getLogger(__name__)


# Allowed (source, target) edges of the reservation lifecycle
ALLOWED_TRANSITIONS = frozenset(
    {
        (ReservationStatus.PREORDER, ReservationStatus.ACTIVE),
        (ReservationStatus.PREORDER, ReservationStatus.CANCELLED),
        (ReservationStatus.ACTIVE, ReservationStatus.FINISHED),
        (ReservationStatus.ACTIVE, ReservationStatus.CANCELLED),
    }
)

# Targets that give the spot back
RELEASING_STATUSES = frozenset(
    {ReservationStatus.FINISHED, ReservationStatus.CANCELLED}
)

# Columns a transition may stamp alongside the status
STAMPABLE_FIELDS = frozenset({"actual_start_time", "actual_end_time"})


class InvalidTransitionError(ValueError):
    """The requested (source, target) pair is not a lifecycle edge."""


class StorageFaultError(RuntimeError):
    """The store failed mid-transition; the unit of work was rolled back."""

    def __init__(self, reservation_id: int, message: str):
        super().__init__(message)
        self.reservation_id = reservation_id


@dataclass(frozen=True)
class TransitionResult:
    reservation_id: int
    applied: bool
    from_status: Optional[ReservationStatus]
    to_status: ReservationStatus
    released_spot_id: Optional[int] = None


def validate_transition(
    expected_status: ReservationStatus, target_status: ReservationStatus
) -> None:
    if (expected_status, target_status) not in ALLOWED_TRANSITIONS:
        raise InvalidTransitionError(
            f"Cannot move a reservation from {expected_status.value} "
            f"to {target_status.value}"
        )


def transition(
    db: Session,
    reservation_id: int,
    expected_status: ReservationStatus,
    target_status: ReservationStatus,
    spot_id: Optional[int] = None,
    stamps: Optional[Dict[str, object]] = None,
) -> TransitionResult:
    """
    Move a reservation from ``expected_status`` to ``target_status``.

    Args:
        db: Session; any pending work in it is part of this unit
        reservation_id: Reservation to move
        expected_status: Status the reservation must still have
        target_status: New status
        spot_id: Spot to release; defaults to the reservation's assigned spot
        stamps: Extra columns written with the status (actual_start_time,
            actual_end_time)

    Returns:
        TransitionResult with ``applied=False`` when the reservation was no
        longer in ``expected_status``

    Raises:
        InvalidTransitionError: the pair is not a lifecycle edge
        StorageFaultError: the store failed, nothing was changed
    """
    validate_transition(expected_status, target_status)

    stamps = dict(stamps or {})
    unknown = set(stamps) - STAMPABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported transition fields: {sorted(unknown)}")

    releases_spot = target_status in RELEASING_STATUSES

    try:
        # 1. Conditional update: only wins if nobody moved the reservation first
        updated = reservation_crud.update_status_if_matches(
            db, reservation_id, expected_status, target_status, **stamps
        )

        if updated == 0:
            db.rollback()
            logger.info(
                f"Reservation {reservation_id} is no longer {expected_status.value}, "
                f"{target_status.value} not applied"
            )
            return TransitionResult(
                reservation_id=reservation_id,
                applied=False,
                from_status=expected_status,
                to_status=target_status,
            )

        # 2. Free the spot in the same unit of work
        released_spot_id = None
        if releases_spot:
            if spot_id is None:
                reservation = reservation_crud.get_reservation(db, reservation_id)
                spot_id = reservation.spot_id if reservation else None
            if spot_id is not None:
                spot_crud.release_spot(db, spot_id)
                released_spot_id = spot_id

        db.commit()

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Storage fault moving reservation {reservation_id} "
            f"{expected_status.value} -> {target_status.value}: {e}"
        )
        raise StorageFaultError(
            reservation_id,
            f"Transition of reservation {reservation_id} to "
            f"{target_status.value} failed and was rolled back",
        ) from e

    logger.info(
        f"Reservation {reservation_id}: {expected_status.value} -> "
        f"{target_status.value}"
        + (f", spot {released_spot_id} freed" if released_spot_id is not None else "")
    )
    return TransitionResult(
        reservation_id=reservation_id,
        applied=True,
        from_status=expected_status,
        to_status=target_status,
        released_spot_id=released_spot_id,
    )
