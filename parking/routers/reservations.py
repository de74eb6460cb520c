from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from parking.database import get_db
from parking.crud import reservation as crud
from parking.models.reservation import ReservationStatus as ReservationStatusModel
from parking.schemas.reservation import (
    CancelRequest,
    FinishRequest,
    Reservation,
    ReservationStatus,
    TransitionResponse,
)
from parking.services import lifecycle
from parking.services.transition_executor import (
    InvalidTransitionError,
    StorageFaultError,
    TransitionResult,
)

router = APIRouter()


def _to_response(result: TransitionResult) -> TransitionResponse:
    if result.applied:
        message = f"Reservation {result.to_status.value}"
    else:
        message = (
            f"Reservation {result.reservation_id} was not "
            f"{result.from_status.value if result.from_status else 'found'}, "
            f"nothing changed"
        )
    return TransitionResponse(
        reservation_id=result.reservation_id,
        applied=result.applied,
        from_status=result.from_status.value if result.from_status else None,
        to_status=result.to_status.value,
        released_spot_id=result.released_spot_id,
        message=message,
    )


def _run_transition(action, *args, **kwargs) -> TransitionResponse:
    try:
        return _to_response(action(*args, **kwargs))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageFaultError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/", response_model=List[Reservation])
def read_reservations(
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    status: Optional[ReservationStatus] = None,
    db: Session = Depends(get_db),
):
    return crud.get_reservations(
        db=db,
        skip=skip,
        limit=limit,
        user_id=user_id,
        status=ReservationStatusModel(status.value) if status else None,
    )


@router.get("/{reservation_id}", response_model=Reservation)
def read_reservation(reservation_id: int, db: Session = Depends(get_db)):
    db_reservation = crud.get_reservation(db=db, reservation_id=reservation_id)
    if db_reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return db_reservation


@router.post("/{reservation_id}/activate", response_model=TransitionResponse)
def activate_reservation(reservation_id: int, db: Session = Depends(get_db)):
    return _run_transition(lifecycle.activate_reservation, db, reservation_id)


@router.post("/{reservation_id}/finish", response_model=TransitionResponse)
def finish_reservation(
    reservation_id: int,
    request: Optional[FinishRequest] = None,
    db: Session = Depends(get_db),
):
    spot_id = request.spot_id if request else None
    return _run_transition(
        lifecycle.finish_reservation, db, reservation_id, spot_id=spot_id
    )


@router.post("/{reservation_id}/cancel", response_model=TransitionResponse)
def cancel_reservation(
    reservation_id: int,
    request: Optional[CancelRequest] = None,
    db: Session = Depends(get_db),
):
    expected_status = None
    spot_id = None
    if request:
        spot_id = request.spot_id
        if request.expected_status:
            expected_status = ReservationStatusModel(request.expected_status.value)

    return _run_transition(
        lifecycle.cancel_reservation,
        db,
        reservation_id,
        expected_status=expected_status,
        spot_id=spot_id,
    )
