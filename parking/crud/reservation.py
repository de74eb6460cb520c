from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional

from parking.models.reservation import Reservation, ReservationStatus
from parking.models.user import User


def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
    return db.query(Reservation).filter(Reservation.id == reservation_id).first()


def get_reservations(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    status: Optional[ReservationStatus] = None,
) -> List[Reservation]:
    query = db.query(Reservation)

    if user_id:
        query = query.filter(Reservation.user_id == user_id)
    if status:
        query = query.filter(Reservation.status == status)

    return query.order_by(Reservation.id).offset(skip).limit(limit).all()


def update_status_if_matches(
    db: Session,
    reservation_id: int,
    expected_status: ReservationStatus,
    new_status: ReservationStatus,
    **fields,
) -> int:
    """
    Compare-and-swap on the reservation status.

    Writes ``new_status`` (plus any extra column values in ``fields``) only if
    the stored status is still ``expected_status``. Does not commit.

    Returns:
        int: rows affected, 0 when the reservation already moved or is unknown
    """
    values = {Reservation.status: new_status, Reservation.updated_at: datetime.now()}
    for field, value in fields.items():
        values[getattr(Reservation, field)] = value

    return (
        db.query(Reservation)
        .filter(
            Reservation.id == reservation_id,
            Reservation.status == expected_status,
        )
        .update(values, synchronize_session=False)
    )


def get_late_preorders(db: Session, now: datetime, threshold_minutes: int):
    """
    Preorder reservations for today whose subscriber is at least
    ``threshold_minutes`` late, joined with the subscriber contact.

    Rows expose: id, user_id, spot_id, estimated_start_time, username, name, email
    """
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end_of_day = start_of_day + timedelta(days=1)
    cutoff = now - timedelta(minutes=threshold_minutes)

    return (
        db.query(
            Reservation.id,
            Reservation.user_id,
            Reservation.spot_id,
            Reservation.estimated_start_time,
            User.username,
            User.name,
            User.email,
        )
        .join(User, Reservation.user_id == User.id)
        .filter(Reservation.status == ReservationStatus.PREORDER)
        .filter(Reservation.spot_id.isnot(None))
        .filter(Reservation.estimated_start_time.isnot(None))
        .filter(Reservation.estimated_start_time >= start_of_day)
        .filter(Reservation.estimated_start_time < end_of_day)
        .filter(Reservation.estimated_start_time <= cutoff)
        .order_by(Reservation.estimated_start_time, Reservation.id)
        .all()
    )
