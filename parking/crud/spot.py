from sqlalchemy.orm import Session
from typing import Optional

from parking.models.spot import Spot


def get_spot(db: Session, spot_id: int) -> Optional[Spot]:
    return db.query(Spot).filter(Spot.id == spot_id).first()


def count_spots(db: Session) -> int:
    return db.query(Spot).count()


def release_spot(db: Session, spot_id: int) -> int:
    """Clear the occupied flag without committing. Returns rows affected."""
    return (
        db.query(Spot)
        .filter(Spot.id == spot_id)
        .update({Spot.is_occupied: False}, synchronize_session=False)
    )
