from sqlalchemy.orm import Session
from parking.crud import spot as spot_crud
from parking.models.spot import Spot
import logging

logger = logging.getLogger(__name__)


def create_initial_spots(db: Session, count: int) -> int:
    """
    Create spots 1..count, all free, if the spots table is empty.
    """
    if count <= 0:
        return 0

    if spot_crud.count_spots(db) > 0:
        logger.info("Parking spots already exist, skipping initial spots.")
        return 0

    for spot_id in range(1, count + 1):
        db.add(Spot(id=spot_id, is_occupied=False))

    db.commit()
    logger.info(f"Created {count} parking spots")
    return count
