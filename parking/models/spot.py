from sqlalchemy import Column, Integer, Boolean
from sqlalchemy.orm import relationship

from parking.database import Base


class Spot(Base):
    __tablename__ = "parking_spots"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    is_occupied = Column(Boolean, nullable=False, default=False)

    # Relationships
    reservations = relationship(
        "parking.models.reservation.Reservation", back_populates="spot"
    )
