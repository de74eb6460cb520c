from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from parking.database import Base


class ReservationStatus(str, enum.Enum):
    PREORDER = "preorder"  # Booked in advance, spot held until arrival
    ACTIVE = "active"  # Subscriber is parked
    FINISHED = "finished"  # Subscriber left, spot released
    CANCELLED = "cancelled"  # Manually or automatically cancelled, spot released


# Statuses in which a reservation holds its spot
SPOT_HOLDING_STATUSES = (ReservationStatus.PREORDER, ReservationStatus.ACTIVE)


class Reservation(Base):
    __tablename__ = "parking_info"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    spot_id = Column(Integer, ForeignKey("parking_spots.id"), nullable=True)
    status = Column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ReservationStatus.PREORDER,
        index=True,
    )
    estimated_start_time = Column(DateTime, nullable=True, index=True)
    actual_start_time = Column(DateTime, nullable=True)
    actual_end_time = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("parking.models.user.User", back_populates="reservations")
    spot = relationship("parking.models.spot.Spot", back_populates="reservations")
