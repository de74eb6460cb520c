"""
Shared pytest configuration
"""
import os

# Point the application at SQLite before any parking module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTO_CANCEL_ENABLED", "false")

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parking.database import Base

# Import all models so SQLAlchemy can resolve the relationships
from parking.models.user import User
from parking.models.spot import Spot
from parking.models.reservation import Reservation, ReservationStatus


# In-memory database for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier:
    """Notifier double that records every cancellation notice"""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def notify_cancelled(self, recipient_contact, recipient_name, reservation_id):
        if self.fail:
            raise RuntimeError("SMTP unavailable")
        self.sent.append((recipient_contact, recipient_name, reservation_id))

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def db():
    """Create the test database and drop it afterwards"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db):
    """Session factory bound to the same in-memory database as ``db``"""
    return TestingSessionLocal


@pytest.fixture
def override_get_db(db):
    """Override of get_db for route tests"""
    def _get_db():
        try:
            yield db
        finally:
            pass
    return _get_db


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def subscriber(db):
    """Subscriber with full contact details"""
    user = User(
        id=1,
        username="jdoe",
        name="John Doe",
        email="jdoe@example.com",
        phone="555-0100",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_reservation(db, subscriber):
    """Factory: reservation holding an occupied spot"""

    def _make(
        reservation_id,
        spot_id,
        estimated_start_time,
        status=ReservationStatus.PREORDER,
        user_id=None,
    ):
        spot = db.get(Spot, spot_id)
        if spot is None:
            spot = Spot(id=spot_id, is_occupied=True)
            db.add(spot)
        else:
            spot.is_occupied = True

        reservation = Reservation(
            id=reservation_id,
            user_id=user_id or subscriber.id,
            spot_id=spot_id,
            status=status,
            estimated_start_time=estimated_start_time,
            actual_start_time=(
                estimated_start_time if status == ReservationStatus.ACTIVE else None
            ),
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation

    return _make


@pytest.fixture
def today():
    """Datetime on the current day at the given wall-clock time"""

    def _at(hour, minute=0):
        return datetime.now().replace(
            hour=hour, minute=minute, second=0, microsecond=0
        )

    return _at
