from parking.models.user import User
from parking.models.spot import Spot
from parking.models.reservation import Reservation, ReservationStatus

# This makes the models directory a Python package and ensures all models are loaded
