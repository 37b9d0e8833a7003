"""Database models."""

from app.models.booking import Booking, BookingVehicle
from app.models.fare_route import FareRoute
from app.models.taxi import Taxi
from app.models.user import User

__all__ = [
    # User
    "User",
    # Taxi
    "Taxi",
    # Fare catalog
    "FareRoute",
    # Booking
    "Booking",
    "BookingVehicle",
]
