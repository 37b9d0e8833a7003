"""Pydantic schemas for API validation."""

from app.schemas.booking import (
    AssignTaxiRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
    FareCalculationRequest,
    ReviewRequest,
)
from app.schemas.fare_route import (
    FareQuoteResponse,
    FareRouteCreate,
    FareRouteResponse,
    FareRouteUpdate,
    LocationOption,
)
from app.schemas.taxi import (
    TaxiCreate,
    TaxiResponse,
    TaxiUpdate,
)
from app.schemas.user import (
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # User
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "UserResponse",
    "TokenResponse",
    # Taxi
    "TaxiCreate",
    "TaxiUpdate",
    "TaxiResponse",
    # Fare catalog
    "FareRouteCreate",
    "FareRouteUpdate",
    "FareRouteResponse",
    "FareQuoteResponse",
    "LocationOption",
    # Booking
    "BookingCreate",
    "BookingUpdate",
    "BookingStatusUpdate",
    "AssignTaxiRequest",
    "ReviewRequest",
    "FareCalculationRequest",
    "BookingResponse",
    "BookingListResponse",
]
