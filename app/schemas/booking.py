"""Booking-related Pydantic schemas."""

import datetime as dt
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.validators import validate_phone


class CustomerInfo(BaseModel):
    """Who is travelling."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    kakao_id: str | None = Field(None, max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not validate_phone(v):
            raise ValueError("Phone must contain 7-15 digits")
        return v


class ServiceInfo(BaseModel):
    type: str = Field(default="airport", pattern="^(airport|taxi|charter)$")
    region: str | None = Field(None, max_length=20)

    @field_validator("region")
    @classmethod
    def normalize_region(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip().upper() or None


class TripPoint(BaseModel):
    location: str = Field(..., min_length=1, max_length=200)
    datetime: dt.datetime | None = None


class TripDetails(BaseModel):
    """Departure and arrival of the transfer; the departure time is the pickup time."""

    departure: TripPoint
    arrival: TripPoint

    @field_validator("departure")
    @classmethod
    def require_pickup_time(cls, v: TripPoint) -> TripPoint:
        if v.datetime is None:
            raise ValueError("Departure datetime is required")
        return v


class VehicleItem(BaseModel):
    """One requested vehicle line item."""

    model_config = ConfigDict(from_attributes=True)

    type: str = Field(default="standard", pattern="^(standard|xl|premium)$")
    passengers: int = Field(default=1, ge=1, le=8)
    luggage: int = Field(default=0, ge=0, le=20)


class PassengerInfo(BaseModel):
    total_passengers: int = Field(..., ge=1, le=50)
    total_luggage: int = Field(default=0, ge=0, le=100)


class FlightInfo(BaseModel):
    flight_number: str = Field(..., min_length=2, max_length=20)
    terminal: str | None = Field(None, max_length=20)


class BookingCreate(BaseModel):
    """Schema for creating a booking.

    Pricing is always computed server-side from the fare catalog; the
    optional ``taxi_id`` pre-assigns a vehicle and confirms the booking.
    """

    customer_info: CustomerInfo
    service_info: ServiceInfo = Field(default_factory=ServiceInfo)
    trip_details: TripDetails
    vehicles: list[VehicleItem] = Field(..., min_length=1, max_length=10)
    passenger_info: PassengerInfo | None = None
    flight_info: FlightInfo | None = None
    payment_method: str = Field(default="card", pattern="^(cash|card|app)$")
    special_requests: str | None = Field(None, max_length=500)
    taxi_id: UUID | None = None
    lang: str = Field(default="kor", pattern="^(kor|eng)$")


class FareCalculationRequest(BaseModel):
    """Schema for pricing a trip without booking it."""

    departure: str = Field(..., min_length=1, max_length=200)
    arrival: str = Field(..., min_length=1, max_length=200)
    lang: str = Field(default="kor", pattern="^(kor|eng)$")
    region: str | None = Field(None, max_length=20)
    vehicles: list[VehicleItem] = Field(default_factory=lambda: [VehicleItem()], max_length=10)

    @field_validator("region")
    @classmethod
    def normalize_region(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip().upper() or None


class BookingUpdate(BaseModel):
    """Schema for editing a pending booking.

    Only these fields are mutable before confirmation.
    """

    model_config = ConfigDict(extra="forbid")

    pickup_location: str | None = Field(None, min_length=1, max_length=200)
    dropoff_location: str | None = Field(None, min_length=1, max_length=200)
    pickup_time: datetime | None = None
    special_requests: str | None = Field(None, max_length=500)


class BookingStatusUpdate(BaseModel):
    """Schema for a status transition; accepts ``cancelReason`` as well."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., pattern="^(pending|confirmed|in-progress|completed|cancelled)$")
    cancel_reason: str | None = Field(None, max_length=500, alias="cancelReason")

    @model_validator(mode="after")
    def require_cancel_reason(self) -> "BookingStatusUpdate":
        if self.status == "cancelled" and not (self.cancel_reason and self.cancel_reason.strip()):
            raise ValueError("cancel_reason is required when cancelling")
        return self


class AssignTaxiRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    taxi_id: UUID = Field(..., alias="taxiId")


class ReviewRequest(BaseModel):
    """Schema for submitting a review on a completed booking."""

    rating: int = Field(..., ge=1, le=5)
    review: str | None = Field(None, max_length=500)


class PricingResponse(BaseModel):
    reservation_fee: int
    service_fee: int
    vehicle_upgrade_fee: int
    total_amount: int
    currency: str
    fare_source: str


class FareCalculationResponse(BaseModel):
    """Schema for a priced trip."""

    pricing: PricingResponse
    route_id: int | None
    match_type: str


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    customer_id: UUID | None
    taxi_id: UUID | None
    route_id: int | None

    customer_info: CustomerInfo
    service_info: ServiceInfo
    trip_details: TripDetails
    vehicles: list[VehicleItem]
    passenger_info: PassengerInfo
    flight_info: FlightInfo | None
    pricing: PricingResponse

    # Status
    status: str
    cancel_reason: str | None

    # Review
    rating: int | None
    review: str | None
    reviewed_at: datetime | None

    # Payment
    payment_method: str
    is_paid: bool

    special_requests: str | None

    # Timestamps
    confirmed_at: datetime | None
    cancelled_at: datetime | None
    actual_pickup_time: datetime | None
    actual_dropoff_time: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    total: int
    page: int
    limit: int
    pages: int


class BookingStatusStats(BaseModel):
    count: int
    total_amount: int


class BookingStatsResponse(BaseModel):
    """Schema for the admin booking overview."""

    total: int
    today: int
    by_status: dict[str, BookingStatusStats]
