"""Taxi-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def check_coordinates(v: list[float]) -> list[float]:
    lng, lat = v
    if not -180 <= lng <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    if not -90 <= lat <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    return v


class Location(BaseModel):
    """GeoJSON point, coordinates are [lng, lat]."""

    type: str = Field(default="Point", pattern="^Point$")
    coordinates: list[float] = Field(..., min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: list[float]) -> list[float]:
        return check_coordinates(v)


class TaxiBase(BaseModel):
    """Base taxi schema."""

    taxi_number: str = Field(..., min_length=1, max_length=20)
    driver_name: str = Field(..., min_length=1, max_length=50)
    license_number: str = Field(..., min_length=1, max_length=20)
    model: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., min_length=1, max_length=30)
    year: int = Field(..., ge=2000, le=2100)
    capacity: int = Field(..., ge=1, le=8)


class TaxiCreate(TaxiBase):
    """Schema for registering a taxi (admin only)."""

    driver_id: UUID | None = None
    status: str = Field(default="offline", pattern="^(available|busy|offline)$")
    current_location: Location | None = None


class TaxiUpdate(BaseModel):
    """Schema for updating a taxi."""

    model: str | None = Field(None, min_length=1, max_length=50)
    color: str | None = Field(None, min_length=1, max_length=30)
    capacity: int | None = Field(None, ge=1, le=8)
    status: str | None = Field(None, pattern="^(available|busy|offline)$")
    current_location: Location | None = None


class TaxiLocationUpdate(BaseModel):
    coordinates: list[float] = Field(..., min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: list[float]) -> list[float]:
        return check_coordinates(v)


class TaxiStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(available|busy|offline)$")


class TaxiResponse(BaseModel):
    """Schema for taxi response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    taxi_number: str
    driver_name: str
    driver_id: UUID | None
    license_number: str
    model: str
    color: str
    year: int
    capacity: int
    status: str
    current_location: Location
    last_update: datetime
    rating: float
    total_trips: int
    created_at: datetime


class NearbyTaxiResponse(TaxiResponse):
    distance_m: float | None = None


class TaxiListResponse(BaseModel):
    """Schema for paginated taxi list."""

    taxis: list[TaxiResponse]
    total: int
    page: int
    limit: int


class TaxiStatsResponse(BaseModel):
    total: int
    by_status: dict[str, int]
    average_rating: float | None
