"""Fare catalog Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.fare_route import DEFAULT_PRIORITY
from app.utils.validators import normalize_region, parse_airport_flag


class Waypoint(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class FareRouteBase(BaseModel):
    """Catalog row as imported from spreadsheets or JSON exports."""

    region: str = Field(..., min_length=1, max_length=20)
    departure_kor: str = Field(..., min_length=1, max_length=200)
    departure_eng: str = Field(..., min_length=1, max_length=200)
    departure_is_airport: bool = False
    arrival_kor: str = Field(..., min_length=1, max_length=200)
    arrival_eng: str = Field(..., min_length=1, max_length=200)
    arrival_is_airport: bool = False
    reservation_fee: int = Field(..., ge=0)
    local_payment_fee: int = Field(..., ge=0)
    priority: int = Field(default=DEFAULT_PRIORITY, ge=0)

    # Optional corridor geography
    departure_lat: float | None = Field(None, ge=-90, le=90)
    departure_lng: float | None = Field(None, ge=-180, le=180)
    arrival_lat: float | None = Field(None, ge=-90, le=90)
    arrival_lng: float | None = Field(None, ge=-180, le=180)
    waypoints: list[Waypoint] | None = None
    estimated_minutes: int | None = Field(None, ge=0)
    estimated_distance_km: float | None = Field(None, ge=0)

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        region = normalize_region(v)
        if not region:
            raise ValueError("Region is required")
        return region

    @field_validator("departure_is_airport", "arrival_is_airport", mode="before")
    @classmethod
    def validate_airport_flag(cls, v: Any) -> bool:
        return parse_airport_flag(v)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Any:
        if v is None or v == "":
            return DEFAULT_PRIORITY
        return v

    @field_validator("departure_kor", "departure_eng", "arrival_kor", "arrival_eng")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Location name must not be blank")
        return v


class FareRouteCreate(FareRouteBase):
    """Schema for creating a single catalog row."""


class FareRouteUpdate(BaseModel):
    """Schema for editing a catalog row (admin only)."""

    reservation_fee: int | None = Field(None, ge=0)
    local_payment_fee: int | None = Field(None, ge=0)
    priority: int | None = Field(None, ge=0)
    is_active: bool | None = None
    departure_is_airport: bool | None = None
    arrival_is_airport: bool | None = None
    departure_lat: float | None = Field(None, ge=-90, le=90)
    departure_lng: float | None = Field(None, ge=-180, le=180)
    arrival_lat: float | None = Field(None, ge=-90, le=90)
    arrival_lng: float | None = Field(None, ge=-180, le=180)
    waypoints: list[Waypoint] | None = None
    estimated_minutes: int | None = Field(None, ge=0)
    estimated_distance_km: float | None = Field(None, ge=0)

    @field_validator("reservation_fee", "local_payment_fee", "priority", "is_active")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Value must not be null")
        return v

    @field_validator("departure_is_airport", "arrival_is_airport", mode="before")
    @classmethod
    def validate_airport_flag(cls, v: Any) -> bool:
        if v is None:
            raise ValueError("Value must not be null")
        return parse_airport_flag(v)


class FareRouteBulkImport(BaseModel):
    """Schema for bulk catalog import."""

    items: list[FareRouteCreate] = Field(..., min_length=1, max_length=5000)
    clear_existing: bool = False


class FareRoutePurgeRequest(BaseModel):
    """Irreversible wipe of the whole catalog; requires an explicit confirmation token."""

    confirm: str = Field(..., pattern="^DELETE_ALL$")


class FareRouteResponse(BaseModel):
    """Schema for catalog row response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    region: str
    departure_kor: str
    departure_eng: str
    departure_is_airport: bool
    arrival_kor: str
    arrival_eng: str
    arrival_is_airport: bool
    reservation_fee: int
    local_payment_fee: int
    total_fee: int
    priority: int
    is_active: bool
    departure_lat: float | None
    departure_lng: float | None
    arrival_lat: float | None
    arrival_lng: float | None
    waypoints: list[Waypoint] | None
    estimated_minutes: int | None
    estimated_distance_km: float | None
    created_at: datetime
    updated_at: datetime


class NearbyRouteResponse(FareRouteResponse):
    distance_m: float


class FareRouteListResponse(BaseModel):
    """Schema for paginated catalog list."""

    items: list[FareRouteResponse]
    total: int
    page: int
    limit: int
    pages: int


class FareQuoteResponse(BaseModel):
    """Result of resolving a corridor to its fees."""

    reservation_fee: int
    local_payment_fee: int
    total: int
    match_type: str  # exact, kor_partial, eng_partial, default
    is_default: bool
    route: FareRouteResponse | None = None
    candidates: list[FareRouteResponse] = []


class LocationOption(BaseModel):
    """Distinct departure or arrival name for selection lists."""

    name_kor: str
    name_eng: str
    is_airport: bool


class RegionStats(BaseModel):
    region: str
    count: int
    avg_reservation_fee: float
    avg_local_payment_fee: float
    airport_departures: int
    airport_arrivals: int


class CatalogImportResult(BaseModel):
    imported: int
    cleared: int = 0


class CatalogPurgeResult(BaseModel):
    deleted: int
