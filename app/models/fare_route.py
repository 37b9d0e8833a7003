"""Fare catalog model: one priced departure/arrival corridor."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow

if TYPE_CHECKING:
    from app.models.booking import Booking

DEFAULT_PRIORITY = 99


class FareRoute(Base):
    """Catalog corridor with fixed fees and optional geography.

    Integer keys keep insertion order available as the tie-breaker
    for rows sharing a priority.
    """

    __tablename__ = "fare_routes"
    __table_args__ = (
        Index("ix_fare_routes_region_priority", "region", "priority"),
        Index("ix_fare_routes_kor_pair", "departure_kor", "arrival_kor"),
        Index("ix_fare_routes_eng_pair", "departure_eng", "arrival_eng"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    region: Mapped[str] = mapped_column(String(20), nullable=False)  # upper-cased, e.g. NY

    departure_kor: Mapped[str] = mapped_column(String(200), nullable=False)
    departure_eng: Mapped[str] = mapped_column(String(200), nullable=False)
    departure_is_airport: Mapped[bool] = mapped_column(Boolean, default=False)
    arrival_kor: Mapped[str] = mapped_column(String(200), nullable=False)
    arrival_eng: Mapped[str] = mapped_column(String(200), nullable=False)
    arrival_is_airport: Mapped[bool] = mapped_column(Boolean, default=False)

    # Fees in whole currency units
    reservation_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    local_payment_fee: Mapped[int] = mapped_column(Integer, nullable=False)

    priority: Mapped[int] = mapped_column(Integer, default=DEFAULT_PRIORITY)  # lower = more prominent
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Optional corridor geography
    departure_lat: Mapped[float | None] = mapped_column(Float)
    departure_lng: Mapped[float | None] = mapped_column(Float)
    arrival_lat: Mapped[float | None] = mapped_column(Float)
    arrival_lng: Mapped[float | None] = mapped_column(Float)
    waypoints: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)  # [{name, lat, lng}]
    estimated_minutes: Mapped[int | None] = mapped_column(Integer)
    estimated_distance_km: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="route")

    @property
    def total_fee(self) -> int:
        return self.reservation_fee + self.local_payment_fee
