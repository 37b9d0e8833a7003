"""Taxi (vehicle + driver pairing) database model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow

if TYPE_CHECKING:
    from app.models.booking import Booking
    from app.models.user import User

# Eunpyeong-gu, Seoul (lng, lat)
DEFAULT_LOCATION = (126.9668, 37.5729)


class Taxi(Base):
    """Taxi model."""

    __tablename__ = "taxis"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    taxi_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    driver_name: Mapped[str] = mapped_column(String(50), nullable=False)
    driver_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), unique=True, index=True
    )
    license_number: Mapped[str] = mapped_column(String(20), nullable=False)
    model: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(30), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-8

    status: Mapped[str] = mapped_column(
        String(20), default="offline", index=True
    )  # available, busy, offline

    # Location
    current_lng: Mapped[float] = mapped_column(Float, default=DEFAULT_LOCATION[0])
    current_lat: Mapped[float] = mapped_column(Float, default=DEFAULT_LOCATION[1])
    last_update: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Reputation
    rating: Mapped[float] = mapped_column(Float, default=0.0)  # mean of all booking ratings
    total_trips: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    driver: Mapped["User | None"] = relationship("User", back_populates="taxi")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="taxi", passive_deletes=True
    )

    @property
    def current_location(self) -> dict:
        """GeoJSON point for the last reported position."""
        return {"type": "Point", "coordinates": [self.current_lng, self.current_lat]}
