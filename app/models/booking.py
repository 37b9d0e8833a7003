"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow

if TYPE_CHECKING:
    from app.models.fare_route import FareRoute
    from app.models.taxi import Taxi
    from app.models.user import User


class Booking(Base):
    """Booking model."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )  # YRXXXXXX
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), index=True
    )  # NULL = guest booking
    taxi_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("taxis.id", ondelete="SET NULL"), index=True
    )
    route_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fare_routes.id", ondelete="SET NULL")
    )

    # Customer
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(30), nullable=False)
    customer_kakao_id: Mapped[str | None] = mapped_column(String(100))

    # Service
    service_type: Mapped[str] = mapped_column(String(20), default="airport")  # airport, taxi, charter
    region: Mapped[str | None] = mapped_column(String(20), index=True)

    # Trip
    departure_location: Mapped[str] = mapped_column(String(200), nullable=False)
    departure_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    arrival_location: Mapped[str] = mapped_column(String(200), nullable=False)
    arrival_datetime: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Passengers
    total_passengers: Mapped[int] = mapped_column(Integer, default=1)
    total_luggage: Mapped[int] = mapped_column(Integer, default=0)

    # Flight
    flight_number: Mapped[str | None] = mapped_column(String(20))
    flight_terminal: Mapped[str | None] = mapped_column(String(20))

    # Pricing (whole currency units)
    reservation_fee: Mapped[int] = mapped_column(Integer, nullable=False)
    service_fee: Mapped[int] = mapped_column(Integer, nullable=False)  # local payment fee
    vehicle_upgrade_fee: Mapped[int] = mapped_column(Integer, default=0)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    fare_source: Mapped[str] = mapped_column(String(10), default="catalog")  # catalog, default

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, confirmed, in-progress, completed, cancelled
    cancel_reason: Mapped[str | None] = mapped_column(Text)

    # Review
    rating: Mapped[int | None] = mapped_column(Integer)  # 1-5
    review: Mapped[str | None] = mapped_column(Text)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Payment
    payment_method: Mapped[str] = mapped_column(String(10), default="card")  # cash, card, app
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)

    special_requests: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    actual_pickup_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    actual_dropoff_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    customer: Mapped["User | None"] = relationship("User", back_populates="bookings")
    taxi: Mapped["Taxi | None"] = relationship("Taxi", back_populates="bookings")
    route: Mapped["FareRoute | None"] = relationship("FareRoute", back_populates="bookings")
    vehicles: Mapped[list["BookingVehicle"]] = relationship(
        "BookingVehicle",
        back_populates="booking",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BookingVehicle.position",
    )

    @property
    def customer_info(self) -> dict:
        return {
            "name": self.customer_name,
            "phone": self.customer_phone,
            "kakao_id": self.customer_kakao_id,
        }

    @property
    def service_info(self) -> dict:
        return {"type": self.service_type, "region": self.region}

    @property
    def trip_details(self) -> dict:
        return {
            "departure": {"location": self.departure_location, "datetime": self.departure_datetime},
            "arrival": {"location": self.arrival_location, "datetime": self.arrival_datetime},
        }

    @property
    def passenger_info(self) -> dict:
        return {"total_passengers": self.total_passengers, "total_luggage": self.total_luggage}

    @property
    def flight_info(self) -> dict | None:
        if not self.flight_number:
            return None
        return {"flight_number": self.flight_number, "terminal": self.flight_terminal}

    @property
    def pricing(self) -> dict:
        return {
            "reservation_fee": self.reservation_fee,
            "service_fee": self.service_fee,
            "vehicle_upgrade_fee": self.vehicle_upgrade_fee,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "fare_source": self.fare_source,
        }


class BookingVehicle(Base):
    """One requested vehicle line item of a booking."""

    __tablename__ = "booking_vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    type: Mapped[str] = mapped_column("vehicle_type", String(20), nullable=False)  # standard, xl, premium
    passengers: Mapped[int] = mapped_column(Integer, default=1)
    luggage: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    booking: Mapped["Booking"] = relationship("Booking", back_populates="vehicles")
