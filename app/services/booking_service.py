"""Booking lifecycle service.

Owns booking status changes and their coupling to taxi availability:

- a taxi is claimed with a single conditional update (available -> busy)
  and a busy taxi only leaves busy once its booking ends
- entering completed or cancelled hands the taxi back
- every write happens inside the request transaction, so a failed step
  leaves neither the booking nor the taxi modified
"""

import logging
import math
from datetime import UTC, date, datetime, time, timedelta
from uuid import UUID

from sqlalchemy import Select, false, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidBookingState,
    NotFoundError,
)
from app.core.permissions import Permission, UserRole, has_permission
from app.database import utcnow
from app.domain.booking_state import (
    ACTIVE_STATUSES,
    RELEASING_STATUSES,
    BookingStatus,
    assert_booking_transition,
)
from app.domain.taxi_state import TaxiStatus
from app.models.booking import Booking, BookingVehicle
from app.models.taxi import Taxi
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingUpdate
from app.services.fare_service import FareQuote, fare_service
from app.utils.booking_number import generate_booking_number, normalize_booking_number

logger = logging.getLogger(__name__)


def _actor_label(actor: User | None) -> str:
    return f"{actor.role}:{actor.id}" if actor else "guest"


def _start_of_today() -> datetime:
    return datetime.combine(utcnow().date(), time.min, tzinfo=UTC)


class BookingService:
    """Service for booking lifecycle operations."""

    # Taxi availability

    async def _get_taxi(self, db: AsyncSession, taxi_id: UUID) -> Taxi:
        result = await db.execute(select(Taxi).where(Taxi.id == taxi_id))
        taxi = result.scalar_one_or_none()
        if not taxi:
            raise NotFoundError("Taxi", str(taxi_id))
        return taxi

    async def _claim_taxi(self, db: AsyncSession, taxi_id: UUID) -> None:
        """Flip a taxi from available to busy, or fail if someone else holds it."""
        result = await db.execute(
            update(Taxi)
            .where(Taxi.id == taxi_id, Taxi.status == TaxiStatus.AVAILABLE.value)
            .values(status=TaxiStatus.BUSY.value, last_update=utcnow())
        )
        if result.rowcount != 1:
            raise InvalidBookingState("Taxi is not available")

    async def _release_taxi(self, db: AsyncSession, taxi_id: UUID | None) -> None:
        if taxi_id is None:
            return
        await db.execute(
            update(Taxi)
            .where(Taxi.id == taxi_id)
            .values(status=TaxiStatus.AVAILABLE.value, last_update=utcnow())
        )

    async def count_holding_bookings(self, db: AsyncSession, taxi_id: UUID) -> int:
        """Active bookings that reference the taxi."""
        result = await db.execute(
            select(func.count(Booking.id)).where(
                Booking.taxi_id == taxi_id, Booking.status.in_(ACTIVE_STATUSES)
            )
        )
        return result.scalar() or 0

    async def driver_taxi_id(self, db: AsyncSession, driver: User) -> UUID | None:
        result = await db.execute(select(Taxi.id).where(Taxi.driver_id == driver.id))
        return result.scalar_one_or_none()

    # Visibility

    async def scope_query(self, db: AsyncSession, query: Select, actor: User) -> Select:
        """Restrict a booking query to what the actor may see."""
        if has_permission(actor.role, Permission.VIEW_ALL_BOOKINGS):
            return query
        if actor.role == UserRole.DRIVER.value:
            taxi_id = await self.driver_taxi_id(db, actor)
            if taxi_id is None:
                return query.where(false())
            return query.where(Booking.taxi_id == taxi_id)
        return query.where(Booking.customer_id == actor.id)

    async def can_view(self, db: AsyncSession, booking: Booking, actor: User) -> bool:
        if has_permission(actor.role, Permission.VIEW_ALL_BOOKINGS):
            return True
        if actor.role == UserRole.DRIVER.value:
            taxi_id = await self.driver_taxi_id(db, actor)
            return taxi_id is not None and booking.taxi_id == taxi_id
        return booking.customer_id is not None and booking.customer_id == actor.id

    async def get(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def get_for_actor(self, db: AsyncSession, booking_id: UUID, actor: User) -> Booking:
        booking = await self.get(db, booking_id)
        if not await self.can_view(db, booking, actor):
            raise AuthorizationError("You do not have access to this booking")
        return booking

    async def get_by_number(self, db: AsyncSession, booking_number: str) -> Booking:
        number = normalize_booking_number(booking_number)
        result = await db.execute(select(Booking).where(Booking.booking_number == number))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", number)
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        actor: User,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Booking], int, int]:
        """Paginated, role-scoped booking list, newest first.

        Returns:
            tuple: (bookings, total, pages)
        """
        query = await self.scope_query(db, select(Booking), actor)
        if status:
            query = query.where(Booking.status == status)

        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar() or 0

        query = query.order_by(Booking.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total, math.ceil(total / limit)

    async def list_active(self, db: AsyncSession, actor: User) -> list[Booking]:
        query = await self.scope_query(
            db, select(Booking).where(Booking.status.in_(ACTIVE_STATUSES)), actor
        )
        result = await db.execute(query.order_by(Booking.departure_datetime.asc()))
        return list(result.scalars().all())

    # Lifecycle

    async def quote(self, db: AsyncSession, data: BookingCreate) -> FareQuote:
        return await fare_service.quote(
            db,
            data.trip_details.departure.location,
            data.trip_details.arrival.location,
            vehicle_types=[vehicle.type for vehicle in data.vehicles],
            lang=data.lang,
            region=data.service_info.region,
        )

    async def create(
        self, db: AsyncSession, data: BookingCreate, actor: User | None = None
    ) -> Booking:
        """Create a booking priced from the fare catalog.

        Args:
            db: Database session
            data: Validated booking request
            actor: Authenticated customer, or None for a guest booking

        Returns:
            Booking: The new booking, pending or confirmed when a taxi was pre-assigned

        Raises:
            NotFoundError: If the pre-assigned taxi does not exist
            InvalidBookingState: If the pre-assigned taxi is not available
        """
        if data.taxi_id is not None:
            await self._get_taxi(db, data.taxi_id)
            await self._claim_taxi(db, data.taxi_id)

        quote = await self.quote(db, data)
        now = utcnow()

        if data.passenger_info is not None:
            total_passengers = data.passenger_info.total_passengers
            total_luggage = data.passenger_info.total_luggage
        else:
            total_passengers = sum(vehicle.passengers for vehicle in data.vehicles)
            total_luggage = sum(vehicle.luggage for vehicle in data.vehicles)

        booking = Booking(
            booking_number=await generate_booking_number(db),
            customer_id=actor.id if actor else None,
            taxi_id=data.taxi_id,
            route_id=quote.route_id,
            customer_name=data.customer_info.name,
            customer_phone=data.customer_info.phone,
            customer_kakao_id=data.customer_info.kakao_id,
            service_type=data.service_info.type,
            region=data.service_info.region,
            departure_location=data.trip_details.departure.location,
            departure_datetime=data.trip_details.departure.datetime,
            arrival_location=data.trip_details.arrival.location,
            arrival_datetime=data.trip_details.arrival.datetime,
            total_passengers=total_passengers,
            total_luggage=total_luggage,
            flight_number=data.flight_info.flight_number if data.flight_info else None,
            flight_terminal=data.flight_info.terminal if data.flight_info else None,
            reservation_fee=quote.reservation_fee,
            service_fee=quote.service_fee,
            vehicle_upgrade_fee=quote.vehicle_upgrade_fee,
            total_amount=quote.total_amount,
            currency=quote.currency,
            fare_source=quote.fare_source,
            payment_method=data.payment_method,
            special_requests=data.special_requests,
            status=BookingStatus.CONFIRMED.value if data.taxi_id else BookingStatus.PENDING.value,
            confirmed_at=now if data.taxi_id else None,
            vehicles=[
                BookingVehicle(
                    position=position,
                    type=vehicle.type,
                    passengers=vehicle.passengers,
                    luggage=vehicle.luggage,
                )
                for position, vehicle in enumerate(data.vehicles)
            ],
        )
        db.add(booking)
        await db.flush()

        logger.info(
            f"Booking {booking.booking_number} created as {booking.status} "
            f"by {_actor_label(actor)} (total {booking.total_amount} {booking.currency}, "
            f"fare {booking.fare_source})"
        )
        return booking

    async def update(
        self, db: AsyncSession, booking: Booking, data: BookingUpdate, actor: User
    ) -> Booking:
        """Edit a pending booking; moving pickup or dropoff re-prices it."""
        if actor.role != UserRole.ADMIN.value and not (
            has_permission(actor.role, Permission.EDIT_BOOKING)
            and booking.customer_id == actor.id
        ):
            raise AuthorizationError("You cannot edit this booking")

        if booking.status != BookingStatus.PENDING.value:
            raise InvalidBookingState("Only pending bookings can be edited")

        changes = data.model_dump(exclude_unset=True)
        if "pickup_location" in changes and data.pickup_location is not None:
            booking.departure_location = data.pickup_location
        if "dropoff_location" in changes and data.dropoff_location is not None:
            booking.arrival_location = data.dropoff_location
        if "pickup_time" in changes and data.pickup_time is not None:
            booking.departure_datetime = data.pickup_time
        if "special_requests" in changes:
            booking.special_requests = data.special_requests

        if {"pickup_location", "dropoff_location"} & changes.keys():
            quote = await fare_service.quote(
                db,
                booking.departure_location,
                booking.arrival_location,
                vehicle_types=[vehicle.type for vehicle in booking.vehicles],
                region=booking.region,
            )
            booking.route_id = quote.route_id
            booking.reservation_fee = quote.reservation_fee
            booking.service_fee = quote.service_fee
            booking.vehicle_upgrade_fee = quote.vehicle_upgrade_fee
            booking.total_amount = quote.total_amount
            booking.fare_source = quote.fare_source

        await db.flush()
        return booking

    async def _authorize_transition(
        self, db: AsyncSession, booking: Booking, target: str, actor: User
    ) -> None:
        if has_permission(actor.role, Permission.CHANGE_BOOKING_STATUS):
            if has_permission(actor.role, Permission.VIEW_ALL_BOOKINGS):
                return
            taxi_id = await self.driver_taxi_id(db, actor)
            if taxi_id is None or booking.taxi_id != taxi_id:
                raise AuthorizationError("Drivers may only update bookings assigned to their taxi")
            return
        if target != BookingStatus.CANCELLED.value or not has_permission(
            actor.role, Permission.CANCEL_BOOKING
        ):
            raise AuthorizationError("Customers may only cancel bookings")
        if booking.customer_id is None or booking.customer_id != actor.id:
            raise AuthorizationError("You cannot cancel this booking")

    async def transition(
        self,
        db: AsyncSession,
        booking: Booking,
        target: str,
        actor: User,
        cancel_reason: str | None = None,
    ) -> Booking:
        """Move a booking to a new status.

        Args:
            db: Database session
            booking: Booking to change
            target: Requested status
            actor: Authenticated user requesting the change
            cancel_reason: Required when target is cancelled

        Returns:
            Booking: Updated booking

        Raises:
            AuthorizationError: If the actor may not request this change
            InvalidTransition: If the change is not in the transition table
        """
        await self._authorize_transition(db, booking, target, actor)
        assert_booking_transition(booking.status, target)

        previous = booking.status
        now = utcnow()
        booking.status = target

        if target == BookingStatus.CONFIRMED.value:
            booking.confirmed_at = now
        elif target == BookingStatus.IN_PROGRESS.value:
            booking.actual_pickup_time = now
        elif target == BookingStatus.COMPLETED.value:
            booking.actual_dropoff_time = now
            booking.completed_at = now
        elif target == BookingStatus.CANCELLED.value:
            booking.cancel_reason = cancel_reason
            booking.cancelled_at = now

        if target in RELEASING_STATUSES:
            await self._release_taxi(db, booking.taxi_id)

        await db.flush()
        logger.info(
            f"Booking {booking.booking_number}: {previous} -> {target} by {_actor_label(actor)}"
        )
        return booking

    async def assign_taxi(
        self, db: AsyncSession, booking: Booking, taxi_id: UUID, actor: User
    ) -> Booking:
        """Assign an available taxi to a pending booking and confirm it."""
        if not has_permission(actor.role, Permission.ASSIGN_TAXI):
            raise AuthorizationError("You cannot assign taxis")
        if booking.status != BookingStatus.PENDING.value:
            raise InvalidBookingState("Taxis can only be assigned to pending bookings")

        taxi = await self._get_taxi(db, taxi_id)
        if actor.role == UserRole.DRIVER.value and taxi.driver_id != actor.id:
            raise AuthorizationError("Drivers may only assign their own taxi")

        await self._claim_taxi(db, taxi_id)

        booking.taxi_id = taxi_id
        booking.status = BookingStatus.CONFIRMED.value
        booking.confirmed_at = utcnow()
        await db.flush()

        logger.info(
            f"Booking {booking.booking_number}: pending -> confirmed, "
            f"taxi {taxi.taxi_number} assigned by {_actor_label(actor)}"
        )
        return booking

    async def submit_review(
        self,
        db: AsyncSession,
        booking: Booking,
        rating: int,
        review: str | None,
        actor: User,
    ) -> Booking:
        """Record the customer's one review and refresh the taxi's rating."""
        owns_booking = booking.customer_id is not None and booking.customer_id == actor.id
        if not (has_permission(actor.role, Permission.REVIEW_BOOKING) and owns_booking):
            raise AuthorizationError("Only the customer who booked can review")
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidBookingState("Only completed bookings can be reviewed")
        if booking.rating is not None:
            raise ConflictError("Booking has already been reviewed")

        booking.rating = rating
        booking.review = review
        booking.reviewed_at = utcnow()
        await db.flush()

        if booking.taxi_id is not None:
            taxi = await self._get_taxi(db, booking.taxi_id)
            avg_result = await db.execute(
                select(func.avg(Booking.rating)).where(
                    Booking.taxi_id == taxi.id, Booking.rating.is_not(None)
                )
            )
            average = avg_result.scalar()
            taxi.rating = round(float(average), 2) if average is not None else 0.0
            taxi.total_trips = (taxi.total_trips or 0) + 1
            await db.flush()

        logger.info(f"Booking {booking.booking_number} reviewed: {rating}/5")
        return booking

    async def delete(self, db: AsyncSession, booking: Booking, actor: User) -> None:
        """Hard delete (admin only); an active booking hands its taxi back first."""
        if booking.status in ACTIVE_STATUSES:
            await self._release_taxi(db, booking.taxi_id)

        await db.delete(booking)
        await db.flush()
        logger.info(
            f"Booking {booking.booking_number} ({booking.status}) deleted by {_actor_label(actor)}"
        )

    # Reporting

    async def stats(self, db: AsyncSession) -> dict:
        """Totals for the admin overview."""
        total_result = await db.execute(select(func.count(Booking.id)))
        today_result = await db.execute(
            select(func.count(Booking.id)).where(Booking.created_at >= _start_of_today())
        )
        grouped = await db.execute(
            select(Booking.status, func.count(Booking.id), func.sum(Booking.total_amount))
            .group_by(Booking.status)
        )

        by_status = {
            status.value: {"count": 0, "total_amount": 0} for status in BookingStatus
        }
        for status, count, amount in grouped.all():
            by_status[status] = {"count": count, "total_amount": int(amount or 0)}

        return {
            "total": total_result.scalar() or 0,
            "today": today_result.scalar() or 0,
            "by_status": by_status,
        }

    async def today_status_counts(self, db: AsyncSession) -> dict[str, int]:
        """Per-status counts of bookings created today, every status present."""
        result = await db.execute(
            select(Booking.status, func.count(Booking.id))
            .where(Booking.created_at >= _start_of_today())
            .group_by(Booking.status)
        )
        counts = {status.value: 0 for status in BookingStatus}
        counts.update({status: count for status, count in result.all()})
        return counts

    async def pickup_timeline(self, db: AsyncSession, day: date) -> dict[int, list[Booking]]:
        """Bookings picking up on ``day`` (UTC), grouped by pickup hour."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        result = await db.execute(
            select(Booking)
            .where(
                Booking.departure_datetime >= start,
                Booking.departure_datetime < start + timedelta(days=1),
            )
            .order_by(Booking.departure_datetime.asc())
        )

        timeline: dict[int, list[Booking]] = {}
        for booking in result.scalars().all():
            pickup = booking.departure_datetime
            if pickup.tzinfo is not None:
                pickup = pickup.astimezone(UTC)
            timeline.setdefault(pickup.hour, []).append(booking)
        return timeline

    async def today_region_counts(self, db: AsyncSession) -> list[dict]:
        """Today's non-cancelled bookings per region, busiest first."""
        booking_count = func.count(Booking.id)
        result = await db.execute(
            select(Booking.region, booking_count, func.sum(Booking.total_amount))
            .where(
                Booking.created_at >= _start_of_today(),
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .group_by(Booking.region)
            .order_by(booking_count.desc(), Booking.region)
        )
        return [
            {"region": region, "count": count, "total_amount": int(amount or 0)}
            for region, count, amount in result.all()
        ]

    async def recent_active(self, db: AsyncSession, limit: int = 50) -> list[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.status.in_(ACTIVE_STATUSES))
            .order_by(Booking.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


# Singleton instance
booking_service = BookingService()
