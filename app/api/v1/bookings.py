"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db, get_optional_user
from app.core.middleware import booking_limiter
from app.core.permissions import Permission, require_permission, require_stats_viewer
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import (
    AssignTaxiRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatsResponse,
    BookingStatusUpdate,
    BookingUpdate,
    FareCalculationRequest,
    FareCalculationResponse,
    PricingResponse,
    ReviewRequest,
)
from app.services.booking_service import booking_service
from app.services.fare_service import fare_service

router = APIRouter()


@router.post("/calculate", response_model=FareCalculationResponse)
async def calculate_booking_price(
    request: FareCalculationRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareCalculationResponse:
    """Price a trip without creating a booking."""
    quote = await fare_service.quote(
        db,
        request.departure,
        request.arrival,
        vehicle_types=[vehicle.type for vehicle in request.vehicles],
        lang=request.lang,
        region=request.region,
    )
    return FareCalculationResponse(
        pricing=PricingResponse(**quote.as_pricing()),
        route_id=quote.route_id,
        match_type=quote.match.match_type,
    )


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter)],
)
async def create_booking(
    booking_data: BookingCreate,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Create a booking; anonymous callers create guest bookings."""
    return await booking_service.create(db, booking_data, current_user)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: str | None = Query(
        default=None,
        alias="status",
        pattern="^(pending|confirmed|in-progress|completed|cancelled)$",
    ),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> BookingListResponse:
    """List bookings visible to the current user."""
    bookings, total, pages = await booking_service.list_bookings(
        db, current_user, status=status_filter, page=page, limit=limit
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        pages=pages,
    )


@router.get("/active", response_model=list[BookingResponse])
async def list_active_bookings(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Booking]:
    """Pending, confirmed and in-progress bookings, soonest pickup first."""
    return await booking_service.list_active(db, current_user)


@router.get("/number/{booking_number}", response_model=BookingResponse)
async def get_booking_by_number(
    booking_number: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Look up a booking by its booking number (used by guests)."""
    return await booking_service.get_by_number(db, booking_number)


@router.get("/stats/overview", response_model=BookingStatsResponse)
async def get_booking_stats(
    admin: Annotated[User, Depends(require_stats_viewer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Booking totals for the admin dashboard."""
    return await booking_service.stats(db)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Get a booking by ID."""
    return await booking_service.get_for_actor(db, booking_id, current_user)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: UUID,
    updates: BookingUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Edit pickup/dropoff, pickup time or special requests of a pending booking."""
    booking = await booking_service.get(db, booking_id)
    return await booking_service.update(db, booking, updates, current_user)


@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    request: BookingStatusUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Move a booking along its lifecycle."""
    booking = await booking_service.get(db, booking_id)
    return await booking_service.transition(
        db, booking, request.status, current_user, cancel_reason=request.cancel_reason
    )


@router.put("/{booking_id}/assign-taxi", response_model=BookingResponse)
async def assign_taxi(
    booking_id: UUID,
    request: AssignTaxiRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Assign an available taxi to a pending booking."""
    booking = await booking_service.get(db, booking_id)
    return await booking_service.assign_taxi(db, booking, request.taxi_id, current_user)


@router.put("/{booking_id}/review", response_model=BookingResponse)
async def review_booking(
    booking_id: UUID,
    request: ReviewRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Rate a completed trip (once)."""
    booking = await booking_service.get(db, booking_id)
    return await booking_service.submit_review(
        db, booking, request.rating, request.review, current_user
    )


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    admin: Annotated[User, Depends(require_permission(Permission.DELETE_BOOKING))],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Hard delete a booking (admin only)."""
    booking = await booking_service.get(db, booking_id)
    await booking_service.delete(db, booking, admin)
