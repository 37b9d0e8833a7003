"""Taxi endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidBookingState,
    NotFoundError,
)
from app.core.permissions import (
    Permission,
    has_permission,
    require_stats_viewer,
    require_taxi_manager,
)
from app.database import utcnow
from app.domain.taxi_state import TAXI_STATUSES, TaxiStatus
from app.models.taxi import DEFAULT_LOCATION, Taxi
from app.models.user import User
from app.schemas.taxi import (
    NearbyTaxiResponse,
    TaxiCreate,
    TaxiListResponse,
    TaxiLocationUpdate,
    TaxiResponse,
    TaxiStatsResponse,
    TaxiStatusUpdate,
    TaxiUpdate,
)
from app.services.booking_service import booking_service
from app.utils.geo import within_radius

router = APIRouter()

MAX_AVAILABLE_TAXIS = 20


async def _get_taxi(db: AsyncSession, taxi_id: UUID) -> Taxi:
    result = await db.execute(select(Taxi).where(Taxi.id == taxi_id))
    taxi = result.scalar_one_or_none()
    if not taxi:
        raise NotFoundError("Taxi", str(taxi_id))
    return taxi


def _assert_can_update(taxi: Taxi, current_user: User) -> None:
    """Admins manage every taxi; drivers only the one linked to their account."""
    if has_permission(current_user.role, Permission.MANAGE_TAXIS):
        return
    if has_permission(current_user.role, Permission.UPDATE_OWN_TAXI) and taxi.driver_id == current_user.id:
        return
    raise AuthorizationError("You can only update your own taxi")


async def _assert_status_change_allowed(db: AsyncSession, taxi: Taxi, new_status: str) -> None:
    """Busy is owned by the booking lifecycle: it is entered by a claim and left on release."""
    if new_status == taxi.status:
        return
    held = await booking_service.count_holding_bookings(db, taxi.id)
    if taxi.status == TaxiStatus.BUSY.value and held:
        raise InvalidBookingState("Taxi is on an active booking")
    if new_status == TaxiStatus.BUSY.value and not held:
        raise InvalidBookingState("A taxi can only become busy through a booking")


@router.get("", response_model=TaxiListResponse)
async def list_taxis(
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: str | None = Query(default=None, alias="status", pattern="^(available|busy|offline)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> TaxiListResponse:
    """List taxis."""
    query = select(Taxi)
    if status_filter:
        query = query.where(Taxi.status == status_filter)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    query = query.order_by(Taxi.taxi_number.asc()).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)

    return TaxiListResponse(
        taxis=[TaxiResponse.model_validate(t) for t in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/available", response_model=list[NearbyTaxiResponse])
async def list_available_taxis(
    db: Annotated[AsyncSession, Depends(get_db)],
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    max_distance: float = Query(default=5000, gt=0, description="Radius in metres"),
) -> list[NearbyTaxiResponse]:
    """Available taxis, nearest first when a position is given."""
    result = await db.execute(
        select(Taxi).where(Taxi.status == TaxiStatus.AVAILABLE.value).order_by(Taxi.taxi_number)
    )
    taxis = list(result.scalars().all())

    if lat is None or lng is None:
        return [NearbyTaxiResponse.model_validate(t) for t in taxis[:MAX_AVAILABLE_TAXIS]]

    nearby = []
    for taxi in taxis:
        distance = within_radius(lat, lng, taxi.current_lat, taxi.current_lng, max_distance)
        if distance is not None:
            nearby.append((distance, taxi))
    nearby.sort(key=lambda item: item[0])

    return [
        NearbyTaxiResponse.model_validate(taxi).model_copy(update={"distance_m": round(distance, 1)})
        for distance, taxi in nearby[:MAX_AVAILABLE_TAXIS]
    ]


@router.get("/stats/overview", response_model=TaxiStatsResponse)
async def get_taxi_stats(
    admin: Annotated[User, Depends(require_stats_viewer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TaxiStatsResponse:
    """Fleet counts by status and the mean rating over rated taxis."""
    grouped = await db.execute(select(Taxi.status, func.count(Taxi.id)).group_by(Taxi.status))
    by_status = {s: 0 for s in TAXI_STATUSES}
    by_status.update({s: count for s, count in grouped.all()})

    avg_result = await db.execute(select(func.avg(Taxi.rating)).where(Taxi.rating > 0))
    average = avg_result.scalar()

    return TaxiStatsResponse(
        total=sum(by_status.values()),
        by_status=by_status,
        average_rating=round(float(average), 2) if average is not None else None,
    )


@router.get("/{taxi_id}", response_model=TaxiResponse)
async def get_taxi(
    taxi_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Taxi:
    """Get a taxi by ID."""
    return await _get_taxi(db, taxi_id)


@router.post("", response_model=TaxiResponse, status_code=status.HTTP_201_CREATED)
async def create_taxi(
    taxi_data: TaxiCreate,
    admin: Annotated[User, Depends(require_taxi_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Taxi:
    """Register a taxi (admin only)."""
    existing = await db.execute(select(Taxi.id).where(Taxi.taxi_number == taxi_data.taxi_number))
    if existing.scalar_one_or_none():
        raise ConflictError(f"Taxi number {taxi_data.taxi_number} already registered")

    if taxi_data.driver_id is not None:
        driver = await db.execute(select(User).where(User.id == taxi_data.driver_id))
        if not driver.scalar_one_or_none():
            raise NotFoundError("User", str(taxi_data.driver_id))

    lng, lat = (
        taxi_data.current_location.coordinates if taxi_data.current_location else DEFAULT_LOCATION
    )
    taxi = Taxi(
        **taxi_data.model_dump(exclude={"current_location"}),
        current_lng=lng,
        current_lat=lat,
    )
    db.add(taxi)
    await db.flush()
    return taxi


@router.put("/{taxi_id}", response_model=TaxiResponse)
async def update_taxi(
    taxi_id: UUID,
    updates: TaxiUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Taxi:
    """Update model, color, capacity, status or location."""
    taxi = await _get_taxi(db, taxi_id)
    _assert_can_update(taxi, current_user)

    update_data = updates.model_dump(exclude_unset=True, exclude={"current_location"})
    if update_data.get("status") is not None:
        await _assert_status_change_allowed(db, taxi, update_data["status"])

    for field, value in update_data.items():
        if value is not None:
            setattr(taxi, field, value)

    if updates.current_location is not None:
        taxi.current_lng, taxi.current_lat = updates.current_location.coordinates

    taxi.last_update = utcnow()
    await db.flush()
    return taxi


@router.put("/{taxi_id}/location", response_model=TaxiResponse)
async def update_taxi_location(
    taxi_id: UUID,
    request: TaxiLocationUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Taxi:
    """Report the taxi's current position."""
    taxi = await _get_taxi(db, taxi_id)
    _assert_can_update(taxi, current_user)

    taxi.current_lng, taxi.current_lat = request.coordinates
    taxi.last_update = utcnow()
    await db.flush()
    return taxi


@router.put("/{taxi_id}/status", response_model=TaxiResponse)
async def update_taxi_status(
    taxi_id: UUID,
    request: TaxiStatusUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Taxi:
    """Set availability (available, busy, offline)."""
    taxi = await _get_taxi(db, taxi_id)
    _assert_can_update(taxi, current_user)

    await _assert_status_change_allowed(db, taxi, request.status)
    taxi.status = request.status
    taxi.last_update = utcnow()
    await db.flush()
    return taxi


@router.delete("/{taxi_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_taxi(
    taxi_id: UUID,
    admin: Annotated[User, Depends(require_taxi_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Remove a taxi (admin only); refused while it is on a trip."""
    taxi = await _get_taxi(db, taxi_id)
    if taxi.status == TaxiStatus.BUSY.value:
        raise InvalidBookingState("Cannot delete a taxi that is currently busy")

    await db.delete(taxi)
    await db.flush()
