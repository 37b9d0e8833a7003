"""Fare catalog endpoints (taxi items)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.core.exceptions import ValidationError
from app.core.permissions import require_catalog_manager
from app.models.fare_route import FareRoute
from app.models.user import User
from app.schemas.fare_route import (
    CatalogImportResult,
    CatalogPurgeResult,
    FareQuoteResponse,
    FareRouteBulkImport,
    FareRouteCreate,
    FareRouteListResponse,
    FareRoutePurgeRequest,
    FareRouteResponse,
    FareRouteUpdate,
    LocationOption,
    RegionStats,
)
from app.services.catalog_service import catalog_service, page_count
from app.services.fare_service import fare_service
from app.utils.validators import parse_airport_flag

router = APIRouter()


def _airport_filter(name: str, value: str | None) -> bool | None:
    if value is None or value == "":
        return None
    try:
        return parse_airport_flag(value)
    except ValueError as e:
        raise ValidationError(str(e), errors=[{"field": name, "message": str(e)}])


@router.get("", response_model=FareRouteListResponse)
async def list_fare_routes(
    db: Annotated[AsyncSession, Depends(get_db)],
    region: str | None = None,
    departure_is_airport: str | None = None,
    arrival_is_airport: str | None = None,
    search: str | None = Query(default=None, max_length=100),
    sort: str = Query(default="priority", pattern="^(priority|fee|region)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
) -> FareRouteListResponse:
    """Browse the active catalog."""
    items, total = await catalog_service.list_routes(
        db,
        region=region,
        departure_is_airport=_airport_filter("departure_is_airport", departure_is_airport),
        arrival_is_airport=_airport_filter("arrival_is_airport", arrival_is_airport),
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return FareRouteListResponse(
        items=[FareRouteResponse.model_validate(r) for r in items],
        total=total,
        page=page,
        limit=limit,
        pages=page_count(total, limit),
    )


@router.get("/route", response_model=FareQuoteResponse)
async def find_fare(
    db: Annotated[AsyncSession, Depends(get_db)],
    departure: str = Query(..., min_length=1),
    arrival: str = Query(..., min_length=1),
    lang: str = Query(default="kor", pattern="^(kor|eng)$"),
    region: str | None = None,
) -> FareQuoteResponse:
    """Resolve a departure/arrival pair to its fees, falling back to the default fare."""
    match = await fare_service.resolve(db, departure, arrival, lang=lang, region=region)
    return FareQuoteResponse(
        reservation_fee=match.reservation_fee,
        local_payment_fee=match.local_payment_fee,
        total=match.total,
        match_type=match.match_type,
        is_default=match.is_default,
        route=FareRouteResponse.model_validate(match.route) if match.route else None,
        candidates=[FareRouteResponse.model_validate(r) for r in match.candidates],
    )


@router.get("/departures", response_model=list[LocationOption])
async def list_departures(
    db: Annotated[AsyncSession, Depends(get_db)],
    region: str | None = None,
) -> list[dict]:
    """Distinct departure names for a region."""
    return await fare_service.list_departures(db, region=region)


@router.get("/arrivals", response_model=list[LocationOption])
async def list_arrivals(
    db: Annotated[AsyncSession, Depends(get_db)],
    departure: str = Query(..., min_length=1),
    region: str | None = None,
    lang: str = Query(default="kor", pattern="^(kor|eng)$"),
) -> list[dict]:
    """Distinct arrival names reachable from a departure."""
    return await fare_service.list_arrivals(db, departure, region=region, lang=lang)


@router.get("/regions", response_model=list[str])
async def list_regions(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[str]:
    return await fare_service.list_regions(db)


@router.get("/stats", response_model=list[RegionStats])
async def get_catalog_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[dict]:
    """Per-region catalog statistics."""
    return await fare_service.region_stats(db)


@router.post("", response_model=FareRouteResponse, status_code=status.HTTP_201_CREATED)
async def create_fare_route(
    route_data: FareRouteCreate,
    admin: Annotated[User, Depends(require_catalog_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareRoute:
    """Add one catalog row (admin only)."""
    return await catalog_service.create_route(db, route_data)


@router.post("/bulk", response_model=CatalogImportResult, status_code=status.HTTP_201_CREATED)
async def bulk_import_fare_routes(
    request: FareRouteBulkImport,
    admin: Annotated[User, Depends(require_catalog_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogImportResult:
    """Import many catalog rows, optionally replacing the whole catalog (admin only)."""
    imported, cleared = await catalog_service.import_routes(
        db, request.items, clear_existing=request.clear_existing
    )
    return CatalogImportResult(imported=imported, cleared=cleared)


@router.post("/purge", response_model=CatalogPurgeResult)
async def purge_fare_routes(
    request: FareRoutePurgeRequest,
    admin: Annotated[User, Depends(require_catalog_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogPurgeResult:
    """Irreversibly delete every catalog row (admin only)."""
    deleted = await catalog_service.purge(db)
    return CatalogPurgeResult(deleted=deleted)


@router.get("/{route_id}", response_model=FareRouteResponse)
async def get_fare_route(
    route_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareRoute:
    """Get an active catalog row."""
    return await catalog_service.get_active(db, route_id)


@router.patch("/{route_id}", response_model=FareRouteResponse)
async def update_fare_route(
    route_id: int,
    updates: FareRouteUpdate,
    admin: Annotated[User, Depends(require_catalog_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareRoute:
    """Edit fees, priority, flags or geography of a catalog row (admin only)."""
    return await catalog_service.update_route(db, route_id, updates)


@router.delete("/{route_id}", response_model=FareRouteResponse)
async def deactivate_fare_route(
    route_id: int,
    admin: Annotated[User, Depends(require_catalog_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareRoute:
    """Deactivate a catalog row; it stays stored but stops matching (admin only)."""
    return await catalog_service.deactivate(db, route_id)
