"""Named corridor endpoints (catalog rows with geography)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.models.fare_route import FareRoute
from app.schemas.fare_route import FareRouteResponse, NearbyRouteResponse
from app.services.catalog_service import catalog_service

router = APIRouter()


@router.get("/search", response_model=list[FareRouteResponse])
async def search_routes(
    db: Annotated[AsyncSession, Depends(get_db)],
    start: str | None = Query(default=None, max_length=100),
    end: str | None = Query(default=None, max_length=100),
) -> list[FareRoute]:
    """Corridors by start/end name in either language."""
    return await catalog_service.search_corridors(db, start=start, end=end)


@router.get("/nearby/{lat}/{lng}", response_model=list[NearbyRouteResponse])
async def nearby_routes(
    lat: float,
    lng: float,
    db: Annotated[AsyncSession, Depends(get_db)],
    max_distance: float = Query(default=5000, gt=0, description="Radius in metres"),
) -> list[NearbyRouteResponse]:
    """Corridors starting or ending near a point, nearest first."""
    matches = await catalog_service.nearby_corridors(db, lat, lng, max_distance)
    return [
        NearbyRouteResponse.model_validate(
            {**FareRouteResponse.model_validate(route).model_dump(), "distance_m": round(distance, 1)}
        )
        for route, distance in matches
    ]


@router.get("/{route_id}", response_model=FareRouteResponse)
async def get_route(
    route_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FareRoute:
    return await catalog_service.get_active(db, route_id)
