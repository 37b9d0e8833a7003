"""Fare catalog administration and browsing.

Deactivation (soft, one row) and purge (hard, whole catalog) are kept as
separate operations; only purge removes rows.
"""

import logging
import math
from collections.abc import Iterable

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.fare_route import FareRoute
from app.schemas.fare_route import FareRouteCreate, FareRouteUpdate
from app.utils.geo import within_radius
from app.utils.validators import normalize_region

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_NEARBY_ROUTES = 10

SORT_OPTIONS = {
    "priority": (FareRoute.priority.asc(), FareRoute.region.asc(), FareRoute.id.asc()),
    "fee": (FareRoute.reservation_fee.asc(), FareRoute.id.asc()),
    "region": (FareRoute.region.asc(), FareRoute.priority.asc(), FareRoute.id.asc()),
}


def _route_from_schema(data: FareRouteCreate) -> FareRoute:
    values = data.model_dump()
    if data.waypoints is not None:
        values["waypoints"] = [waypoint.model_dump() for waypoint in data.waypoints]
    return FareRoute(**values, is_active=True)


class CatalogService:
    """Service for fare catalog maintenance."""

    async def get_active(self, db: AsyncSession, route_id: int) -> FareRoute:
        result = await db.execute(
            select(FareRoute).where(FareRoute.id == route_id, FareRoute.is_active.is_(True))
        )
        route = result.scalar_one_or_none()
        if not route:
            raise NotFoundError("Fare route", str(route_id))
        return route

    async def list_routes(
        self,
        db: AsyncSession,
        region: str | None = None,
        departure_is_airport: bool | None = None,
        arrival_is_airport: bool | None = None,
        search: str | None = None,
        sort: str = "priority",
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[FareRoute], int]:
        """Filtered, paginated view of the active catalog.

        Returns:
            tuple: (rows for the page, total matching rows)
        """
        limit = min(limit, MAX_PAGE_SIZE)
        query = select(FareRoute).where(FareRoute.is_active.is_(True))

        if region:
            query = query.where(FareRoute.region == normalize_region(region))
        if departure_is_airport is not None:
            query = query.where(FareRoute.departure_is_airport.is_(departure_is_airport))
        if arrival_is_airport is not None:
            query = query.where(FareRoute.arrival_is_airport.is_(arrival_is_airport))
        if search:
            term = search.strip().lower()
            query = query.where(
                or_(
                    *(
                        func.lower(column).contains(term, autoescape=True)
                        for column in (
                            FareRoute.departure_kor,
                            FareRoute.departure_eng,
                            FareRoute.arrival_kor,
                            FareRoute.arrival_eng,
                        )
                    )
                )
            )

        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar() or 0

        query = query.order_by(*SORT_OPTIONS.get(sort, SORT_OPTIONS["priority"]))
        query = query.offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def create_route(self, db: AsyncSession, data: FareRouteCreate) -> FareRoute:
        route = _route_from_schema(data)
        db.add(route)
        await db.flush()
        logger.info(
            f"Fare route {route.id} created: {route.region} "
            f"{route.departure_eng} -> {route.arrival_eng}"
        )
        return route

    async def import_routes(
        self,
        db: AsyncSession,
        items: Iterable[FareRouteCreate],
        clear_existing: bool = False,
    ) -> tuple[int, int]:
        """Bulk import catalog rows.

        Args:
            db: Database session
            items: Validated catalog rows
            clear_existing: Purge the whole catalog first

        Returns:
            tuple: (rows imported, rows purged beforehand)
        """
        cleared = await self.purge(db) if clear_existing else 0

        routes = [_route_from_schema(item) for item in items]
        db.add_all(routes)
        await db.flush()

        logger.info(f"Imported {len(routes)} fare routes (cleared {cleared})")
        return len(routes), cleared

    async def update_route(
        self, db: AsyncSession, route_id: int, data: FareRouteUpdate
    ) -> FareRoute:
        result = await db.execute(select(FareRoute).where(FareRoute.id == route_id))
        route = result.scalar_one_or_none()
        if not route:
            raise NotFoundError("Fare route", str(route_id))

        changes = data.model_dump(exclude_unset=True)
        if "waypoints" in changes and data.waypoints is not None:
            changes["waypoints"] = [waypoint.model_dump() for waypoint in data.waypoints]
        for field, value in changes.items():
            setattr(route, field, value)

        await db.flush()
        return route

    async def deactivate(self, db: AsyncSession, route_id: int) -> FareRoute:
        """Soft delete: the row stays but is hidden from lookups."""
        route = await self.get_active(db, route_id)
        route.is_active = False
        await db.flush()
        logger.info(f"Fare route {route_id} deactivated")
        return route

    async def purge(self, db: AsyncSession) -> int:
        """Hard delete every catalog row, active or not."""
        result = await db.execute(delete(FareRoute))
        deleted = result.rowcount or 0
        logger.warning(f"Fare catalog purged: {deleted} rows deleted")
        return deleted

    async def search_corridors(
        self, db: AsyncSession, start: str | None = None, end: str | None = None
    ) -> list[FareRoute]:
        """Corridors whose departure/arrival contain the given text in either language."""
        query = select(FareRoute).where(FareRoute.is_active.is_(True))
        if start:
            term = start.strip().lower()
            query = query.where(
                or_(
                    func.lower(FareRoute.departure_kor).contains(term, autoescape=True),
                    func.lower(FareRoute.departure_eng).contains(term, autoescape=True),
                )
            )
        if end:
            term = end.strip().lower()
            query = query.where(
                or_(
                    func.lower(FareRoute.arrival_kor).contains(term, autoescape=True),
                    func.lower(FareRoute.arrival_eng).contains(term, autoescape=True),
                )
            )
        query = query.order_by(FareRoute.priority.asc(), FareRoute.id.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def nearby_corridors(
        self, db: AsyncSession, lat: float, lng: float, max_distance: float
    ) -> list[tuple[FareRoute, float]]:
        """Corridors with an endpoint inside the radius, nearest first.

        Returns:
            list: (route, distance in metres to its nearest endpoint)
        """
        result = await db.execute(
            select(FareRoute).where(
                FareRoute.is_active.is_(True),
                or_(FareRoute.departure_lat.is_not(None), FareRoute.arrival_lat.is_not(None)),
            )
        )

        matches: list[tuple[FareRoute, float]] = []
        for route in result.scalars().all():
            distances = [
                d
                for d in (
                    within_radius(lat, lng, route.departure_lat, route.departure_lng, max_distance),
                    within_radius(lat, lng, route.arrival_lat, route.arrival_lng, max_distance),
                )
                if d is not None
            ]
            if distances:
                matches.append((route, min(distances)))

        matches.sort(key=lambda item: (item[1], item[0].priority, item[0].id))
        return matches[:MAX_NEARBY_ROUTES]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


# Singleton instance
catalog_service = CatalogService()
