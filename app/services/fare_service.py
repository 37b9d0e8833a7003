"""Fare resolution over the fare catalog.

Maps a (departure, arrival) corridor to its fixed reservation and local
payment fees. Matching policies are tried in order and the first one
with at least one active row wins:

1. exact match on the requested language's departure/arrival names
2. case-insensitive substring match on the Korean names
3. case-insensitive substring match on the English names

Within a policy the lowest priority wins, then the oldest row. When
nothing matches, the configured default fare is returned instead of
failing the booking.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import ColumnElement, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.domain.pricing import UpgradeFees, calculate_total, calculate_upgrade_fee
from app.models.fare_route import FareRoute
from app.utils.validators import normalize_region

logger = logging.getLogger(__name__)


@dataclass
class FareMatch:
    """Outcome of resolving one corridor."""

    reservation_fee: int
    local_payment_fee: int
    match_type: str  # exact, kor_partial, eng_partial, default
    route: FareRoute | None = None
    candidates: list[FareRoute] = field(default_factory=list)

    @property
    def total(self) -> int:
        return calculate_total(self.reservation_fee, self.local_payment_fee)

    @property
    def is_default(self) -> bool:
        return self.route is None


@dataclass
class FareQuote:
    """Full booking price for a corridor and its vehicle line items."""

    match: FareMatch
    vehicle_upgrade_fee: int
    currency: str

    @property
    def reservation_fee(self) -> int:
        return self.match.reservation_fee

    @property
    def service_fee(self) -> int:
        return self.match.local_payment_fee

    @property
    def total_amount(self) -> int:
        return calculate_total(
            self.match.reservation_fee, self.match.local_payment_fee, self.vehicle_upgrade_fee
        )

    @property
    def fare_source(self) -> str:
        return "default" if self.match.is_default else "catalog"

    @property
    def route_id(self) -> int | None:
        return self.match.route.id if self.match.route else None

    def as_pricing(self) -> dict:
        return {
            "reservation_fee": self.reservation_fee,
            "service_fee": self.service_fee,
            "vehicle_upgrade_fee": self.vehicle_upgrade_fee,
            "total_amount": self.total_amount,
            "currency": self.currency,
            "fare_source": self.fare_source,
        }


def _contains(column, value: str) -> ColumnElement[bool]:
    return func.lower(column).contains(value.lower(), autoescape=True)


class FareService:
    """Service resolving corridors against the fare catalog."""

    def __init__(
        self,
        default_reservation_fee: int | None = None,
        default_local_payment_fee: int | None = None,
    ):
        self.default_reservation_fee = (
            settings.default_reservation_fee
            if default_reservation_fee is None
            else default_reservation_fee
        )
        self.default_local_payment_fee = (
            settings.default_local_payment_fee
            if default_local_payment_fee is None
            else default_local_payment_fee
        )

    async def _find(
        self, db: AsyncSession, region: str | None, *conditions: ColumnElement[bool]
    ) -> list[FareRoute]:
        query = select(FareRoute).where(FareRoute.is_active.is_(True), *conditions)
        if region:
            query = query.where(FareRoute.region == region)
        query = query.order_by(FareRoute.priority.asc(), FareRoute.id.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def resolve(
        self,
        db: AsyncSession,
        departure: str,
        arrival: str,
        lang: str = "kor",
        region: str | None = None,
    ) -> FareMatch:
        """Resolve a corridor to its fees.

        Args:
            db: Database session
            departure: Departure name in the requested language
            arrival: Arrival name in the requested language
            lang: 'kor' or 'eng', selects the fields used for the exact match
            region: Optional region code filter

        Returns:
            FareMatch: Matched fees, or the default fare when nothing matches
        """
        departure = departure.strip()
        arrival = arrival.strip()
        region = normalize_region(region) if region else None

        if lang == "eng":
            exact = (FareRoute.departure_eng == departure, FareRoute.arrival_eng == arrival)
        else:
            exact = (FareRoute.departure_kor == departure, FareRoute.arrival_kor == arrival)

        policies = (
            ("exact", exact),
            (
                "kor_partial",
                (_contains(FareRoute.departure_kor, departure), _contains(FareRoute.arrival_kor, arrival)),
            ),
            (
                "eng_partial",
                (_contains(FareRoute.departure_eng, departure), _contains(FareRoute.arrival_eng, arrival)),
            ),
        )

        for match_type, conditions in policies:
            routes = await self._find(db, region, *conditions)
            if routes:
                best = routes[0]
                return FareMatch(
                    reservation_fee=best.reservation_fee,
                    local_payment_fee=best.local_payment_fee,
                    match_type=match_type,
                    route=best,
                    candidates=routes,
                )

        logger.warning(
            f"No fare route for {departure!r} -> {arrival!r} "
            f"(lang={lang}, region={region}); using default fare "
            f"{self.default_reservation_fee}+{self.default_local_payment_fee}"
        )
        return FareMatch(
            reservation_fee=self.default_reservation_fee,
            local_payment_fee=self.default_local_payment_fee,
            match_type="default",
        )

    async def quote(
        self,
        db: AsyncSession,
        departure: str,
        arrival: str,
        vehicle_types: Iterable[str] = (),
        lang: str = "kor",
        region: str | None = None,
    ) -> FareQuote:
        """Price a trip: corridor fare plus per-vehicle upgrade fees."""
        match = await self.resolve(db, departure, arrival, lang=lang, region=region)
        upgrade_fee = calculate_upgrade_fee(
            vehicle_types,
            UpgradeFees(xl=settings.xl_upgrade_fee, premium=settings.premium_upgrade_fee),
        )
        return FareQuote(match=match, vehicle_upgrade_fee=upgrade_fee, currency=settings.fare_currency)

    async def list_departures(self, db: AsyncSession, region: str | None = None) -> list[dict]:
        """Distinct departure names for a region, sorted by name.

        The first row seen for a name supplies its translation and airport flag.
        """
        query = select(
            FareRoute.departure_kor, FareRoute.departure_eng, FareRoute.departure_is_airport
        ).where(FareRoute.is_active.is_(True))
        if region:
            query = query.where(FareRoute.region == normalize_region(region))
        query = query.order_by(FareRoute.departure_kor.asc(), FareRoute.id.asc())

        result = await db.execute(query)
        return _dedupe_locations(result.all())

    async def list_arrivals(
        self,
        db: AsyncSession,
        departure: str,
        region: str | None = None,
        lang: str = "kor",
    ) -> list[dict]:
        """Distinct arrival names reachable from a departure, sorted by name."""
        departure_column = FareRoute.departure_eng if lang == "eng" else FareRoute.departure_kor
        query = select(
            FareRoute.arrival_kor, FareRoute.arrival_eng, FareRoute.arrival_is_airport
        ).where(FareRoute.is_active.is_(True), departure_column == departure.strip())
        if region:
            query = query.where(FareRoute.region == normalize_region(region))
        query = query.order_by(FareRoute.arrival_kor.asc(), FareRoute.id.asc())

        result = await db.execute(query)
        return _dedupe_locations(result.all())

    async def list_regions(self, db: AsyncSession) -> list[str]:
        result = await db.execute(
            select(FareRoute.region)
            .where(FareRoute.is_active.is_(True))
            .distinct()
            .order_by(FareRoute.region.asc())
        )
        return list(result.scalars().all())

    async def region_stats(self, db: AsyncSession) -> list[dict]:
        """Per-region row count, mean fees and airport endpoint counts."""
        result = await db.execute(
            select(
                FareRoute.region,
                func.count(FareRoute.id),
                func.avg(FareRoute.reservation_fee),
                func.avg(FareRoute.local_payment_fee),
                func.sum(case((FareRoute.departure_is_airport.is_(True), 1), else_=0)),
                func.sum(case((FareRoute.arrival_is_airport.is_(True), 1), else_=0)),
            )
            .where(FareRoute.is_active.is_(True))
            .group_by(FareRoute.region)
            .order_by(FareRoute.region.asc())
        )
        return [
            {
                "region": region,
                "count": count,
                "avg_reservation_fee": round(float(avg_reservation or 0), 2),
                "avg_local_payment_fee": round(float(avg_local or 0), 2),
                "airport_departures": int(airport_departures or 0),
                "airport_arrivals": int(airport_arrivals or 0),
            }
            for region, count, avg_reservation, avg_local, airport_departures, airport_arrivals in result.all()
        ]


def _dedupe_locations(rows: Iterable[tuple[str, str, bool]]) -> list[dict]:
    seen: dict[str, dict] = {}
    for name_kor, name_eng, is_airport in rows:
        if name_kor not in seen:
            seen[name_kor] = {"name_kor": name_kor, "name_eng": name_eng, "is_airport": is_airport}
    return list(seen.values())


# Singleton instance
fare_service = FareService()
