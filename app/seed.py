"""Sample fare catalog used by the seed script and tests."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.fare_route import FareRouteCreate
from app.services.catalog_service import catalog_service

JFK = {"lat": 40.6413, "lng": -73.7781}
MIDTOWN = {"lat": 40.7549, "lng": -73.9840}
LAX = {"lat": 33.9416, "lng": -118.4085}
DOWNTOWN_LA = {"lat": 34.0407, "lng": -118.2468}

SAMPLE_FARE_ROUTES: list[dict] = [
    # New York
    {
        "region": "NY",
        "departure_kor": "NY 존에프케네디 공항",
        "departure_eng": "JFK airport",
        "departure_is_airport": "Y",
        "arrival_kor": "NY 맨하탄 미드타운",
        "arrival_eng": "Manhattan Midtown",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 75,
        "priority": 1,
        "departure_lat": JFK["lat"],
        "departure_lng": JFK["lng"],
        "arrival_lat": MIDTOWN["lat"],
        "arrival_lng": MIDTOWN["lng"],
        "waypoints": [{"name": "Queens Midtown Tunnel", "lat": 40.7440, "lng": -73.9713}],
        "estimated_minutes": 55,
        "estimated_distance_km": 27.0,
    },
    {
        "region": "NY",
        "departure_kor": "NY 맨하탄 미드타운",
        "departure_eng": "Manhattan Midtown",
        "departure_is_airport": "N",
        "arrival_kor": "NY 존에프케네디 공항",
        "arrival_eng": "JFK airport",
        "arrival_is_airport": "Y",
        "reservation_fee": 10,
        "local_payment_fee": 75,
        "priority": 2,
        "departure_lat": MIDTOWN["lat"],
        "departure_lng": MIDTOWN["lng"],
        "arrival_lat": JFK["lat"],
        "arrival_lng": JFK["lng"],
        "estimated_minutes": 60,
        "estimated_distance_km": 27.0,
    },
    {
        "region": "NY",
        "departure_kor": "NY 라과디아 공항",
        "departure_eng": "LGA airport",
        "departure_is_airport": "Y",
        "arrival_kor": "NY 맨하탄 미드타운",
        "arrival_eng": "Manhattan Midtown",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 65,
        "priority": 3,
    },
    {
        "region": "NY",
        "departure_kor": "NJ 뉴와크 공항",
        "departure_eng": "EWR airport",
        "departure_is_airport": "Y",
        "arrival_kor": "NY 맨하탄 미드타운",
        "arrival_eng": "Manhattan Midtown",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 95,
        "priority": 5,
    },
    {
        "region": "NY",
        "departure_kor": "NY 존에프케네디 공항",
        "departure_eng": "JFK airport",
        "departure_is_airport": "Y",
        "arrival_kor": "NY 플러싱",
        "arrival_eng": "Flushing",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 55,
        "priority": 6,
    },
    {
        "region": "NY",
        "departure_kor": "NY 맨하탄 다운타운",
        "departure_eng": "Manhattan Downtown",
        "departure_is_airport": "N",
        "arrival_kor": "NY 브루클린",
        "arrival_eng": "Brooklyn",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 35,
        "priority": 10,
    },
    # New Jersey
    {
        "region": "NJ",
        "departure_kor": "NJ 뉴와크 공항",
        "departure_eng": "EWR airport",
        "departure_is_airport": "Y",
        "arrival_kor": "NJ 저지시티",
        "arrival_eng": "Jersey City",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 45,
        "priority": 1,
    },
    # California
    {
        "region": "CA",
        "departure_kor": "LAX 국제공항",
        "departure_eng": "LAX airport",
        "departure_is_airport": "Y",
        "arrival_kor": "LA 다운타운",
        "arrival_eng": "Downtown LA",
        "arrival_is_airport": "N",
        "reservation_fee": 15,
        "local_payment_fee": 65,
        "priority": 1,
        "departure_lat": LAX["lat"],
        "departure_lng": LAX["lng"],
        "arrival_lat": DOWNTOWN_LA["lat"],
        "arrival_lng": DOWNTOWN_LA["lng"],
        "estimated_minutes": 40,
        "estimated_distance_km": 30.5,
    },
    {
        "region": "CA",
        "departure_kor": "LA 다운타운",
        "departure_eng": "Downtown LA",
        "departure_is_airport": "N",
        "arrival_kor": "LAX 국제공항",
        "arrival_eng": "LAX airport",
        "arrival_is_airport": "Y",
        "reservation_fee": 15,
        "local_payment_fee": 65,
        "priority": 2,
    },
    {
        "region": "CA",
        "departure_kor": "LA 할리우드",
        "departure_eng": "Hollywood",
        "departure_is_airport": "N",
        "arrival_kor": "LA 베벌리힐스",
        "arrival_eng": "Beverly Hills",
        "arrival_is_airport": "N",
        "reservation_fee": 10,
        "local_payment_fee": 35,
        "priority": 10,
    },
]


async def seed_fare_routes(db: AsyncSession, clear: bool = False) -> int:
    """Load the sample catalog.

    Args:
        db: Database session (caller commits)
        clear: Purge the existing catalog first

    Returns:
        int: Number of rows imported
    """
    items = [FareRouteCreate.model_validate(row) for row in SAMPLE_FARE_ROUTES]
    imported, _ = await catalog_service.import_routes(db, items, clear_existing=clear)
    return imported
