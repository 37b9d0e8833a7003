"""Great-circle distance helpers for nearby lookups."""

import math

EARTH_RADIUS_M = 6_371_000


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in metres between two (lat, lng) points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def within_radius(
    lat: float, lng: float, point_lat: float | None, point_lng: float | None, max_distance_m: float
) -> float | None:
    """Return the distance when the point lies inside the radius, else None."""
    if point_lat is None or point_lng is None:
        return None
    distance = haversine_m(lat, lng, point_lat, point_lng)
    return distance if distance <= max_distance_m else None
