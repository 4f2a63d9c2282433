"""Great-circle distances in miles between observations and frequent-location centroids."""

import logging
import math

logger = logging.getLogger("location_api.clustering.geo_proximity")

# Earth radius in miles (approximate)
EARTH_RADIUS_MILES = 3959


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in miles between two (lat, lon) points."""
    a = math.radians(lat2 - lat1)
    b = math.radians(lon2 - lon1)
    x = math.sin(a / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(b / 2) ** 2
    c = 2 * math.atan2(math.sqrt(x), math.sqrt(1 - x))
    return EARTH_RADIUS_MILES * c


def distance_between(a, b) -> float:
    """Distance in miles between any two objects carrying latitude/longitude."""
    return haversine_miles(a.latitude, a.longitude, b.latitude, b.longitude)


def max_distance_from(points: list, origin) -> float:
    """Farthest point from origin in miles; 0 for an empty list."""
    if not points:
        return 0.0
    return max(distance_between(p, origin) for p in points)


def count_beyond(points: list, origin, radius_miles: float) -> int:
    """How many points lie strictly farther than radius_miles from origin."""
    return sum(1 for p in points if distance_between(p, origin) > radius_miles)


def is_near_any(point, centers: list, radius_miles: float) -> bool:
    """True if point is within radius_miles of at least one center."""
    return any(distance_between(point, c) <= radius_miles for c in centers)
