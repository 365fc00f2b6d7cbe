"""Great-circle distance and the smart-add fare model."""

import math

import settings

EARTH_RADIUS_MILES = 3959


def haversine_miles(a: dict, b: dict) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Args:
        a: Point with "lat" and "lng" keys (degrees)
        b: Point with "lat" and "lng" keys (degrees)

    Returns:
        Distance in miles
    """
    lat1 = math.radians(a["lat"])
    lat2 = math.radians(b["lat"])
    d_lat = math.radians(b["lat"] - a["lat"])
    d_lng = math.radians(b["lng"] - a["lng"])

    h = (
        math.sin(d_lat / 2) ** 2
        + math.sin(d_lng / 2) ** 2 * math.cos(lat1) * math.cos(lat2)
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


def distance_between(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance for bare coordinates."""
    return haversine_miles({"lat": lat1, "lng": lng1}, {"lat": lat2, "lng": lng2})


def within_radius(origin: dict, point: dict, radius_miles: float) -> bool:
    return haversine_miles(origin, point) <= radius_miles


def estimate_fare(distance_miles: float, surge: float = 1) -> float:
    """
    Estimate a ride fare in USD, rounded up to the nearest $0.05.

    fare = ceil((BASE + miles * PER_MILE) * surge * 20) / 20
    """
    steps_per_dollar = round(1 / settings.FARE_ROUNDING_STEP)
    raw = (settings.SMART_ADD_BASE_FARE + distance_miles * settings.SMART_ADD_PER_MILE) * surge
    # Trim float noise so an exact multiple (e.g. 3.00) doesn't round up a step.
    scaled = round(raw * steps_per_dollar, 9)
    return math.ceil(scaled) / steps_per_dollar
