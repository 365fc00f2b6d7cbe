"""Shared utilities."""

from .distance import haversine_miles, distance_between, within_radius, estimate_fare
from .pricing import RideQuote, calculate_ride_quote

__all__ = [
    "haversine_miles",
    "distance_between",
    "within_radius",
    "estimate_fare",
    "RideQuote",
    "calculate_ride_quote",
]
