"""Ride quotes for booked event rides.

A quote is base fare plus a per-mile charge and any airport fee, multiplied by
a combined surge (time of day, venue demand, event day) and rounded up to the
nearest $5.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

import settings

AIRPORTS = (
    {"code": "CLE", "name": "Cleveland Hopkins International Airport", "fee": 25},
    {"code": "CMH", "name": "John Glenn Columbus International Airport", "fee": 20},
    {"code": "DAY", "name": "Dayton International Airport", "fee": 30},
)

VENUE_SURGE_MULTIPLIERS = {
    "Progressive Field": 1.3,
    "Rocket Mortgage FieldHouse": 1.25,
    "Cleveland Browns Stadium": 1.4,
    "Jacobs Pavilion": 1.15,
    "House of Blues Cleveland": 1.1,
    "The Agora Theatre": 1.1,
}

# Venues where a scheduled event adds EVENT_DAY_SURGE
EVENT_DAY_VENUES = frozenset([
    "Progressive Field",
    "Rocket Mortgage FieldHouse",
    "Cleveland Browns Stadium",
])

# (first hour, last hour, added surge), inclusive, local time
TIME_OF_DAY_SURGE = (
    (17, 20, 0.3),
    (21, 23, 0.2),
    (6, 8, 0.15),
)


@dataclass(frozen=True)
class RideQuote:
    """Priced ride. Built once by calculate_ride_quote and never mutated."""
    base: float
    distance_miles: float
    per_mile_cost: float
    airport_fee: float
    surge: float
    total: float
    breakdown: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "base": self.base,
            "distanceMiles": self.distance_miles,
            "perMileCost": self.per_mile_cost,
            "airportFee": self.airport_fee,
            "surge": self.surge,
            "total": self.total,
            "breakdown": list(self.breakdown),
        }


def _pickup_hour(pickup_time: datetime | str) -> int:
    if isinstance(pickup_time, str):
        pickup_time = datetime.fromisoformat(pickup_time.replace("Z", "+00:00"))
    if pickup_time.tzinfo is not None:
        pickup_time = pickup_time.astimezone(ZoneInfo(settings.REGION_TIMEZONE))
    return pickup_time.hour


def get_time_of_day_surge(pickup_time: datetime | str) -> float:
    hour = _pickup_hour(pickup_time)
    for first, last, surge in TIME_OF_DAY_SURGE:
        if first <= hour <= last:
            return surge
    return 0


def _venue_key(name: str) -> str:
    """Lower-cased name without a leading "The", so "The Agora Theatre" == "Agora Theatre"."""
    key = name.strip().lower()
    return key[4:] if key.startswith("the ") else key


_SURGE_BY_VENUE = {_venue_key(name): multiplier for name, multiplier in VENUE_SURGE_MULTIPLIERS.items()}
_EVENT_DAY_KEYS = frozenset(_venue_key(name) for name in EVENT_DAY_VENUES)


def get_venue_surge(venue: str | None) -> float:
    if not venue:
        return 0
    multiplier = _SURGE_BY_VENUE.get(_venue_key(venue))
    if not multiplier:
        return 0
    return round(multiplier - 1, 4)


def get_airport_fee(destination: str) -> float:
    """Fee for the first airport whose name or code appears in the destination.

    Codes must be whole words, so "Cleveland" does not match CLE.
    """
    dest = destination.lower()
    for airport in AIRPORTS:
        if airport["name"].lower() in dest or re.search(rf"\b{airport['code'].lower()}\b", dest):
            return airport["fee"]
    return 0


def get_event_day_surge(event_date: str | None, venue: str | None) -> float:
    if not event_date or not venue:
        return 0
    if _venue_key(venue) in _EVENT_DAY_KEYS:
        return settings.EVENT_DAY_SURGE
    return 0


def _round_up(amount: float, step: float) -> float:
    return math.ceil(round(amount / step, 9)) * step


def calculate_ride_quote(
    distance_miles: float,
    destination: str,
    pickup_time: datetime | str,
    venue: str | None = None,
    event_date: str | None = None,
) -> RideQuote:
    """
    Price a ride to an event.

    Args:
        distance_miles: Trip distance (see utils.distance.haversine_miles)
        destination: Destination address or place name (airport detection)
        pickup_time: Pickup datetime or ISO-8601 string
        venue: Venue name for venue and event-day surge
        event_date: Event date; enables event-day surge at major venues

    Returns:
        RideQuote with total rounded up to the nearest $5
    """
    if distance_miles < 0:
        raise ValueError("distance_miles must be >= 0")

    base = settings.RIDE_QUOTE_BASE_FARE
    per_mile_cost = round(distance_miles * settings.RIDE_QUOTE_PER_MILE, 2)
    airport_fee = get_airport_fee(destination)
    time_surge = get_time_of_day_surge(pickup_time)
    venue_surge = get_venue_surge(venue)
    event_surge = get_event_day_surge(event_date, venue)

    total_surge = round(1 + time_surge + venue_surge + event_surge, 4)
    subtotal = (base + per_mile_cost + airport_fee) * total_surge
    total = _round_up(subtotal, settings.RIDE_QUOTE_ROUNDING_STEP)

    breakdown = [
        f"Base fare: ${base}",
        f"Distance ({distance_miles:g} mi): ${per_mile_cost:.2f}",
    ]
    if airport_fee > 0:
        breakdown.append(f"Airport fee: ${airport_fee}")
    if time_surge > 0:
        breakdown.append(f"Time surge: +{time_surge * 100:.0f}%")
    if venue_surge > 0:
        breakdown.append(f"Venue surge: +{venue_surge * 100:.0f}%")
    if event_surge > 0:
        breakdown.append(f"Event day surge: +{event_surge * 100:.0f}%")

    return RideQuote(
        base=base,
        distance_miles=distance_miles,
        per_mile_cost=per_mile_cost,
        airport_fee=airport_fee,
        surge=total_surge,
        total=total,
        breakdown=tuple(breakdown),
    )
