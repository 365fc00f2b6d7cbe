"""Curated Cleveland events used as the offline fallback catalog.

Dates are relative to "now" so the catalog always looks upcoming. The catalog
only applies to callers within their search radius of downtown Cleveland.
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import settings
from utils.distance import haversine_miles

from .state import AdapterResult, CatalogEvent, EventDiscoveryFilters, parse_iso, to_iso_utc

SOURCE = "catalog"

# days_from_now, (hour, minute) local start, duration in hours
_CATALOG = (
    {
        "id": "cat_001", "title": "Guardians vs Athletics", "category": "sports",
        "days": 2, "start": (18, 10), "hours": 3,
        "venue": "Progressive Field", "address": "2401 Ontario St, Cleveland, OH 44115",
        "geo": {"lat": 41.4962, "lng": -81.6852}, "popularity": 0.92, "description": "MLB Baseball",
    },
    {
        "id": "cat_002", "title": "Browns vs Ravens", "category": "sports",
        "days": 4, "start": (13, 0), "hours": 3.5,
        "venue": "Cleveland Browns Stadium", "address": "100 Alfred Lerner Way, Cleveland, OH 44114",
        "geo": {"lat": 41.5061, "lng": -81.6995}, "popularity": 0.98, "description": "NFL Football",
    },
    {
        "id": "cat_003", "title": "Imagine Dragons Live", "category": "concert",
        "days": 6, "start": (20, 0), "hours": 3,
        "venue": "Rocket Mortgage FieldHouse", "address": "1 Center Ct, Cleveland, OH 44115",
        "geo": {"lat": 41.4965, "lng": -81.6881}, "popularity": 0.95, "description": "Arena Rock Concert",
    },
    {
        "id": "cat_004", "title": "Downtown Willoughby Bar Crawl", "category": "bar",
        "days": 1, "start": (21, 0), "hours": 4,
        "venue": "Downtown Willoughby", "address": "4057 Erie St, Willoughby, OH 44094",
        "geo": {"lat": 41.6397, "lng": -81.4067}, "popularity": 0.78,
        "description": "Pub crawl featuring 1899, Ballantine, Willoughby Brewing Co.",
    },
    {
        "id": "cat_005", "title": "Latest Blockbuster Movie", "category": "general",
        "days": 0, "start": (19, 30), "hours": 2.5,
        "venue": "Atlas Cinemas Eastgate 10", "address": "1970 Mentor Ave, Painesville, OH 44077",
        "geo": {"lat": 41.7294, "lng": -81.2458}, "popularity": 0.72, "description": "Opening weekend premiere",
    },
    {
        "id": "cat_006", "title": "Comedy Night at Hilarities", "category": "general",
        "days": 3, "start": (20, 0), "hours": 2,
        "venue": "Hilarities 4th Street Theatre", "address": "2035 E 4th St, Cleveland, OH 44115",
        "geo": {"lat": 41.4989, "lng": -81.6901}, "popularity": 0.85, "description": "Stand-up comedy showcase",
    },
    {
        "id": "cat_007", "title": "Hamilton at Playhouse Square", "category": "general",
        "days": 7, "start": (19, 30), "hours": 3,
        "venue": "Playhouse Square", "address": "1501 Euclid Ave, Cleveland, OH 44115",
        "geo": {"lat": 41.5014, "lng": -81.6789}, "popularity": 0.96, "description": "Broadway Musical",
    },
    {
        "id": "cat_008", "title": "Summer Music Festival", "category": "concert",
        "days": 10, "start": (17, 0), "hours": 5,
        "venue": "Blossom Music Center", "address": "1145 W Steels Corners Rd, Cuyahoga Falls, OH 44223",
        "geo": {"lat": 41.1597, "lng": -81.5547}, "popularity": 0.89,
        "description": "Outdoor festival with multiple artists",
    },
    {
        "id": "cat_009", "title": "Museum Gala at University Circle", "category": "general",
        "days": 5, "start": (18, 0), "hours": 4,
        "venue": "Cleveland Museum of Art", "address": "11150 East Blvd, Cleveland, OH 44106",
        "geo": {"lat": 41.5089, "lng": -81.6119}, "popularity": 0.81, "description": "Family-friendly art event",
    },
    {
        "id": "cat_010", "title": "Edgewater Summer Festival", "category": "general",
        "days": 8, "start": (12, 0), "hours": 8,
        "venue": "Edgewater Park", "address": "6500 Cleveland Memorial Shoreway, Cleveland, OH 44102",
        "geo": {"lat": 41.4869, "lng": -81.7397}, "popularity": 0.83,
        "description": "Beach festival with food, music, and activities",
    },
    {
        "id": "cat_011", "title": "Jazz Night at Nighttown", "category": "bar",
        "days": 2, "start": (21, 30), "hours": 3,
        "venue": "Nighttown", "address": "12387 Cedar Rd, Cleveland Heights, OH 44106",
        "geo": {"lat": 41.5043, "lng": -81.5841}, "popularity": 0.76, "description": "Live jazz performance",
    },
    {
        "id": "cat_012", "title": "Indie Film Premiere", "category": "general",
        "days": 6, "start": (19, 0), "hours": 2,
        "venue": "Tower City Cinemas", "address": "230 W Huron Rd, Cleveland, OH 44113",
        "geo": {"lat": 41.4982, "lng": -81.6942}, "popularity": 0.68, "description": "Independent film screening",
    },
    {
        "id": "cat_013", "title": "Guardians vs Yankees", "category": "sports",
        "days": 12, "start": (19, 10), "hours": 3,
        "venue": "Progressive Field", "address": "2401 Ontario St, Cleveland, OH 44115",
        "geo": {"lat": 41.4962, "lng": -81.6852}, "popularity": 0.97, "description": "MLB Baseball",
    },
    {
        "id": "cat_014", "title": "Electronic Music Festival", "category": "concert",
        "days": 9, "start": (22, 0), "hours": 5,
        "venue": "The Agora Theatre", "address": "5000 Euclid Ave, Cleveland, OH 44103",
        "geo": {"lat": 41.5042, "lng": -81.6163}, "popularity": 0.84, "description": "EDM showcase with top DJs",
    },
    {
        "id": "cat_015", "title": "Cavs Watch Party", "category": "bar",
        "days": 4, "start": (20, 0), "hours": 3,
        "venue": "Barley House", "address": "1261 W 58th St, Cleveland, OH 44102",
        "geo": {"lat": 41.4846, "lng": -81.7178}, "popularity": 0.73, "description": "NBA playoff watch party",
    },
)


def build_catalog(now: datetime | None = None) -> list[CatalogEvent]:
    """Materialize the curated catalog with dates relative to now."""
    tz = ZoneInfo(settings.REGION_TIMEZONE)
    now = (now or datetime.now(tz)).astimezone(tz)

    events = []
    for entry in _CATALOG:
        hour, minute = entry["start"]
        day = now + timedelta(days=entry["days"])
        start = day.replace(hour=hour, minute=minute, second=0, microsecond=0)
        end = start + timedelta(hours=entry["hours"])
        events.append({
            "id": entry["id"],
            "title": entry["title"],
            "category": entry["category"],
            "startISO": to_iso_utc(start),
            "endISO": to_iso_utc(end),
            "venue": entry["venue"],
            "address": entry["address"],
            "geo": dict(entry["geo"]),
            "popularity": entry["popularity"],
            "source": SOURCE,
            "description": entry["description"],
        })
    return events


def is_in_coverage(filters: EventDiscoveryFilters) -> bool:
    """True when downtown Cleveland lies within the caller's search radius."""
    reference = {"lat": settings.REFERENCE_LAT, "lng": settings.REFERENCE_LNG}
    return haversine_miles(filters.origin, reference) <= filters.radius


def get_local_events(filters: EventDiscoveryFilters, now: datetime | None = None) -> list[CatalogEvent]:
    """
    Curated events matching the filters.

    Args:
        filters: Search filters; the origin must be within radius of Cleveland
        now: Anchor for the relative catalog dates (defaults to current time)

    Returns:
        Matching events, or [] outside the covered region
    """
    if not is_in_coverage(filters):
        return []

    events = build_catalog(now)

    if filters.category:
        events = [e for e in events if e["category"] == filters.category]

    if filters.keyword:
        keyword = filters.keyword.lower()
        events = [
            e for e in events
            if keyword in e["title"].lower()
            or keyword in e["venue"].lower()
            or keyword in e.get("description", "").lower()
        ]

    if filters.start_date_time:
        events = [e for e in events if parse_iso(e["startISO"]) >= filters.start_date_time]

    if filters.end_date_time:
        events = [e for e in events if parse_iso(e["startISO"]) <= filters.end_date_time]

    return events


def discover_local(filters: EventDiscoveryFilters, now: datetime | None = None) -> AdapterResult:
    return AdapterResult(source=SOURCE, events=get_local_events(filters, now))
