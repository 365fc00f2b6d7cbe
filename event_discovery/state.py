"""Data models for event discovery."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, TypedDict

EventCategory = Literal[
    "concert", "bar", "holiday", "sports", "general", "comedy", "theater",
    "art", "food", "family", "festival", "conference", "community", "nightlife",
]

EVENT_CATEGORIES = frozenset([
    "concert", "bar", "holiday", "sports", "general", "comedy", "theater",
    "art", "food", "family", "festival", "conference", "community", "nightlife",
])


class GeoPoint(TypedDict):
    lat: float
    lng: float


class _CatalogEventBase(TypedDict):
    id: str
    title: str
    category: str
    startISO: str
    endISO: str
    venue: str
    address: str
    geo: GeoPoint
    popularity: float
    source: str


class CatalogEvent(_CatalogEventBase, total=False):
    """A normalized, source-tagged event. Read-only once an adapter returns it."""
    description: str


def parse_iso(value: str | datetime) -> datetime:
    """Parse an ISO-8601 string (a trailing Z is accepted) into an aware datetime.

    Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso_utc(dt: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision, e.g. 2025-11-05T01:00:00.000Z."""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass
class EventDiscoveryFilters:
    """Where and what to search for. Radius is in miles."""
    latitude: float
    longitude: float
    radius: float
    category: str | None = None
    keyword: str | None = None
    start_date_time: datetime | None = None
    end_date_time: datetime | None = None
    size: int | None = None

    def __post_init__(self):
        if self.category == "all":
            self.category = None
        if self.start_date_time is not None:
            self.start_date_time = parse_iso(self.start_date_time)
        if self.end_date_time is not None:
            self.end_date_time = parse_iso(self.end_date_time)
        if self.radius < 0:
            raise ValueError("radius must be >= 0")

    @property
    def origin(self) -> GeoPoint:
        return {"lat": self.latitude, "lng": self.longitude}

    @classmethod
    def from_dict(cls, data: dict) -> "EventDiscoveryFilters":
        """Build from a camelCase request payload."""
        size = data.get("size")
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            radius=float(data["radius"]),
            category=data.get("category") or None,
            keyword=data.get("keyword") or None,
            start_date_time=data.get("startDateTime") or None,
            end_date_time=data.get("endDateTime") or None,
            size=int(size) if size else None,
        )


@dataclass(frozen=True)
class AdapterWarning:
    """Why a provider contributed nothing (or less than it could)."""
    source: str
    reason: str  # "missing_api_key", "http_error", "timeout", "request_failed", "parse_error"
    detail: str = ""

    def to_dict(self) -> dict:
        return {"source": self.source, "reason": self.reason, "detail": self.detail}


@dataclass
class AdapterResult:
    """Events from one provider plus any degradation warning."""
    source: str
    events: list[CatalogEvent] = field(default_factory=list)
    warnings: list[AdapterWarning] = field(default_factory=list)


@dataclass
class DiscoveryResult:
    """Merged, deduplicated catalog with provider warnings."""
    events: list[CatalogEvent] = field(default_factory=list)
    warnings: list[AdapterWarning] = field(default_factory=list)
    source_counts: dict[str, int] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict:
        return {
            "events": self.events,
            "warnings": [w.to_dict() for w in self.warnings],
            "sourceCounts": dict(self.source_counts),
            "count": len(self.events),
            "degraded": self.degraded,
        }
