"""Data models for venue lookup and smart add."""

from dataclasses import dataclass, field
from typing import Literal, TypedDict

PlaceCategory = Literal["bar", "restaurant", "stadium", "music", "theater", "park"]
Team = Literal["browns", "guardians", "cavaliers"]


class _PlaceBase(TypedDict):
    id: str
    name: str
    address: str
    lat: float
    lng: float


class Place(_PlaceBase, total=False):
    """A point of interest smart add can resolve to."""
    category: PlaceCategory
    distanceMiles: float  # Per-query, only when an origin is known


class _VenueMatchBase(TypedDict):
    placeId: str
    name: str
    address: str
    lat: float
    lng: float


class VenueMatch(_VenueMatchBase, total=False):
    """A named venue from the directory listing."""
    category: str  # EventCategory
    distance: float  # Per-query, only when an origin is known


class DropOffPoint(TypedDict):
    """A named curbside spot at a venue with several gates."""
    label: str
    lat: float
    lng: float


class Intent(TypedDict, total=False):
    """What a free-text query is asking for."""
    category: PlaceCategory
    venueTokens: list[str]
    team: Team


@dataclass
class SmartAddResult:
    """Outcome of resolving a smart-add query."""
    ok: bool
    query: str
    surge_multiplier: float
    radius_miles: float
    candidates: list[Place] = field(default_factory=list)
    primary: Place | None = None
    notes: str | None = None
    ride_estimate_usd: float | None = None

    def to_dict(self) -> dict:
        payload = {
            "ok": self.ok,
            "query": self.query,
            "candidates": [dict(c) for c in self.candidates],
            "surgeMultiplier": self.surge_multiplier,
            "radiusMiles": self.radius_miles,
        }
        if self.primary is not None:
            payload["primary"] = dict(self.primary)
        if self.notes is not None:
            payload["notes"] = self.notes
        if self.ride_estimate_usd is not None:
            payload["rideEstimateUSD"] = self.ride_estimate_usd
        return payload


@dataclass
class ParsedSmartAdd:
    """Venue-picker parse of a free-text plan ("drinks at barley house")."""
    intent: str
    category: str
    query: str
    primary: VenueMatch | None = None
    quick_select: list[VenueMatch] = field(default_factory=list)
    drop_points: list[DropOffPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "intent": self.intent,
            "category": self.category,
            "query": self.query,
            "primary": dict(self.primary) if self.primary else None,
            "quickSelect": [dict(v) for v in self.quick_select],
            "dropPoints": [dict(p) for p in self.drop_points],
        }
