"""Curated venue tables and geospatial lookups.

The directory is loaded from a JSON data file so new teams, aliases and
venues can be added without code changes. It holds:

- points_of_interest: places smart add can resolve to (PlaceCategory)
- venues: the venue listing used by name matching and paging (EventCategory)
- teams: team keywords -> home venue
- aliases: short names -> canonical venue name
- drop_off_points: per-venue rideshare spots
"""

import json
from pathlib import Path

import settings
from utils.distance import haversine_miles
from utils.observability import log_event

from .paths import VENUES_FILE
from .state import DropOffPoint, Place, VenueMatch


class VenueDirectory:
    """In-memory venue and alias tables with distance-ranked search."""

    def __init__(self, data: dict):
        self.points_of_interest: list[Place] = list(data.get("points_of_interest", []))
        self.venues: list[VenueMatch] = list(data.get("venues", []))
        self.teams: list[dict] = list(data.get("teams", []))
        self.aliases: dict[str, str] = {
            k.lower(): v for k, v in data.get("aliases", {}).items()
        }
        self.drop_off_presets: dict[str, list[DropOffPoint]] = dict(data.get("drop_off_points", {}))
        origin = data.get("default_origin") or {}
        self.default_origin = {
            "lat": origin.get("lat", settings.REFERENCE_LAT),
            "lng": origin.get("lng", settings.REFERENCE_LNG),
        }

    @classmethod
    def from_file(cls, path: Path | str = VENUES_FILE) -> "VenueDirectory":
        with open(path) as f:
            data = json.load(f)
        directory = cls(data)
        log_event(
            "venue_directory_loaded",
            path=str(path),
            points_of_interest=len(directory.points_of_interest),
            venues=len(directory.venues),
            teams=len(directory.teams),
        )
        return directory

    def normalize_venue_name(self, query: str) -> str:
        """Resolve a short name ("the jake") to its canonical venue name."""
        return self.aliases.get(query.strip().lower(), query)

    def venue_for_team(self, team: str) -> str | None:
        for entry in self.teams:
            if entry.get("team") == team:
                return entry.get("venue")
        return None

    def find_place(self, name: str) -> Place | None:
        canonical = self.normalize_venue_name(name)
        for poi in self.points_of_interest:
            if poi["name"] == canonical:
                return dict(poi)
        return None

    def find_venue(self, name: str) -> VenueMatch | None:
        canonical = self.normalize_venue_name(name)
        for venue in self.venues:
            if venue["name"] == canonical:
                return dict(venue)
        return None

    def drop_off_points(self, venue_name: str) -> list[DropOffPoint]:
        canonical = self.normalize_venue_name(venue_name)
        return [dict(p) for p in self.drop_off_presets.get(canonical, [])]

    def find_venue_matches(
        self,
        query: str,
        lat: float | None = None,
        lng: float | None = None,
    ) -> list[VenueMatch]:
        """
        Match venues by case-insensitive name substring.

        Args:
            query: Venue name or alias fragment
            lat: Origin latitude; with lng, results are ranked by distance
            lng: Origin longitude

        Returns:
            Up to VENUE_MATCH_LIMIT venues, nearest first when an origin is given
        """
        needle = self.normalize_venue_name(query).lower()
        matches = [dict(v) for v in self.venues if needle in v["name"].lower()]

        if lat is not None and lng is not None:
            origin = {"lat": lat, "lng": lng}
            for match in matches:
                match["distance"] = haversine_miles(origin, match)
            # sorted() is stable: equal distances keep table order
            matches = sorted(matches, key=lambda m: m["distance"])

        return matches[: settings.VENUE_MATCH_LIMIT]

    def search_nearby(
        self,
        query: str,
        origin: dict,
        radius_miles: float,
        category: str | None = None,
    ) -> list[Place]:
        """
        Points of interest within radius whose name or address contains the query.

        Args:
            query: Search text
            origin: {"lat", "lng"} to measure from
            radius_miles: Maximum distance
            category: Only return places of this PlaceCategory

        Returns:
            Up to NEARBY_SEARCH_LIMIT places with distanceMiles, nearest first
        """
        needle = query.strip().lower()
        results = []
        for poi in self.points_of_interest:
            distance = haversine_miles(origin, poi)
            if distance > radius_miles:
                continue
            if category and poi.get("category") != category:
                continue
            if needle not in poi["name"].lower() and needle not in poi["address"].lower():
                continue
            results.append({**poi, "distanceMiles": distance})

        results.sort(key=lambda p: p["distanceMiles"])
        return results[: settings.NEARBY_SEARCH_LIMIT]

    def fetch_venues_page(
        self,
        center: dict,
        radius_miles: float,
        page: int = 0,
        limit: int = 20,
        category: str | None = None,
    ) -> list[dict]:
        """One page of venues within radius of center, nearest first."""
        within = []
        for venue in self.venues:
            distance = haversine_miles(center, venue)
            if distance > radius_miles:
                continue
            if category and venue.get("category") != category:
                continue
            within.append({**venue, "distanceMiles": distance})

        within.sort(key=lambda v: v["distanceMiles"])
        start = page * limit
        return within[start:start + limit]


_DEFAULT_DIRECTORY: VenueDirectory | None = None


def get_directory() -> VenueDirectory:
    """Load the bundled directory once and reuse it."""
    global _DEFAULT_DIRECTORY
    if _DEFAULT_DIRECTORY is None:
        _DEFAULT_DIRECTORY = VenueDirectory.from_file()
    return _DEFAULT_DIRECTORY
