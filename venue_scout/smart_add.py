"""Resolve free-text "smart add" queries into places with a fare estimate.

Team mentions ("browns game", "cavs tonight") are treated as unambiguous and
go straight to the team's home venue, even when a generic search would find
something closer. Everything else is a radius search over the directory,
filtered by the detected category and ranked by distance.
"""

import settings
from utils.distance import estimate_fare, haversine_miles
from utils.observability import increment, log_event

from .directory import VenueDirectory, get_directory
from .query_filter import detect_intent, extract_venue_phrase, infer_category
from .state import ParsedSmartAdd, SmartAddResult

TOO_SHORT_NOTE = "Type at least 3 characters"
NO_MATCH_NOTE = "No nearby matches - try a different phrase or increase radius"


def smart_add(
    query: str,
    origin: dict | None = None,
    radius_miles: float = settings.SMART_ADD_DEFAULT_RADIUS_MILES,
    surge: float = 1.0,
    directory: VenueDirectory | None = None,
) -> SmartAddResult:
    """
    Resolve a free-text query into a primary place plus ranked candidates.

    Args:
        query: What the user typed
        origin: {"lat", "lng"} of the rider; directory default origin if None
        radius_miles: Search radius for non-team queries
        surge: Fare surge multiplier
        directory: Venue tables (bundled default if None)

    Returns:
        SmartAddResult; ok=False with notes when nothing could be resolved
    """
    increment("smart_add.calls")

    if len(query) < settings.SMART_ADD_MIN_QUERY_CHARS:
        return SmartAddResult(
            ok=False,
            query=query,
            surge_multiplier=surge,
            radius_miles=radius_miles,
            notes=TOO_SHORT_NOTE,
        )

    directory = directory or get_directory()
    user_loc = origin or directory.default_origin
    intent = detect_intent(query, directory)

    candidates = []
    team = intent.get("team")
    if team:
        venue_name = directory.venue_for_team(team)
        place = directory.find_place(venue_name) if venue_name else None
        if place:
            place["distanceMiles"] = haversine_miles(user_loc, place)
            candidates = [place]
    else:
        search_query = intent["venueTokens"][0] if intent.get("venueTokens") else query
        candidates = directory.search_nearby(
            search_query,
            origin=user_loc,
            radius_miles=radius_miles,
            category=intent.get("category"),
        )

    if not candidates:
        increment("smart_add.no_match")
        log_event("smart_add_no_match", query=query, category=intent.get("category"), radius_miles=radius_miles)
        return SmartAddResult(
            ok=False,
            query=query,
            surge_multiplier=surge,
            radius_miles=radius_miles,
            notes=NO_MATCH_NOTE,
        )

    primary = candidates[0]
    ride_estimate = None
    if primary.get("distanceMiles") is not None:
        ride_estimate = estimate_fare(primary["distanceMiles"], surge)

    return SmartAddResult(
        ok=True,
        query=query,
        surge_multiplier=surge,
        radius_miles=radius_miles,
        candidates=candidates,
        primary=primary,
        ride_estimate_usd=ride_estimate,
    )


def parse_smart_add(
    text: str,
    lat: float | None = None,
    lng: float | None = None,
    directory: VenueDirectory | None = None,
) -> ParsedSmartAdd:
    """
    Parse a plan for the venue picker: intent, quick-select venues and drop-off spots.

    A team mention resolves to the team's venue with its drop-off presets.
    Otherwise the phrase after "at" (or the whole text) is matched against
    venue names, nearest first when lat/lng are given.
    """
    directory = directory or get_directory()
    intent = detect_intent(text, directory)

    team = intent.get("team")
    if team:
        venue_name = directory.venue_for_team(team)
        venue = directory.find_venue(venue_name) if venue_name else None
        if venue:
            return ParsedSmartAdd(
                intent="sports",
                category="sports",
                query=venue["name"],
                primary=venue,
                quick_select=[venue],
                drop_points=directory.drop_off_points(venue["name"]),
            )

    query = extract_venue_phrase(text) or text
    matches = directory.find_venue_matches(query, lat, lng)
    primary = matches[0] if matches else None
    category = infer_category(text, primary["name"] if primary else None)
    drop_points = directory.drop_off_points(primary["name"]) if primary else []

    return ParsedSmartAdd(
        intent="social" if category == "bar" else category,
        category=category,
        query=query,
        primary=primary,
        quick_select=matches,
        drop_points=drop_points,
    )
