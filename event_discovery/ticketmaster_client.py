"""Ticketmaster Discovery API adapter."""

import time
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import requests

import settings
from utils.observability import increment, log_event, record_failure

from .categories import TICKETMASTER_CLASSIFICATIONS, map_ticketmaster_category
from .config import get_ticketmaster_key
from .state import (
    AdapterResult,
    AdapterWarning,
    CatalogEvent,
    EventDiscoveryFilters,
    parse_iso,
    to_iso_utc,
)

SOURCE = "ticketmaster"


def calculate_popularity(event: dict) -> float:
    """Heuristic 0..1 score from how complete the listing is."""
    score = 0.5
    venues = (event.get("_embedded") or {}).get("venues") or []
    if venues:
        score += 0.2
    if event.get("images"):
        score += 0.1
    if event.get("priceRanges"):
        score += 0.1
    if event.get("url"):
        score += 0.1
    return round(min(score, 1.0), 2)


def _start_datetime(event: dict) -> datetime:
    dates = event.get("dates") or {}
    start = dates.get("start") or {}

    if start.get("dateTime"):
        return parse_iso(start["dateTime"])

    local_date = start.get("localDate")
    if not local_date:
        raise ValueError(f"event {event.get('id')} has no start date")
    local_time = start.get("localTime") or settings.DEFAULT_EVENT_START_TIME
    tz = ZoneInfo(dates.get("timezone") or settings.REGION_TIMEZONE)
    return datetime.fromisoformat(f"{local_date}T{local_time}").replace(tzinfo=tz)


def map_ticketmaster_event(event: dict, filters: EventDiscoveryFilters) -> CatalogEvent:
    """
    Translate one Ticketmaster event into a CatalogEvent.

    Ticketmaster only gives a start time, so the end is start + 3h. Venue
    coordinates fall back to the search origin when missing.

    Raises:
        ValueError: if the event has no usable start date
    """
    venues = (event.get("_embedded") or {}).get("venues") or []
    venue = venues[0] if venues else {}

    address = ", ".join(
        part for part in (
            (venue.get("address") or {}).get("line1"),
            (venue.get("city") or {}).get("name"),
            (venue.get("state") or {}).get("stateCode"),
            venue.get("postalCode"),
        ) if part
    ) or "Address TBA"

    location = venue.get("location") or {}
    lat = float(location["latitude"]) if location.get("latitude") else filters.latitude
    lng = float(location["longitude"]) if location.get("longitude") else filters.longitude

    start = _start_datetime(event)
    end = start + timedelta(hours=settings.DEFAULT_EVENT_DURATION_HOURS)

    classifications = event.get("classifications") or []
    catalog_event: CatalogEvent = {
        "id": f"tm_{event['id']}",
        "title": event.get("name") or "Untitled event",
        "category": map_ticketmaster_category(classifications),
        "startISO": to_iso_utc(start),
        "endISO": to_iso_utc(end),
        "venue": venue.get("name") or "TBA",
        "address": address,
        "geo": {"lat": lat, "lng": lng},
        "popularity": calculate_popularity(event),
        "source": SOURCE,
    }

    genre = ((classifications[0] if classifications else {}).get("genre") or {}).get("name")
    description = event.get("info") or genre
    if description:
        catalog_event["description"] = description

    return catalog_event


class TicketmasterClient:
    """Client for Ticketmaster Discovery API."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else get_ticketmaster_key()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request_with_retry(self, url: str, params: dict, max_retries: int = settings.TICKETMASTER_MAX_RETRIES) -> requests.Response | None:
        """Make a request with retry logic for rate limits."""
        for attempt in range(max_retries):
            try:
                response = requests.get(
                    url,
                    params=params,
                    headers={"Accept": "application/json"},
                    timeout=settings.DISCOVERY_HTTP_TIMEOUT_SEC,
                )

                if response.status_code == 429:
                    # Rate limited - wait and retry
                    wait_time = 2 ** attempt  # Exponential backoff: 1, 2, 4 seconds
                    time.sleep(wait_time)
                    continue

                return response

            except requests.Timeout:
                raise
            except requests.RequestException:
                if attempt < max_retries - 1:
                    time.sleep(1)
                    continue
                raise

        return None

    def build_params(self, filters: EventDiscoveryFilters) -> dict:
        """Query parameters for /events.json."""
        params = {
            "apikey": self.api_key,
            "latlong": f"{filters.latitude},{filters.longitude}",
            "radius": str(round(filters.radius)),
            "unit": "miles",
            "size": str(filters.size or settings.TICKETMASTER_PAGE_SIZE),
            "sort": "date,asc",
        }

        if filters.keyword:
            params["keyword"] = filters.keyword
        if filters.start_date_time:
            params["startDateTime"] = filters.start_date_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        if filters.end_date_time:
            params["endDateTime"] = filters.end_date_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        if filters.category:
            classification_name = TICKETMASTER_CLASSIFICATIONS.get(filters.category)
            if classification_name:
                params["classificationName"] = classification_name

        return params

    def search_events(self, filters: EventDiscoveryFilters) -> list[dict] | None:
        """
        Raw Ticketmaster events for the filters.

        Returns:
            List of provider event dicts, or None on a non-200 response

        Raises:
            requests.RequestException: on network failure
            ValueError: on an unparseable body
        """
        response = self._request_with_retry(
            f"{settings.TICKETMASTER_API_BASE}/events.json",
            params=self.build_params(filters),
        )

        if response is None or response.status_code != 200:
            status = response.status_code if response is not None else 429
            record_failure("discovery.ticketmaster", "http_error", status=status)
            return None

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("unexpected Ticketmaster response body")
        return (data.get("_embedded") or {}).get("events") or []

    def discover(self, filters: EventDiscoveryFilters) -> AdapterResult:
        """Fetch and normalize events. Never raises; failures become warnings."""
        result = AdapterResult(source=SOURCE)

        if not self.is_configured:
            log_event("discovery_provider_disabled", source=SOURCE, reason="missing_api_key")
            result.warnings.append(AdapterWarning(SOURCE, "missing_api_key", "Ticketmaster API key not configured"))
            return result

        increment("discovery.ticketmaster.calls")
        try:
            raw_events = self.search_events(filters)
        except requests.Timeout as e:
            record_failure("discovery.ticketmaster", "timeout", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "timeout", str(e)))
            return result
        except ValueError as e:
            # Also catches requests.JSONDecodeError
            record_failure("discovery.ticketmaster", "parse_error", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "parse_error", str(e)))
            return result
        except requests.RequestException as e:
            record_failure("discovery.ticketmaster", "request_failed", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "request_failed", str(e)))
            return result

        if raw_events is None:
            result.warnings.append(AdapterWarning(SOURCE, "http_error", "Ticketmaster returned a non-200 response"))
            return result

        skipped = 0
        for raw in raw_events:
            try:
                result.events.append(map_ticketmaster_event(raw, filters))
            except (KeyError, TypeError, ValueError) as e:
                skipped += 1
                record_failure("discovery.ticketmaster", "parse_error", event_id=raw.get("id") if isinstance(raw, dict) else None, error=str(e))

        if skipped:
            result.warnings.append(AdapterWarning(SOURCE, "parse_error", f"skipped {skipped} malformed events"))

        log_event("discovery_provider_done", source=SOURCE, events=len(result.events), skipped=skipped)
        return result


def discover_events_from_ticketmaster(
    filters: EventDiscoveryFilters,
    api_key: str | None = None,
) -> list[CatalogEvent]:
    """Ticketmaster events for the filters; [] on any failure."""
    return TicketmasterClient(api_key=api_key).discover(filters).events
