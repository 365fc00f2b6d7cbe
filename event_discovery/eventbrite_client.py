"""Eventbrite search API adapter."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import requests

import settings
from utils.observability import increment, log_event, record_failure

from .categories import EVENTBRITE_CATEGORIES, map_eventbrite_category
from .config import get_eventbrite_key
from .state import AdapterResult, AdapterWarning, CatalogEvent, EventDiscoveryFilters, to_iso_utc

SOURCE = "eventbrite"


def _local_datetime(value: str, tz_name: str | None) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz_name or settings.REGION_TIMEZONE))
    return dt


def map_eventbrite_event(event: dict, filters: EventDiscoveryFilters) -> CatalogEvent:
    """
    Translate one Eventbrite event into a CatalogEvent.

    start.local/end.local are wall-clock times in start.timezone. A missing or
    non-increasing end time becomes start + 3h.

    Raises:
        KeyError, ValueError: if the event has no usable start time
    """
    venue = event.get("venue") or {}
    venue_address = venue.get("address") or {}
    address = ", ".join(
        part for part in (
            venue_address.get("address_1"),
            venue_address.get("city"),
            venue_address.get("region"),
            venue_address.get("postal_code"),
        ) if part
    ) or "Address TBA"

    lat = float(venue_address["latitude"]) if venue_address.get("latitude") else filters.latitude
    lng = float(venue_address["longitude"]) if venue_address.get("longitude") else filters.longitude

    start_info = event["start"]
    tz_name = start_info.get("timezone")
    start = _local_datetime(start_info["local"], tz_name)
    end_local = (event.get("end") or {}).get("local")
    end = _local_datetime(end_local, tz_name) if end_local else None
    if end is None or end <= start:
        end = start + timedelta(hours=settings.DEFAULT_EVENT_DURATION_HOURS)

    catalog_event: CatalogEvent = {
        "id": f"eb_{event['id']}",
        "title": (event.get("name") or {}).get("text") or "Untitled event",
        "category": map_eventbrite_category(
            (event.get("category") or {}).get("name"),
            (event.get("subcategory") or {}).get("name"),
        ),
        "startISO": to_iso_utc(start),
        "endISO": to_iso_utc(end),
        "venue": venue.get("name") or "TBA",
        "address": address,
        "geo": {"lat": lat, "lng": lng},
        "popularity": settings.EVENTBRITE_POPULARITY,
        "source": SOURCE,
    }

    description = ((event.get("description") or {}).get("text") or "")[: settings.EVENTBRITE_DESCRIPTION_CHARS]
    if description:
        catalog_event["description"] = description

    return catalog_event


class EventbriteClient:
    """Client for the Eventbrite event search API (Bearer token auth)."""

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else get_eventbrite_key()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_params(self, filters: EventDiscoveryFilters) -> dict:
        radius_km = round(filters.radius * settings.KM_PER_MILE)
        params = {
            "location.latitude": str(filters.latitude),
            "location.longitude": str(filters.longitude),
            "location.within": f"{radius_km}km",
            "expand": "venue,category",
            "page_size": str(filters.size or settings.EVENTBRITE_PAGE_SIZE),
        }

        if filters.keyword:
            params["q"] = filters.keyword
        if filters.start_date_time:
            params["start_date.range_start"] = filters.start_date_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        if filters.end_date_time:
            params["start_date.range_end"] = filters.end_date_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        if filters.category:
            category_name = EVENTBRITE_CATEGORIES.get(filters.category)
            if category_name:
                params["categories"] = category_name

        return params

    def search_events(self, filters: EventDiscoveryFilters) -> list[dict] | None:
        """Raw Eventbrite events, or None on a non-2xx response."""
        response = requests.get(
            f"{settings.EVENTBRITE_API_BASE}/events/search/",
            params=self.build_params(filters),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            timeout=settings.DISCOVERY_HTTP_TIMEOUT_SEC,
        )

        if not response.ok:
            record_failure("discovery.eventbrite", "http_error", status=response.status_code, body=response.text[:200])
            return None

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("unexpected Eventbrite response body")
        return data.get("events") or []

    def discover(self, filters: EventDiscoveryFilters) -> AdapterResult:
        """Fetch and normalize events. Never raises; failures become warnings."""
        result = AdapterResult(source=SOURCE)

        if not self.is_configured:
            log_event("discovery_provider_disabled", source=SOURCE, reason="missing_api_key")
            result.warnings.append(AdapterWarning(SOURCE, "missing_api_key", "Eventbrite API key not configured"))
            return result

        increment("discovery.eventbrite.calls")
        try:
            raw_events = self.search_events(filters)
        except requests.Timeout as e:
            record_failure("discovery.eventbrite", "timeout", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "timeout", str(e)))
            return result
        except ValueError as e:
            record_failure("discovery.eventbrite", "parse_error", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "parse_error", str(e)))
            return result
        except requests.RequestException as e:
            record_failure("discovery.eventbrite", "request_failed", error=str(e))
            result.warnings.append(AdapterWarning(SOURCE, "request_failed", str(e)))
            return result

        if raw_events is None:
            result.warnings.append(AdapterWarning(SOURCE, "http_error", "Eventbrite returned a non-2xx response"))
            return result

        skipped = 0
        for raw in raw_events:
            try:
                result.events.append(map_eventbrite_event(raw, filters))
            except (KeyError, TypeError, ValueError) as e:
                skipped += 1
                record_failure(
                    "discovery.eventbrite",
                    "parse_error",
                    event_id=raw.get("id") if isinstance(raw, dict) else None,
                    error=str(e),
                )

        if skipped:
            result.warnings.append(AdapterWarning(SOURCE, "parse_error", f"skipped {skipped} malformed events"))

        log_event("discovery_provider_done", source=SOURCE, events=len(result.events), skipped=skipped)
        return result


def discover_events_from_eventbrite(
    filters: EventDiscoveryFilters,
    api_key: str | None = None,
) -> list[CatalogEvent]:
    """Eventbrite events for the filters; [] on any failure."""
    return EventbriteClient(api_key=api_key).discover(filters).events
