"""
Merge provider results and the local catalog into one deduplicated list.

Providers run in parallel; each contributes an AdapterResult. Results are
merged in provider order (Ticketmaster, Eventbrite, then the local catalog) so
the first copy of a duplicated event is deterministic regardless of which
request finished first.
"""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

import settings
from utils.distance import haversine_miles
from utils.observability import increment, log_event, record_failure

from .eventbrite_client import EventbriteClient
from .local_catalog import discover_local
from .state import (
    AdapterResult,
    AdapterWarning,
    CatalogEvent,
    DiscoveryResult,
    EventDiscoveryFilters,
    GeoPoint,
    parse_iso,
)
from .ticketmaster_client import TicketmasterClient

Adapter = Callable[[EventDiscoveryFilters], AdapterResult]

SORT_OPTIONS = ("soonest", "nearest", "popular")


def default_adapters() -> list[tuple[str, Adapter]]:
    return [
        ("ticketmaster", TicketmasterClient().discover),
        ("eventbrite", EventbriteClient().discover),
    ]


def event_key(event: CatalogEvent) -> tuple[str, str, str]:
    """Identity of an event across providers."""
    return (
        (event.get("title") or "").strip().lower(),
        event.get("startISO") or "",
        (event.get("venue") or "").strip().lower(),
    )


def dedupe_events(events: Iterable[CatalogEvent]) -> list[CatalogEvent]:
    """Drop repeats of the same event; the first occurrence wins."""
    seen = set()
    unique = []
    for event in events:
        key = event_key(event)
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def _run_adapters(
    adapters: list[tuple[str, Adapter]],
    filters: EventDiscoveryFilters,
) -> list[AdapterResult]:
    results: dict[int, AdapterResult] = {}

    with ThreadPoolExecutor(max_workers=settings.DISCOVERY_WORKERS) as executor:
        futures = {
            executor.submit(adapter, filters): (index, source)
            for index, (source, adapter) in enumerate(adapters)
        }

        for future in as_completed(futures):
            index, source = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                # Adapters are expected to convert their own failures, this is the backstop
                record_failure(f"discovery.{source}", "unexpected_error", error=str(e))
                results[index] = AdapterResult(
                    source=source,
                    warnings=[AdapterWarning(source, "request_failed", str(e))],
                )

    return [results[i] for i in range(len(adapters))]


def discover_events(
    filters: EventDiscoveryFilters,
    adapters: list[tuple[str, Adapter]] | None = None,
) -> DiscoveryResult:
    """
    Discover events from every provider plus the local catalog.

    Args:
        filters: Location, radius and optional category/keyword/date window
        adapters: (source, callable) pairs to query; defaults to Ticketmaster
            and Eventbrite with keys from config

    Returns:
        DiscoveryResult with deduplicated events and per-provider warnings.
        Never raises for provider failures.
    """
    increment("discovery.requests")
    adapters = adapters if adapters is not None else default_adapters()

    provider_results = _run_adapters(adapters, filters) if adapters else []
    provider_results.append(discover_local(filters))

    merged: list[CatalogEvent] = []
    warnings: list[AdapterWarning] = []
    for result in provider_results:
        merged.extend(result.events)
        warnings.extend(result.warnings)

    events = dedupe_events(merged)

    source_counts: dict[str, int] = {}
    for event in events:
        source_counts[event["source"]] = source_counts.get(event["source"], 0) + 1

    log_event(
        "discovery_complete",
        fetched=len(merged),
        unique=len(events),
        sources=source_counts,
        warnings=[w.reason for w in warnings],
    )
    return DiscoveryResult(events=events, warnings=warnings, source_counts=source_counts)


def sort_events(
    events: list[CatalogEvent],
    sort: str = "soonest",
    origin: GeoPoint | None = None,
) -> list[CatalogEvent]:
    """
    Order events for display.

    "soonest" is by start time, "nearest" by distance from origin (start time
    breaks ties), "popular" by descending popularity.
    """
    if sort not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort: {sort}")

    if sort == "popular":
        return sorted(events, key=lambda e: (-e["popularity"], parse_iso(e["startISO"])))

    if sort == "nearest":
        if origin is None:
            raise ValueError("nearest sort requires an origin")
        return sorted(events, key=lambda e: (haversine_miles(origin, e["geo"]), parse_iso(e["startISO"])))

    return sorted(events, key=lambda e: parse_iso(e["startISO"]))
