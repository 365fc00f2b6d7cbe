"""Event discovery - provider adapters, local catalog and aggregation."""

from .state import (
    CatalogEvent,
    EventDiscoveryFilters,
    AdapterWarning,
    AdapterResult,
    DiscoveryResult,
)
from .ticketmaster_client import TicketmasterClient, map_ticketmaster_event, discover_events_from_ticketmaster
from .eventbrite_client import EventbriteClient, map_eventbrite_event, discover_events_from_eventbrite
from .local_catalog import get_local_events
from .aggregator import discover_events, dedupe_events, sort_events

__all__ = [
    # Types
    "CatalogEvent",
    "EventDiscoveryFilters",
    "AdapterWarning",
    "AdapterResult",
    "DiscoveryResult",
    # Providers
    "TicketmasterClient",
    "map_ticketmaster_event",
    "discover_events_from_ticketmaster",
    "EventbriteClient",
    "map_eventbrite_event",
    "discover_events_from_eventbrite",
    "get_local_events",
    # Aggregation
    "discover_events",
    "dedupe_events",
    "sort_events",
]
