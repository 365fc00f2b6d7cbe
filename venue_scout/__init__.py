"""Venue Scout - venue directory lookups and smart-add query resolution."""

from .state import Place, VenueMatch, DropOffPoint, Intent, SmartAddResult, ParsedSmartAdd
from .directory import VenueDirectory, get_directory
from .query_filter import detect_intent, infer_category, extract_venue_phrase, intent_rules
from .smart_add import smart_add, parse_smart_add

__all__ = [
    # Core types
    "Place",
    "VenueMatch",
    "DropOffPoint",
    "Intent",
    "SmartAddResult",
    "ParsedSmartAdd",
    # Directory
    "VenueDirectory",
    "get_directory",
    # Intent detection
    "detect_intent",
    "infer_category",
    "extract_venue_phrase",
    "intent_rules",
    # Smart add
    "smart_add",
    "parse_smart_add",
]
