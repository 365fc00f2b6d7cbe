"""Keyword intent detection for smart-add queries.

Intent is decided by an ordered rule list; the first rule with a keyword
present in the lower-cased query wins. Team rules (built from the venue
directory) always come first, then the category families:

    team > theater > bar > restaurant > concert > park
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .directory import VenueDirectory, get_directory
from .state import Intent

_AT_PHRASE = re.compile(r"\bat\s+(.+)", re.IGNORECASE)


@dataclass(frozen=True)
class IntentRule:
    """Keywords that map a query onto a place category (and maybe a team)."""
    name: str
    category: str
    keywords: tuple[str, ...]
    team: str | None = None

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


CATEGORY_RULES: tuple[IntentRule, ...] = (
    IntentRule("theater", "theater", ("movie", "movies", "cinema", "theater")),
    IntentRule("bar", "bar", ("bar", "pub", "drink")),
    IntentRule("restaurant", "restaurant", ("restaurant", "food", "dinner", "lunch")),
    IntentRule("concert", "music", ("concert", "show", "music")),
    IntentRule("park", "park", ("park",)),
)


def team_rules(directory: VenueDirectory) -> tuple[IntentRule, ...]:
    return tuple(
        IntentRule(
            name=f"team:{entry['team']}",
            category="stadium",
            keywords=tuple(k.lower() for k in entry.get("keywords", [entry["team"]])),
            team=entry["team"],
        )
        for entry in directory.teams
    )


def intent_rules(directory: VenueDirectory | None = None) -> tuple[IntentRule, ...]:
    """Full rule list in priority order."""
    directory = directory or get_directory()
    return team_rules(directory) + CATEGORY_RULES


def extract_venue_phrase(query: str) -> str | None:
    """Return the phrase after the word "at" ("drinks at barley house" -> "barley house")."""
    match = _AT_PHRASE.search(query)
    if not match:
        return None
    phrase = match.group(1).strip()
    return phrase or None


def detect_intent(query: str, directory: VenueDirectory | None = None) -> Intent:
    """
    Detect team, place category and venue phrase in a free-text query.

    Args:
        query: Free text such as "browns game" or "dinner at lola"
        directory: Venue directory supplying team keywords (bundled default if None)

    Returns:
        Intent with at most one category
    """
    lower = query.lower()
    intent: Intent = {}

    for rule in intent_rules(directory):
        if rule.matches(lower):
            intent["category"] = rule.category
            if rule.team:
                intent["team"] = rule.team
            break

    phrase = extract_venue_phrase(query)
    if phrase:
        intent["venueTokens"] = [phrase]

    return intent


# Event-category inference for the venue picker: (category, text keywords, venue keywords)
EVENT_CATEGORY_RULES: tuple[tuple[str, tuple[str, ...], tuple[str, ...]], ...] = (
    ("sports", ("game", "match"), ("field", "stadium", "arena")),
    ("concert", ("concert", "show", "live", "tour"), ()),
    ("bar", ("bar", "pub", "club", "drinks", "party"), ("bar", "pub", "brewery")),
)


def infer_category(text: str, venue_name: str | None = None) -> str:
    """Guess the EventCategory of a plan from its text and resolved venue."""
    lower_text = text.lower()
    lower_venue = (venue_name or "").lower()

    for category, text_keywords, venue_keywords in EVENT_CATEGORY_RULES:
        if any(k in lower_text for k in text_keywords):
            return category
        if any(k in lower_venue for k in venue_keywords):
            return category

    return "general"
