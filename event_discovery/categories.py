"""Provider classification -> EventCategory rules.

Each provider gets an ordered rule list. A rule fires when any of its
substrings appears in the named provider field; the first firing rule wins and
anything unmatched is "general".
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryRule:
    category: str
    # field name -> substrings to look for in that (lower-cased) field
    patterns: tuple[tuple[str, tuple[str, ...]], ...]

    def matches(self, fields: dict[str, str]) -> bool:
        for field_name, needles in self.patterns:
            value = fields.get(field_name, "")
            if any(needle in value for needle in needles):
                return True
        return False


def _rule(category_name: str, **patterns: tuple[str, ...]) -> CategoryRule:
    return CategoryRule(category_name, tuple(patterns.items()))


TICKETMASTER_RULES: tuple[CategoryRule, ...] = (
    _rule("sports", segment=("sports",)),
    _rule("concert", segment=("music",), genre=("concert",)),
    _rule("comedy", genre=("comedy",)),
    _rule("theater", segment=("arts", "theatre"), genre=("theater",)),
    _rule("nightlife", genre=("bar", "nightlife", "club")),
    _rule("art", segment=("film",), genre=("art", "museum")),
    _rule("family", genre=("family", "children")),
    _rule("festival", genre=("festival", "fair")),
    _rule("community", segment=("miscellaneous",), genre=("community",)),
)

EVENTBRITE_RULES: tuple[CategoryRule, ...] = (
    _rule("concert", category=("music",), subcategory=("concert", "music")),
    _rule("sports", category=("sports",), subcategory=("sports",)),
    _rule("comedy", category=("comedy",), subcategory=("comedy",)),
    _rule("theater", category=("performing", "visual arts"), subcategory=("theater", "theatre")),
    _rule("art", category=("film", "media"), subcategory=("art", "museum")),
    _rule("food", category=("food",), subcategory=("food", "drink")),
    _rule("nightlife", category=("nightlife",), subcategory=("bar", "nightlife", "club")),
    _rule("family", category=("family",), subcategory=("family", "kids")),
    _rule("festival", category=("festival",), subcategory=("festival", "fair")),
    _rule("conference", category=("business", "professional"), subcategory=("conference", "seminar")),
    _rule("community", category=("community", "culture"), subcategory=("community",)),
    _rule("holiday", category=("holiday",), subcategory=("holiday",)),
)

# Our category -> provider classification used in the outgoing query
TICKETMASTER_CLASSIFICATIONS = {
    "sports": "Sports",
    "concert": "Music",
    "comedy": "Comedy",
    "theater": "Arts & Theatre",
    "nightlife": "Nightlife",
    "bar": "Nightlife",
    "art": "Arts & Theatre",
    "family": "Family",
    "festival": "Festivals",
    "community": "Community",
}

EVENTBRITE_CATEGORIES = {
    "music": "Music",
    "concert": "Music",
    "sports": "Sports & Fitness",
    "bar": "Food & Drink",
    "food": "Food & Drink",
    "comedy": "Performing & Visual Arts",
    "theater": "Performing & Visual Arts",
    "art": "Film, Media & Entertainment",
    "family": "Family & Education",
    "festival": "Music",
    "nightlife": "Food & Drink",
    "conference": "Business & Professional",
    "community": "Community & Culture",
}


def apply_rules(rules: tuple[CategoryRule, ...], **fields: str | None) -> str:
    lowered = {name: (value or "").lower() for name, value in fields.items()}
    for rule in rules:
        if rule.matches(lowered):
            return rule.category
    return "general"


def map_ticketmaster_category(classifications: list[dict] | None) -> str:
    """Category from the first Ticketmaster classification's segment/genre."""
    if not classifications:
        return "general"
    first = classifications[0] or {}
    return apply_rules(
        TICKETMASTER_RULES,
        segment=(first.get("segment") or {}).get("name"),
        genre=(first.get("genre") or {}).get("name"),
    )


def map_eventbrite_category(category: str | None, subcategory: str | None) -> str:
    return apply_rules(EVENTBRITE_RULES, category=category, subcategory=subcategory)
