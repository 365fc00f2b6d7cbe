"""Tests for merging provider results."""

import time

import pytest

from event_discovery import aggregator, eventbrite_client
from event_discovery.aggregator import dedupe_events, discover_events, sort_events
from event_discovery.eventbrite_client import EventbriteClient
from event_discovery.state import AdapterResult, AdapterWarning, EventDiscoveryFilters

NEW_YORK = {"lat": 40.7128, "lng": -74.0060}
START = "2025-11-18T00:10:00.000Z"


def make_event(event_id, title, start=START, venue="Progressive Field", source="ticketmaster", **extra):
    event = {
        "id": event_id,
        "title": title,
        "category": "sports",
        "startISO": start,
        "endISO": "2025-11-18T03:10:00.000Z",
        "venue": venue,
        "address": "2401 Ontario St, Cleveland, OH 44115",
        "geo": {"lat": 41.4962, "lng": -81.6852},
        "popularity": 0.9,
        "source": source,
    }
    event.update(extra)
    return event


def adapter(source, events=(), warnings=(), delay=0):
    def run(filters):
        if delay:
            time.sleep(delay)
        return AdapterResult(source=source, events=list(events), warnings=list(warnings))
    return run


@pytest.fixture
def far_filters():
    """Outside the local catalog's region so only injected adapters contribute."""
    return EventDiscoveryFilters(latitude=NEW_YORK["lat"], longitude=NEW_YORK["lng"], radius=25)


@pytest.fixture
def no_network(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("no network call expected")

    monkeypatch.setattr("requests.get", fail)


def test_same_event_from_two_providers_is_kept_once(far_filters):
    tm = make_event("tm_1", "Guardians vs Yankees", source="ticketmaster")
    eb = make_event("eb_1", "Guardians vs Yankees", source="eventbrite")

    result = discover_events(far_filters, adapters=[
        ("ticketmaster", adapter("ticketmaster", [tm])),
        ("eventbrite", adapter("eventbrite", [eb])),
    ])

    assert [e["id"] for e in result.events] == ["tm_1"]
    assert result.source_counts == {"ticketmaster": 1}


def test_different_start_times_are_not_duplicates(far_filters):
    first = make_event("tm_1", "Guardians vs Yankees")
    second = make_event("tm_2", "Guardians vs Yankees", start="2025-11-19T00:10:00.000Z")

    result = discover_events(far_filters, adapters=[("ticketmaster", adapter("ticketmaster", [first, second]))])

    assert len(result.events) == 2


def test_provider_order_not_completion_order(far_filters):
    tm = make_event("tm_1", "Guardians vs Yankees", source="ticketmaster")
    eb = make_event("eb_1", "Guardians vs Yankees", source="eventbrite")

    result = discover_events(far_filters, adapters=[
        ("ticketmaster", adapter("ticketmaster", [tm], delay=0.05)),
        ("eventbrite", adapter("eventbrite", [eb])),
    ])

    assert result.events[0]["source"] == "ticketmaster"


def test_failing_adapter_is_isolated(far_filters):
    def broken(filters):
        raise RuntimeError("boom")

    eb = make_event("eb_1", "Jazz Night", source="eventbrite")

    result = discover_events(far_filters, adapters=[
        ("ticketmaster", broken),
        ("eventbrite", adapter("eventbrite", [eb])),
    ])

    assert [e["id"] for e in result.events] == ["eb_1"]
    assert [(w.source, w.reason) for w in result.warnings] == [("ticketmaster", "request_failed")]
    assert result.degraded is True


def test_warnings_are_collected(far_filters):
    warning = AdapterWarning("eventbrite", "timeout", "read timed out")

    result = discover_events(far_filters, adapters=[("eventbrite", adapter("eventbrite", warnings=[warning]))])

    assert result.warnings == [warning]
    assert result.to_dict()["warnings"] == [{"source": "eventbrite", "reason": "timeout", "detail": "read timed out"}]


def test_keyless_discovery_returns_local_catalog(no_network, cleveland_filters):
    result = discover_events(cleveland_filters)

    assert len(result.events) == 15
    assert result.source_counts == {"catalog": 15}
    assert sorted(w.reason for w in result.warnings) == ["missing_api_key", "missing_api_key"]


def test_keyless_discovery_outside_region_is_empty(no_network, far_filters):
    result = discover_events(far_filters)

    assert result.events == []
    assert result.to_dict()["count"] == 0


def test_local_events_come_after_providers(cleveland_filters):
    tm = make_event("tm_1", "Something Else", start="2030-01-01T00:00:00.000Z")

    result = discover_events(cleveland_filters, adapters=[("ticketmaster", adapter("ticketmaster", [tm]))])

    assert result.events[0]["id"] == "tm_1"
    assert all(e["source"] == "catalog" for e in result.events[1:])


def test_no_adapters_still_uses_catalog(cleveland_filters):
    result = discover_events(cleveland_filters, adapters=[])

    assert result.source_counts == {"catalog": 15}


def test_dedupe_ignores_case_and_whitespace():
    events = [
        make_event("a", "Guardians vs Yankees"),
        make_event("b", "guardians vs yankees ", venue="progressive field"),
    ]

    assert [e["id"] for e in dedupe_events(events)] == ["a"]


def test_default_adapters_are_ticketmaster_then_eventbrite():
    assert [source for source, _ in aggregator.default_adapters()] == ["ticketmaster", "eventbrite"]


class TestSortEvents:
    events = [
        make_event("late", "Late", start="2025-11-20T00:00:00.000Z", popularity=0.5,
                   geo={"lat": 41.4962, "lng": -81.6852}),
        make_event("early", "Early", start="2025-11-10T00:00:00.000Z", popularity=0.7,
                   geo={"lat": 41.6397, "lng": -81.4067}),
        make_event("mid", "Mid", start="2025-11-15T00:00:00.000Z", popularity=0.95,
                   geo={"lat": 41.1597, "lng": -81.5547}),
    ]

    def test_soonest(self):
        assert [e["id"] for e in sort_events(self.events, "soonest")] == ["early", "mid", "late"]

    def test_popular(self):
        assert [e["id"] for e in sort_events(self.events, "popular")] == ["mid", "early", "late"]

    def test_nearest(self):
        downtown = {"lat": 41.4993, "lng": -81.6944}
        assert [e["id"] for e in sort_events(self.events, "nearest", downtown)] == ["late", "early", "mid"]

    def test_nearest_requires_origin(self):
        with pytest.raises(ValueError):
            sort_events(self.events, "nearest")

    def test_unknown_sort(self):
        with pytest.raises(ValueError):
            sort_events(self.events, "random")

    def test_input_not_mutated(self):
        before = [e["id"] for e in self.events]
        sort_events(self.events, "popular")
        assert [e["id"] for e in self.events] == before


def test_dedupe_tolerates_missing_title_and_venue():
    first = make_event("x_1", None, venue=None)
    second = make_event("x_2", None, venue=None)

    assert [e["id"] for e in dedupe_events([first, second])] == ["x_1"]


def test_untitled_eventbrite_event_does_not_break_discovery(monkeypatch, far_filters):
    class Response:
        status_code = 200
        ok = True
        text = ""

        def json(self):
            return {"events": [{
                "id": "1",
                "name": {"text": None},
                "start": {"local": "2025-11-07T19:00:00", "timezone": "America/New_York"},
            }]}

    monkeypatch.setattr(eventbrite_client.requests, "get", lambda *a, **kw: Response())

    result = discover_events(far_filters, adapters=[("eventbrite", EventbriteClient(api_key="k").discover)])

    assert [e["title"] for e in result.events] == ["Untitled event"]
    assert result.warnings == []
