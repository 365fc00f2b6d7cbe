"""Tests for smart add resolution."""

from importlib import import_module

import pytest

from utils.distance import estimate_fare, haversine_miles
from venue_scout.smart_add import NO_MATCH_NOTE, TOO_SHORT_NOTE, parse_smart_add, smart_add

# The package re-exports the smart_add function under the module name
smart_add_module = import_module("venue_scout.smart_add")

DOWNTOWN = {"lat": 41.4993, "lng": -81.6944}
BARLEY_HOUSE = {"lat": 41.4961, "lng": -81.6995}


def test_short_query_fails_fast(monkeypatch):
    def boom():
        raise AssertionError("directory should not be loaded")

    monkeypatch.setattr(smart_add_module, "get_directory", boom)

    result = smart_add("xy")

    assert result.ok is False
    assert result.notes == TOO_SHORT_NOTE
    assert result.candidates == []


def test_team_query_goes_to_stadium(directory):
    result = smart_add("browns game", origin=DOWNTOWN, directory=directory)

    assert result.ok is True
    assert result.primary["name"] == "Cleveland Browns Stadium"
    assert result.candidates == [result.primary]
    expected_distance = haversine_miles(DOWNTOWN, result.primary)
    assert result.primary["distanceMiles"] == pytest.approx(expected_distance)
    assert result.ride_estimate_usd == estimate_fare(expected_distance)


def test_team_wins_over_closer_generic_match(directory):
    # Standing at Barley House, a bar search would find it at ~0 miles
    result = smart_add("browns bar", origin=BARLEY_HOUSE, directory=directory)

    assert result.primary["name"] == "Cleveland Browns Stadium"


def test_team_query_ignores_radius(directory):
    result = smart_add("guardians game", origin=DOWNTOWN, radius_miles=0.01, directory=directory)

    assert result.ok is True
    assert result.primary["name"] == "Progressive Field"


def test_venue_phrase_search(directory):
    result = smart_add("drinks at barley house", origin=DOWNTOWN, directory=directory)

    assert result.ok is True
    assert result.primary["name"] == "Barley House"
    assert result.primary["category"] == "bar"


def test_category_and_radius_limit_candidates(directory):
    result = smart_add("pub", origin=DOWNTOWN, radius_miles=1, directory=directory)

    assert [p["name"] for p in result.candidates] == ["Flannery's Pub"]


def test_candidates_sorted_by_distance(directory):
    result = smart_add("cleveland", origin=DOWNTOWN, radius_miles=10, directory=directory)

    distances = [p["distanceMiles"] for p in result.candidates]
    assert distances == sorted(distances)
    assert len(result.candidates) <= 6
    assert result.primary == result.candidates[0]


def test_default_origin_used(directory):
    result = smart_add("lola bistro", directory=directory)

    assert result.primary["name"] == "Lola Bistro"
    assert result.primary["distanceMiles"] == pytest.approx(haversine_miles(DOWNTOWN, result.primary))


def test_no_match(directory):
    result = smart_add("zzzz unknown place", origin=DOWNTOWN, directory=directory)

    assert result.ok is False
    assert result.notes == NO_MATCH_NOTE
    assert result.primary is None


def test_surge_raises_estimate(directory):
    normal = smart_add("browns game", origin=DOWNTOWN, directory=directory)
    surged = smart_add("browns game", origin=DOWNTOWN, surge=2.0, directory=directory)

    assert surged.ride_estimate_usd > normal.ride_estimate_usd
    assert surged.to_dict()["surgeMultiplier"] == 2.0


def test_result_to_dict(directory):
    data = smart_add("browns game", origin=DOWNTOWN, directory=directory).to_dict()

    assert data["ok"] is True
    assert data["primary"]["name"] == "Cleveland Browns Stadium"
    assert "rideEstimateUSD" in data
    assert "notes" not in data


def test_parse_team_plan(directory):
    plan = parse_smart_add("cavs game tonight", directory=directory)

    assert plan.intent == "sports"
    assert plan.primary["name"] == "Rocket Mortgage FieldHouse"
    assert [p["label"] for p in plan.drop_points] == [
        "Huron Rd Rideshare",
        "Eagle Ave Garage",
        "Prospect Ave Curb",
    ]


def test_parse_venue_phrase_plan(directory):
    plan = parse_smart_add("drinks at barley house", directory=directory)

    assert plan.query == "barley house"
    assert plan.primary["name"] == "Barley House"
    assert plan.category == "bar"
    assert plan.intent == "social"
    assert plan.drop_points == []


def test_parse_alias_plan(directory):
    plan = parse_smart_add("meet at the jake", lat=DOWNTOWN["lat"], lng=DOWNTOWN["lng"], directory=directory)

    assert plan.primary["name"] == "Progressive Field"
    assert plan.category == "sports"
    assert len(plan.drop_points) == 3
