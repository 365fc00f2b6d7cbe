"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from event_discovery import config as discovery_config
from event_discovery.state import EventDiscoveryFilters
from utils import observability
from venue_scout import get_directory

CLEVELAND = {"lat": 41.4993, "lng": -81.6944}
NEW_YORK = {"lat": 40.7128, "lng": -74.0060}


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch, tmp_path):
    """Never pick up real API keys or a developer's config.json."""
    monkeypatch.delenv(discovery_config.TICKETMASTER_ENV_VAR, raising=False)
    monkeypatch.delenv(discovery_config.EVENTBRITE_ENV_VAR, raising=False)
    monkeypatch.setattr(discovery_config, "CONFIG_PATH", tmp_path / "missing-config.json")


@pytest.fixture(autouse=True)
def clean_observability():
    observability.reset()
    yield
    observability.reset()


@pytest.fixture
def directory():
    return get_directory()


@pytest.fixture
def cleveland_filters():
    return EventDiscoveryFilters(latitude=CLEVELAND["lat"], longitude=CLEVELAND["lng"], radius=25)


@pytest.fixture
def fixed_now():
    return datetime(2025, 11, 5, 17, 0, tzinfo=timezone.utc)
