"""Configuration loader for event discovery providers."""

import json
import os
from pathlib import Path

CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.json"

TICKETMASTER_ENV_VAR = "EXPO_PUBLIC_TICKETMASTER_API_KEY"
EVENTBRITE_ENV_VAR = "EXPO_PUBLIC_EVENTBRITE_API_KEY"


def load_config(config_path: Path | None = None) -> dict:
    """Load provider keys from config.json, with environment variables taking precedence."""
    config_path = config_path or CONFIG_PATH
    config = {"ticketmaster_api_key": None, "eventbrite_api_key": None}

    if config_path.exists():
        try:
            file_config = json.loads(config_path.read_text())
            if "ticketmaster" in file_config:
                config["ticketmaster_api_key"] = file_config["ticketmaster"].get("api_key")
            if "eventbrite" in file_config:
                config["eventbrite_api_key"] = file_config["eventbrite"].get("api_key")
        except (json.JSONDecodeError, AttributeError) as e:
            print(f"Warning: Error reading config.json: {e}")

    # Environment variable overrides config file
    if os.environ.get(TICKETMASTER_ENV_VAR):
        config["ticketmaster_api_key"] = os.environ[TICKETMASTER_ENV_VAR]
    if os.environ.get(EVENTBRITE_ENV_VAR):
        config["eventbrite_api_key"] = os.environ[EVENTBRITE_ENV_VAR]

    return config


def get_ticketmaster_key() -> str | None:
    """Get Ticketmaster API key."""
    return load_config()["ticketmaster_api_key"] or None


def get_eventbrite_key() -> str | None:
    """Get Eventbrite private token."""
    return load_config()["eventbrite_api_key"] or None
