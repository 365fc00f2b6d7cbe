"""Shared filesystem paths for the venue_scout package."""

from pathlib import Path


BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / "data"

# Data files
VENUES_FILE = DATA_DIR / "venues.json"
