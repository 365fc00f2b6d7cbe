"""Shared filesystem paths for the coupons package."""

import os
from pathlib import Path

import settings


BASE_DIR = Path(__file__).parent.parent
STATE_DIR = Path(os.environ.get(settings.STATE_DIR_ENV_VAR) or BASE_DIR / "data")


def ensure_state_dir(directory: Path | None = None) -> Path:
    """Ensure the state directory exists."""
    directory = directory or STATE_DIR
    directory.mkdir(parents=True, exist_ok=True)
    return directory
