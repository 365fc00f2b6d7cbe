"""Key-value persistence for coupon state.

The engine only needs load(key) and save(key, value) -> bool. save reports
failure instead of raising so callers can decide whether to advance state.
"""

import copy
import json
import os
import threading
from pathlib import Path
from typing import Any, Protocol

from utils.observability import record_failure

from .paths import STATE_DIR, ensure_state_dir


class KeyValueStore(Protocol):
    def load(self, key: str) -> Any: ...

    def save(self, key: str, value: Any) -> bool: ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Any:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def save(self, key: str, value: Any) -> bool:
        with self._lock:
            self._data[key] = copy.deepcopy(value)
        return True


class JsonFileStore:
    """One JSON file per key under a state directory.

    Keys like "@coupons" map to "coupons.json". Writes go to a temp file that
    is then swapped in with os.replace, so a crash never leaves half a file.
    """

    def __init__(self, directory: Path | None = None):
        self.directory = Path(directory) if directory else STATE_DIR
        self._lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        name = key.lstrip("@").replace("/", "_")
        return self.directory / f"{name}.json"

    def load(self, key: str) -> Any:
        """Stored value for key, or None if missing or unreadable."""
        path = self.path_for(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                with open(path, "r") as f:
                    return json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                record_failure("coupons.store", "load_failed", key=key, error=str(e))
                return None

    def save(self, key: str, value: Any) -> bool:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        with self._lock:
            try:
                ensure_state_dir(self.directory)
                with open(tmp_path, "w") as f:
                    json.dump(value, f, indent=2, default=str)
                os.replace(tmp_path, path)
                return True
            except (OSError, TypeError, ValueError) as e:
                record_failure("coupons.store", "save_failed", key=key, error=str(e))
                return False
