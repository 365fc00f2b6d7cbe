"""In-process counters and structured log lines for the engine.

Counters in use:
    discovery.requests, discovery.<provider>.calls  - aggregator and adapters
    smart_add.calls, smart_add.no_match             - smart add resolver
    coupons.apply_attempts, coupons.redemptions     - coupon engine
    server.api.<route>.calls                        - Flask routes
    <component>.failures                            - bumped by record_failure

log_event kinds include discovery_complete, discovery_provider_done,
coupons_seeded, coupon_rejected and coupon_redeemed. Everything is served by
/api/debug/health via snapshot().
"""

from __future__ import annotations

import json
import time
from collections import deque
from datetime import datetime
from threading import Lock
from zoneinfo import ZoneInfo

import settings

_COUNTERS: dict[str, int] = {}
_RECENT_FAILURES: deque[dict] = deque(maxlen=200)
_RECENT_EVENTS: deque[dict] = deque(maxlen=200)
_LOCK = Lock()
_STARTED = time.monotonic()


def _timestamp() -> str:
    return datetime.now(ZoneInfo(settings.REGION_TIMEZONE)).isoformat()


def increment(metric: str, value: int = 1) -> None:
    """Increment a named counter."""
    with _LOCK:
        _COUNTERS[metric] = _COUNTERS.get(metric, 0) + value


def get_counter(metric: str) -> int:
    with _LOCK:
        return _COUNTERS.get(metric, 0)


def log_event(kind: str, **fields) -> None:
    """Emit a structured event line and keep a small recent buffer."""
    payload = {
        "ts": _timestamp(),
        "kind": kind,
        **fields,
    }
    with _LOCK:
        _RECENT_EVENTS.append(payload)
    print(json.dumps(payload, ensure_ascii=True, default=str), flush=True)


def record_failure(component: str, reason: str, **fields) -> None:
    """Record failure metadata for diagnostics."""
    payload = {
        "ts": _timestamp(),
        "component": component,
        "reason": reason,
        **fields,
    }
    with _LOCK:
        _RECENT_FAILURES.append(payload)
        _COUNTERS[f"{component}.failures"] = _COUNTERS.get(f"{component}.failures", 0) + 1
    print(json.dumps({"kind": "failure", **payload}, ensure_ascii=True, default=str), flush=True)


def snapshot() -> dict:
    """Get current counters and recent failure/event buffers."""
    with _LOCK:
        return {
            "ts": _timestamp(),
            "uptime_seconds": int(time.monotonic() - _STARTED),
            "counters": dict(_COUNTERS),
            "recent_failures": list(_RECENT_FAILURES),
            "recent_events": list(_RECENT_EVENTS),
        }


def reset() -> None:
    """Clear counters and buffers."""
    with _LOCK:
        _COUNTERS.clear()
        _RECENT_FAILURES.clear()
        _RECENT_EVENTS.clear()
