"""Tests for the in-process counters behind /api/debug/health."""

from utils import observability


def test_record_failure_bumps_component_counter(capsys):
    observability.record_failure("coupons.store", "save_failed", key="@coupons")
    observability.record_failure("coupons.store", "load_failed", key="@coupons")

    assert observability.get_counter("coupons.store.failures") == 2
    assert '"reason": "save_failed"' in capsys.readouterr().out


def test_snapshot_and_reset():
    observability.increment("discovery.requests")
    observability.log_event("discovery_complete", unique=3)

    snap = observability.snapshot()
    assert snap["counters"] == {"discovery.requests": 1}
    assert snap["recent_events"][-1]["kind"] == "discovery_complete"

    observability.reset()

    assert observability.snapshot()["counters"] == {}
    assert observability.snapshot()["recent_events"] == []
