"""Tests for coupon validation, pricing and redemption."""

import threading
import time
from datetime import datetime, timezone

import pytest

from coupons import (
    AppliedCoupon,
    Coupon,
    CouponEngine,
    CouponError,
    CouponRejection,
    JsonFileStore,
    MemoryStore,
    Redemption,
)
from utils.observability import get_counter

NOW = datetime(2025, 11, 5, 17, 0, tzinfo=timezone.utc)


class FlakyStore(MemoryStore):
    """MemoryStore that can be told to reject writes for some keys."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing_keys = set()

    def save(self, key, value):
        if key in self.failing_keys:
            return False
        return super().save(key, value)


class SlowStore(MemoryStore):
    """MemoryStore whose writes take long enough for requests to overlap."""

    def save(self, key, value):
        time.sleep(0.05)
        return super().save(key, value)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def engine(store):
    return CouponEngine(store=store, clock=lambda: NOW)


def coupon(**fields):
    data = {"id": "c1", "code": "test", "type": "percentage", "value": 10}
    data.update(fields)
    return Coupon.from_dict(data)


def test_seeds_empty_store(engine, store):
    assert [c.code for c in engine.coupons] == ["WELCOME50", "SAVE20", "AIRPORT15", "CAVS2025"]
    assert len(store.load("@coupons")) == 4
    assert engine.coupon_usage == []


def test_hydrates_existing_state():
    store = MemoryStore({
        "@coupons": [{"id": "c9", "code": "fall10", "type": "fixed_amount", "value": 10, "usageCount": 2}],
        "@coupon_usage": [{
            "id": "u1", "couponId": "c9", "userId": "rider", "rideId": "r1",
            "discountAmount": 10, "appliedAt": "2025-10-01T00:00:00.000Z",
        }],
    })

    engine = CouponEngine(store=store, clock=lambda: NOW)

    assert [c.code for c in engine.coupons] == ["FALL10"]
    assert engine.coupons[0].usage_count == 2
    assert engine.has_user_completed_ride("rider")


def test_welcome50_first_ride(engine):
    result = engine.apply_coupon("WELCOME50", "new-rider", 80, is_first_ride=True)

    assert isinstance(result, AppliedCoupon)
    assert result.discount_amount == 25
    assert result.final_amount == 55


def test_welcome50_requires_first_ride(engine):
    result = engine.validate_coupon("WELCOME50", "rider", 80, is_first_ride=False)

    assert result.valid is False
    assert result.error == "This coupon is only valid for first-time riders"


def test_save20_below_minimum(engine):
    result = engine.apply_coupon("SAVE20", "rider", 30)

    assert isinstance(result, CouponRejection)
    assert result.error == "Minimum ride amount is $40.00"


def test_save20_applies(engine):
    result = engine.apply_coupon("save20", "rider", 50)

    assert result.discount_amount == 20
    assert result.final_amount == 30


def test_expired_by_date(engine):
    assert engine.validate_coupon("CAVS2025", "rider", 100).error == "This coupon has expired"


def test_unknown_code(engine):
    assert engine.validate_coupon("NOPE", "rider", 100).error == "Invalid coupon code"


def test_status_checks_come_first(engine):
    engine.update_coupon("coupon_save20", {"status": "disabled"})
    assert engine.validate_coupon("SAVE20", "rider", 10).error == "This coupon is no longer available"

    engine.update_coupon("coupon_save20", {"status": "expired"})
    assert engine.validate_coupon("SAVE20", "rider", 10).error == "This coupon has expired"


def test_user_allow_list(engine):
    engine.update_coupon("coupon_airport", {"validForUserIds": ["vip"]})

    assert engine.validate_coupon("AIRPORT15", "rider", 100).error == "This coupon is not valid for your account"
    assert engine.validate_coupon("AIRPORT15", "vip", 100).valid is True


def test_excluded_venue(engine):
    engine.update_coupon("coupon_airport", {"excludedVenues": ["Progressive Field"]})

    result = engine.validate_coupon("AIRPORT15", "rider", 100, venue="Progressive Field")

    assert result.error == "This coupon is not valid for this venue"
    assert engine.validate_coupon("AIRPORT15", "rider", 100).valid is True


def test_per_user_limit(engine):
    engine.record_coupon_usage("coupon_save20", "rider", "ride-1", 20)

    assert engine.validate_coupon("SAVE20", "rider", 50).error == "You have already used this coupon"
    assert engine.validate_coupon("SAVE20", "someone-else", 50).valid is True


def test_record_usage_updates_both_records(engine, store):
    usage = engine.record_coupon_usage("coupon_airport", "rider", "ride-1", 9.5)

    assert usage.coupon_id == "coupon_airport"
    assert usage.applied_at == "2025-11-05T17:00:00.000Z"
    assert engine.get_coupon_by_code("AIRPORT15").usage_count == 1
    assert engine.get_user_coupon_usage("rider", "coupon_airport") == 1

    stored_coupon = next(c for c in store.load("@coupons") if c["id"] == "coupon_airport")
    assert stored_coupon["usageCount"] == 1
    assert store.load("@coupon_usage")[0]["rideId"] == "ride-1"


def test_failed_usage_save_changes_nothing(engine, store):
    store.failing_keys.add("@coupon_usage")

    assert engine.record_coupon_usage("coupon_airport", "rider", "ride-1", 9.5) is None
    assert engine.coupon_usage == []
    assert engine.get_coupon_by_code("AIRPORT15").usage_count == 0


def test_failed_coupon_save_rolls_back_usage(engine, store):
    store.failing_keys.add("@coupons")

    assert engine.record_coupon_usage("coupon_airport", "rider", "ride-1", 9.5) is None
    assert engine.coupon_usage == []
    assert store.load("@coupon_usage") == []
    assert engine.get_coupon_by_code("AIRPORT15").usage_count == 0


def test_unknown_coupon_usage_is_recorded_without_increment(engine):
    counts_before = [c.usage_count for c in engine.coupons]

    usage = engine.record_coupon_usage("coupon_missing", "rider", "ride-1", 5)

    assert usage is not None
    assert engine.coupon_usage == [usage]
    assert [c.usage_count for c in engine.coupons] == counts_before
    assert get_counter("coupons.failures") == 1


def test_discount_never_exceeds_ride(engine):
    assert engine.calculate_discount(coupon(value=150), 10) == 10
    assert engine.calculate_discount(coupon(type="fixed_amount", value=20), 12.5) == 12.5
    assert engine.calculate_discount(coupon(type="first_ride_free", value=0), 42.17) == 42.17
    assert engine.calculate_discount(coupon(type="referral", value=10), 42) == 0


def test_discount_rounds_half_up(engine):
    # 15% of 33.33 is 4.9995
    assert engine.calculate_discount(coupon(value=15), 33.33) == 5.00


def test_percentage_cap(engine):
    assert engine.calculate_discount(coupon(value=50, maxDiscount=25), 80) == 25
    assert engine.calculate_discount(coupon(value=50, maxDiscount=25), 30) == 15


def test_negative_ride_amount_rejected(engine):
    with pytest.raises(ValueError):
        engine.calculate_discount(coupon(), -1)


def test_active_coupons(engine):
    assert [c.code for c in engine.get_active_coupons()] == ["WELCOME50", "SAVE20", "AIRPORT15"]

    # SAVE20 allows one use in total
    engine.record_coupon_usage("coupon_save20", "rider", "ride-1", 20)

    assert [c.code for c in engine.get_active_coupons()] == ["WELCOME50", "AIRPORT15"]


def test_add_coupon(engine, store):
    created = engine.add_coupon({"code": "fall25", "type": "percentage", "value": 25, "description": "Fall promo"})

    assert created.code == "FALL25"
    assert created.usage_count == 0
    assert created.id.startswith("coupon_")
    assert engine.get_coupon_by_code("Fall25") == created
    assert any(c["code"] == "FALL25" for c in store.load("@coupons"))


def test_add_duplicate_code(engine):
    with pytest.raises(CouponError):
        engine.add_coupon({"code": "welcome50", "type": "percentage", "value": 10})


def test_add_rejects_unknown_type(engine):
    with pytest.raises(CouponError):
        engine.add_coupon({"code": "ODD", "type": "bogus", "value": 10})


def test_add_fails_when_store_rejects(engine, store):
    store.failing_keys.add("@coupons")

    with pytest.raises(CouponError):
        engine.add_coupon({"code": "NEW", "type": "fixed_amount", "value": 5})
    assert engine.get_coupon_by_code("NEW") is None


def test_update_and_delete(engine):
    updated = engine.update_coupon("coupon_save20", {"value": 15})

    assert updated.value == 15
    assert engine.get_coupon_by_code("SAVE20").value == 15
    assert engine.update_coupon("missing", {"value": 1}) is None

    assert engine.delete_coupon("coupon_save20") is True
    assert engine.get_coupon_by_code("SAVE20") is None
    assert engine.delete_coupon("coupon_save20") is False


def test_has_user_completed_ride(engine):
    assert engine.has_user_completed_ride("rider") is False
    engine.record_coupon_usage("coupon_airport", "rider", "ride-1", 9)
    assert engine.has_user_completed_ride("rider") is True


def test_json_file_store_persists_across_engines(tmp_path):
    first = CouponEngine(store=JsonFileStore(tmp_path), clock=lambda: NOW)
    first.record_coupon_usage("coupon_save20", "rider", "ride-1", 20)

    second = CouponEngine(store=JsonFileStore(tmp_path), clock=lambda: NOW)

    assert second.get_coupon_by_code("SAVE20").usage_count == 1
    assert second.get_user_coupon_usage("rider", "coupon_save20") == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == ["coupon_usage.json", "coupons.json"]


def test_json_file_store_unreadable_file(tmp_path):
    (tmp_path / "coupons.json").write_text("{not json")

    assert JsonFileStore(tmp_path).load("@coupons") is None


def test_coupon_round_trip_drops_unset_fields():
    data = coupon(minRideAmount=40).to_dict()

    assert data["code"] == "TEST"
    assert data["minRideAmount"] == 40
    assert "maxDiscount" not in data
    assert Coupon.from_dict(data) == coupon(minRideAmount=40)


def test_redeem_records_usage(engine):
    result = engine.redeem_coupon("save20", "rider", "ride-1", 50)

    assert isinstance(result, Redemption)
    assert result.applied.discount_amount == 20
    assert result.applied.final_amount == 30
    assert result.usage.ride_id == "ride-1"
    assert engine.get_coupon_by_code("SAVE20").usage_count == 1
    assert result.to_dict()["usage"]["couponId"] == "coupon_save20"


def test_redeem_rejection_records_nothing(engine):
    result = engine.redeem_coupon("SAVE20", "rider", "ride-1", 30)

    assert isinstance(result, CouponRejection)
    assert engine.coupon_usage == []


def test_redeem_save_failure(engine, store):
    store.failing_keys.add("@coupons")

    assert engine.redeem_coupon("SAVE20", "rider", "ride-1", 50) is None
    assert engine.coupon_usage == []
    assert engine.get_coupon_by_code("SAVE20").usage_count == 0


def test_concurrent_redeems_respect_usage_limit():
    engine = CouponEngine(store=SlowStore(), clock=lambda: NOW)
    barrier = threading.Barrier(2)
    results = []

    def redeem(ride_id):
        barrier.wait()
        results.append(engine.redeem_coupon("SAVE20", "rider", ride_id, 50))

    threads = [threading.Thread(target=redeem, args=(f"ride-{i}",)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(type(r).__name__ for r in results) == ["CouponRejection", "Redemption"]
    assert len(engine.coupon_usage) == 1
    assert engine.get_coupon_by_code("SAVE20").usage_count == 1
