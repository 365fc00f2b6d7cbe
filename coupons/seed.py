"""Coupons written to an empty store on first start."""

from datetime import datetime, timezone

from event_discovery.state import to_iso_utc

from .state import Coupon


def initial_coupons(now: datetime | None = None) -> list[Coupon]:
    created_at = to_iso_utc(now or datetime.now(timezone.utc))
    return [
        Coupon(
            id="coupon_welcome",
            code="WELCOME50",
            type="percentage",
            value=50,
            description="50% off your first ride",
            min_ride_amount=0,
            max_discount=25,
            usage_limit=1,
            created_at=created_at,
            first_ride_only=True,
        ),
        Coupon(
            id="coupon_save20",
            code="SAVE20",
            type="fixed_amount",
            value=20,
            description="$20 off any ride",
            min_ride_amount=40,
            usage_limit=1,
            created_at=created_at,
        ),
        Coupon(
            id="coupon_airport",
            code="AIRPORT15",
            type="percentage",
            value=15,
            description="15% off airport rides",
            min_ride_amount=50,
            max_discount=30,
            usage_limit=3,
            created_at=created_at,
        ),
        Coupon(
            id="coupon_cavaliers",
            code="CAVS2025",
            type="fixed_amount",
            value=10,
            description="$10 off Cavaliers games",
            min_ride_amount=30,
            usage_limit=5,
            expires_at="2025-06-30T00:00:00.000Z",
            created_at=created_at,
        ),
    ]
