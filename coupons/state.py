"""Data models for coupons."""

from dataclasses import dataclass
from typing import Literal

CouponType = Literal["percentage", "fixed_amount", "first_ride_free", "referral"]
CouponStatus = Literal["active", "expired", "disabled", "used"]

COUPON_TYPES = frozenset(["percentage", "fixed_amount", "first_ride_free", "referral"])
COUPON_STATUSES = frozenset(["active", "expired", "disabled", "used"])

# attribute name -> stored camelCase key
_COUPON_FIELDS = (
    ("id", "id"),
    ("code", "code"),
    ("type", "type"),
    ("value", "value"),
    ("description", "description"),
    ("usage_count", "usageCount"),
    ("status", "status"),
    ("created_at", "createdAt"),
    ("created_by", "createdBy"),
    ("min_ride_amount", "minRideAmount"),
    ("max_discount", "maxDiscount"),
    ("expires_at", "expiresAt"),
    ("usage_limit", "usageLimit"),
    ("first_ride_only", "firstRideOnly"),
    ("valid_for_user_ids", "validForUserIds"),
    ("excluded_venues", "excludedVenues"),
)

_OPTIONAL_FIELDS = frozenset([
    "min_ride_amount", "max_discount", "expires_at", "usage_limit",
    "first_ride_only", "valid_for_user_ids", "excluded_venues",
])


@dataclass
class Coupon:
    """A promotional coupon. Codes are stored upper-case."""
    id: str
    code: str
    type: str
    value: float
    description: str = ""
    usage_count: int = 0
    status: str = "active"
    created_at: str = ""
    created_by: str = "system"
    min_ride_amount: float | None = None
    max_discount: float | None = None
    expires_at: str | None = None
    usage_limit: int | None = None
    first_ride_only: bool | None = None
    valid_for_user_ids: list[str] | None = None
    excluded_venues: list[str] | None = None

    def __post_init__(self):
        self.code = self.code.strip().upper()

    def to_dict(self) -> dict:
        data = {}
        for attr, key in _COUPON_FIELDS:
            value = getattr(self, attr)
            if value is None and attr in _OPTIONAL_FIELDS:
                continue
            data[key] = list(value) if isinstance(value, list) else value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Coupon":
        """Build from a stored camelCase record.

        Raises:
            KeyError: if id, code, type or value is missing
        """
        kwargs = {attr: data[key] for attr, key in _COUPON_FIELDS if key in data}
        for required in ("id", "code", "type", "value"):
            if required not in kwargs:
                raise KeyError(required)
        return cls(**kwargs)


@dataclass
class CouponUsage:
    """One successful redemption. The usage ledger is append-only."""
    id: str
    coupon_id: str
    user_id: str
    ride_id: str
    discount_amount: float
    applied_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "couponId": self.coupon_id,
            "userId": self.user_id,
            "rideId": self.ride_id,
            "discountAmount": self.discount_amount,
            "appliedAt": self.applied_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CouponUsage":
        return cls(
            id=data["id"],
            coupon_id=data["couponId"],
            user_id=data["userId"],
            ride_id=data["rideId"],
            discount_amount=data["discountAmount"],
            applied_at=data["appliedAt"],
        )


@dataclass
class ValidationResult:
    valid: bool
    error: str | None = None
    coupon: Coupon | None = None

    def to_dict(self) -> dict:
        data = {"valid": self.valid}
        if self.error:
            data["error"] = self.error
        if self.coupon:
            data["coupon"] = self.coupon.to_dict()
        return data


@dataclass
class AppliedCoupon:
    """A validated coupon priced against a ride."""
    coupon: Coupon
    discount_amount: float
    final_amount: float

    def to_dict(self) -> dict:
        return {
            "coupon": self.coupon.to_dict(),
            "discountAmount": self.discount_amount,
            "finalAmount": self.final_amount,
        }


@dataclass
class CouponRejection:
    error: str

    def to_dict(self) -> dict:
        return {"error": self.error}



@dataclass
class Redemption:
    """A coupon applied to a ride and recorded in the usage ledger."""
    applied: AppliedCoupon
    usage: CouponUsage

    def to_dict(self) -> dict:
        return {**self.applied.to_dict(), "usage": self.usage.to_dict()}
