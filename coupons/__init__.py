"""Coupons - eligibility rules, discount arithmetic and the redemption ledger."""

from .state import Coupon, CouponUsage, ValidationResult, AppliedCoupon, CouponRejection, Redemption
from .store import KeyValueStore, MemoryStore, JsonFileStore
from .engine import CouponEngine, CouponError, get_engine

__all__ = [
    "Coupon",
    "CouponUsage",
    "ValidationResult",
    "AppliedCoupon",
    "CouponRejection",
    "Redemption",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "CouponEngine",
    "CouponError",
    "get_engine",
]
