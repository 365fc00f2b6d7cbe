"""
Coupon validation, pricing and redemption.

The engine keeps coupons and the usage ledger in memory after hydrating them
from a KeyValueStore. Every mutation writes the store first and only replaces
the in-memory lists once the write succeeded.
"""

import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import settings
from event_discovery.state import parse_iso, to_iso_utc
from utils.observability import increment, log_event, record_failure

from .seed import initial_coupons
from .state import (
    COUPON_STATUSES,
    COUPON_TYPES,
    AppliedCoupon,
    Coupon,
    CouponRejection,
    CouponUsage,
    Redemption,
    ValidationResult,
)
from .store import JsonFileStore, KeyValueStore, MemoryStore

CENTS = Decimal("0.01")

INVALID_CODE = "Invalid coupon code"
NO_LONGER_AVAILABLE = "This coupon is no longer available"
EXPIRED = "This coupon has expired"
FIRST_RIDE_ONLY = "This coupon is only valid for first-time riders"
NOT_FOR_ACCOUNT = "This coupon is not valid for your account"
NOT_FOR_VENUE = "This coupon is not valid for this venue"
ALREADY_USED = "You have already used this coupon"


class CouponError(Exception):
    """Raised for invalid admin operations (duplicate codes, failed writes)."""


def D(x) -> Decimal:
    return Decimal(str(x))


def round2(x: Decimal) -> Decimal:
    return x.quantize(CENTS, rounding=ROUND_HALF_UP)


def _new_id(prefix: str) -> str:
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"{prefix}_{millis}_{uuid.uuid4().hex[:settings.COUPON_ID_SUFFIX_CHARS]}"


class CouponEngine:
    """Holds coupons and their usage ledger; single writer per process."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store if store is not None else MemoryStore()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self.coupons: list[Coupon] = []
        self.coupon_usage: list[CouponUsage] = []
        self.hydrate()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def hydrate(self) -> None:
        """Load state from the store, seeding default coupons when none are stored."""
        with self._lock:
            stored_coupons = self.store.load(settings.COUPONS_STORAGE_KEY)
            if isinstance(stored_coupons, list):
                self.coupons = self._parse_rows(stored_coupons, Coupon.from_dict)
            else:
                self.coupons = initial_coupons(self._clock())
                self.store.save(settings.COUPONS_STORAGE_KEY, self._coupon_rows(self.coupons))
                log_event("coupons_seeded", count=len(self.coupons))

            stored_usage = self.store.load(settings.COUPON_USAGE_STORAGE_KEY)
            if isinstance(stored_usage, list):
                self.coupon_usage = self._parse_rows(stored_usage, CouponUsage.from_dict)
            else:
                self.coupon_usage = []

    @staticmethod
    def _parse_rows(rows: list, parse):
        parsed = []
        for row in rows:
            try:
                parsed.append(parse(row))
            except (KeyError, TypeError, AttributeError) as e:
                record_failure("coupons", "bad_record", error=str(e))
        return parsed

    @staticmethod
    def _coupon_rows(coupons: list[Coupon]) -> list[dict]:
        return [c.to_dict() for c in coupons]

    @staticmethod
    def _usage_rows(usage: list[CouponUsage]) -> list[dict]:
        return [u.to_dict() for u in usage]

    def _commit_coupons(self, coupons: list[Coupon]) -> bool:
        """Persist then swap in a new coupon list. Caller holds the lock."""
        if not self.store.save(settings.COUPONS_STORAGE_KEY, self._coupon_rows(coupons)):
            record_failure("coupons", "save_failed", key=settings.COUPONS_STORAGE_KEY)
            return False
        self.coupons = coupons
        return True

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_coupon_by_code(self, code: str) -> Coupon | None:
        code = code.strip().upper()
        return next((c for c in self.coupons if c.code == code), None)

    def _get_coupon_by_id(self, coupon_id: str) -> Coupon | None:
        return next((c for c in self.coupons if c.id == coupon_id), None)

    def _is_past(self, expires_at: str | None) -> bool:
        if not expires_at:
            return False
        try:
            return parse_iso(expires_at) < self._clock()
        except ValueError:
            record_failure("coupons", "bad_expiry", expires_at=expires_at)
            return False

    def get_user_coupon_usage(self, user_id: str, coupon_id: str) -> int:
        """How many times this user has redeemed this coupon."""
        return sum(1 for u in self.coupon_usage if u.user_id == user_id and u.coupon_id == coupon_id)

    def has_user_completed_ride(self, user_id: str) -> bool:
        return any(u.user_id == user_id for u in self.coupon_usage)

    def get_active_coupons(self) -> list[Coupon]:
        """Coupons that are active, not past expiry, and not globally used up."""
        active = []
        for coupon in self.coupons:
            if coupon.status != "active":
                continue
            if self._is_past(coupon.expires_at):
                continue
            if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
                continue
            active.append(coupon)
        return active

    # ------------------------------------------------------------------
    # Validation and pricing
    # ------------------------------------------------------------------

    def validate_coupon(
        self,
        code: str,
        user_id: str,
        ride_amount: float,
        venue: str | None = None,
        is_first_ride: bool = False,
    ) -> ValidationResult:
        """
        Check a coupon against a proposed ride.

        Checks run in a fixed order and stop at the first failure, so the
        error message always names the first rule the coupon breaks.
        """
        coupon = self.get_coupon_by_code(code)
        if coupon is None:
            return ValidationResult(False, INVALID_CODE)

        if coupon.status == "disabled":
            return ValidationResult(False, NO_LONGER_AVAILABLE)

        if coupon.status == "expired":
            return ValidationResult(False, EXPIRED)

        if self._is_past(coupon.expires_at):
            return ValidationResult(False, EXPIRED)

        if coupon.first_ride_only and not is_first_ride:
            return ValidationResult(False, FIRST_RIDE_ONLY)

        if coupon.valid_for_user_ids is not None and user_id not in coupon.valid_for_user_ids:
            return ValidationResult(False, NOT_FOR_ACCOUNT)

        if coupon.excluded_venues and venue and venue in coupon.excluded_venues:
            return ValidationResult(False, NOT_FOR_VENUE)

        # Zero and None both mean "no minimum"
        if coupon.min_ride_amount and ride_amount < coupon.min_ride_amount:
            return ValidationResult(False, f"Minimum ride amount is ${coupon.min_ride_amount:.2f}")

        if coupon.usage_limit and self.get_user_coupon_usage(user_id, coupon.id) >= coupon.usage_limit:
            return ValidationResult(False, ALREADY_USED)

        return ValidationResult(True, coupon=coupon)

    def calculate_discount(self, coupon: Coupon, ride_amount: float) -> float:
        """
        Discount in dollars, rounded half-up to cents.

        Never more than the ride amount; unknown coupon types discount nothing.
        """
        if ride_amount < 0:
            raise ValueError("ride_amount must be >= 0")

        amount = D(ride_amount)
        if coupon.type == "percentage":
            discount = amount * D(coupon.value) / D(100)
            if coupon.max_discount:
                discount = min(discount, D(coupon.max_discount))
        elif coupon.type == "fixed_amount":
            discount = min(D(coupon.value), amount)
        elif coupon.type == "first_ride_free":
            discount = amount
        else:
            discount = D(0)

        return float(round2(max(D(0), min(discount, amount))))

    def _price(
        self,
        code: str,
        user_id: str,
        ride_amount: float,
        venue: str | None,
        is_first_ride: bool,
    ) -> AppliedCoupon | CouponRejection:
        validation = self.validate_coupon(code, user_id, ride_amount, venue, is_first_ride)
        if not validation.valid or validation.coupon is None:
            log_event("coupon_rejected", code=code.strip().upper(), user_id=user_id, error=validation.error)
            return CouponRejection(validation.error or "Invalid coupon")

        discount_amount = self.calculate_discount(validation.coupon, ride_amount)
        final_amount = float(max(D(0), round2(D(ride_amount) - D(discount_amount))))
        return AppliedCoupon(
            coupon=validation.coupon,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )

    def apply_coupon(
        self,
        code: str,
        user_id: str,
        ride_amount: float,
        venue: str | None = None,
        is_first_ride: bool = False,
    ) -> AppliedCoupon | CouponRejection:
        """Validate and price a coupon without recording a redemption."""
        increment("coupons.apply_attempts")
        return self._price(code, user_id, ride_amount, venue, is_first_ride)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _append_usage(
        self,
        coupon_id: str,
        user_id: str,
        ride_id: str,
        discount_amount: float,
    ) -> CouponUsage | None:
        """Persist a usage row and the usageCount bump. Caller holds the lock."""
        usage = CouponUsage(
            id=_new_id("usage"),
            coupon_id=coupon_id,
            user_id=user_id,
            ride_id=ride_id,
            discount_amount=discount_amount,
            applied_at=to_iso_utc(self._clock()),
        )
        updated_usage = self.coupon_usage + [usage]

        known = self._get_coupon_by_id(coupon_id) is not None
        if not known:
            record_failure("coupons", "unknown_coupon", coupon_id=coupon_id, ride_id=ride_id)

        if not self.store.save(settings.COUPON_USAGE_STORAGE_KEY, self._usage_rows(updated_usage)):
            record_failure("coupons", "save_failed", key=settings.COUPON_USAGE_STORAGE_KEY)
            return None

        if known:
            updated_coupons = [
                replace(c, usage_count=c.usage_count + 1) if c.id == coupon_id else c
                for c in self.coupons
            ]
            if not self.store.save(settings.COUPONS_STORAGE_KEY, self._coupon_rows(updated_coupons)):
                record_failure("coupons", "save_failed", key=settings.COUPONS_STORAGE_KEY)
                # Put the stored ledger back so it keeps matching usageCount
                self.store.save(settings.COUPON_USAGE_STORAGE_KEY, self._usage_rows(self.coupon_usage))
                return None
            self.coupons = updated_coupons

        self.coupon_usage = updated_usage
        return usage

    def record_coupon_usage(
        self,
        coupon_id: str,
        user_id: str,
        ride_id: str,
        discount_amount: float,
    ) -> CouponUsage | None:
        """
        Append a usage row and bump the coupon's usageCount together.

        Both writes happen under the engine lock. If either save fails the
        in-memory state is left untouched and None is returned. An unknown
        coupon id still gets its usage row; only the increment is skipped.
        """
        with self._lock:
            usage = self._append_usage(coupon_id, user_id, ride_id, discount_amount)

        if usage is not None:
            increment("coupons.redemptions")
            log_event("coupon_redeemed", coupon_id=coupon_id, user_id=user_id, ride_id=ride_id, discount=discount_amount)
        return usage

    def redeem_coupon(
        self,
        code: str,
        user_id: str,
        ride_id: str,
        ride_amount: float,
        venue: str | None = None,
        is_first_ride: bool = False,
    ) -> Redemption | CouponRejection | None:
        """
        Validate, price and record a coupon as one step.

        The engine lock is held from validation through both writes, so two
        concurrent redemptions cannot both pass a usage limit.

        Returns:
            Redemption on success, CouponRejection if the coupon does not
            apply, or None if the usage could not be saved
        """
        increment("coupons.apply_attempts")
        with self._lock:
            applied = self._price(code, user_id, ride_amount, venue, is_first_ride)
            if isinstance(applied, CouponRejection):
                return applied
            usage = self._append_usage(applied.coupon.id, user_id, ride_id, applied.discount_amount)

        if usage is None:
            return None

        increment("coupons.redemptions")
        log_event(
            "coupon_redeemed",
            coupon_id=usage.coupon_id,
            user_id=user_id,
            ride_id=ride_id,
            discount=usage.discount_amount,
        )
        return Redemption(applied=applied, usage=usage)

    def add_coupon(self, coupon_data: dict) -> Coupon:
        """
        Create a coupon from a camelCase payload.

        id, usageCount and createdAt are assigned here.

        Raises:
            CouponError: on a duplicate code, bad type/status, or failed save
        """
        data = dict(coupon_data)
        for required in ("code", "type", "value"):
            if data.get(required) in (None, ""):
                raise CouponError(f"Missing required field: {required}")
        if data["type"] not in COUPON_TYPES:
            raise CouponError(f"Unknown coupon type: {data['type']}")
        if data.get("status", "active") not in COUPON_STATUSES:
            raise CouponError(f"Unknown coupon status: {data['status']}")

        with self._lock:
            if self.get_coupon_by_code(data["code"]) is not None:
                raise CouponError("Coupon code already exists")

            data.update({
                "id": _new_id("coupon"),
                "usageCount": 0,
                "createdAt": to_iso_utc(self._clock()),
            })
            data.setdefault("createdBy", "admin")
            coupon = Coupon.from_dict(data)

            if not self._commit_coupons(self.coupons + [coupon]):
                raise CouponError("Failed to save coupons")

        log_event("coupon_added", coupon_id=coupon.id, code=coupon.code)
        return coupon

    def update_coupon(self, coupon_id: str, updates: dict) -> Coupon | None:
        """Merge camelCase updates into a coupon. Returns None for an unknown id.

        Raises:
            CouponError: if the store rejects the write
        """
        with self._lock:
            current = self._get_coupon_by_id(coupon_id)
            if current is None:
                return None

            merged = {**current.to_dict(), **updates, "id": coupon_id}
            updated = Coupon.from_dict(merged)
            coupons = [updated if c.id == coupon_id else c for c in self.coupons]
            if not self._commit_coupons(coupons):
                raise CouponError("Failed to save coupons")

        return updated

    def delete_coupon(self, coupon_id: str) -> bool:
        """Remove a coupon. Usage rows that reference it are kept."""
        with self._lock:
            coupons = [c for c in self.coupons if c.id != coupon_id]
            if len(coupons) == len(self.coupons):
                return False
            if not self._commit_coupons(coupons):
                raise CouponError("Failed to save coupons")
        return True


_DEFAULT_ENGINE: CouponEngine | None = None
_DEFAULT_ENGINE_LOCK = threading.Lock()


def get_engine() -> CouponEngine:
    """Process-wide engine backed by JsonFileStore under the state dir."""
    global _DEFAULT_ENGINE
    with _DEFAULT_ENGINE_LOCK:
        if _DEFAULT_ENGINE is None:
            _DEFAULT_ENGINE = CouponEngine(store=JsonFileStore())
        return _DEFAULT_ENGINE
