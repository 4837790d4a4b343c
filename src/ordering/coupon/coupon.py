"""Coupon aggregate (CQRS) — discount rules plus the redemption ledger.

A coupon carries its own usage ledger: every redemption appends a
CouponUsage entry and bumps `usage_count` in the same atomic change, so the
count always equals the number of ledger entries. Coupons are never deleted;
operators deactivate them instead.

Redemption re-checks the validity window and both usage limits against the
ledger itself, which makes it a guarded increment: even a caller holding a
stale validation result cannot push a coupon past its limits.
"""

import json
import re
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from ordering.domain import ordering
from ordering.shared.errors import CouponRejectedError, CouponRejection
from ordering.shared.money import as_float, round_money, to_decimal

_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,20}$")


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code) -> str:
    """Coupon codes are matched case-insensitively and stored uppercase."""
    return str(code or "").strip().upper()


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Coupon")
class Discount:
    """How much a coupon takes off: a percentage of the price or a fixed amount."""

    discount_type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"discount": ["Percentage discount cannot exceed 100"]})


@ordering.value_object(part_of="Coupon")
class UsageLimit:
    """Redemption caps. An empty `total` means the coupon has no global cap."""

    total = Integer(min_value=1)
    per_user = Integer(default=1, min_value=1)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Coupon")
class CouponUsage:
    """One ledger entry: a user redeemed the coupon on an order."""

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(default=0.0, min_value=0.0)
    used_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=20, unique=True)
    name = String(required=True, max_length=100)
    description = String(max_length=500)
    discount = ValueObject(Discount, required=True)
    minimum_amount = Float(default=0.0, min_value=0.0)
    maximum_discount = Float(min_value=0.0)
    usage_limit = ValueObject(UsageLimit)
    usage_count = Integer(default=0, min_value=0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    apply_to_all = Boolean(default=True)
    applicable_services = Text()  # JSON array of service ids
    applicable_products = Text()  # JSON array of product ids
    is_active = Boolean(default=True)
    created_by = Identifier()
    usages = HasMany(CouponUsage)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def usage_count_must_match_ledger(self):
        if self.usage_count != len(self.usages):
            raise ValidationError({"usage_count": ["Usage count must equal the number of ledger entries"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_until) <= as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["Coupon must expire after it becomes valid"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        code,
        name,
        discount_type,
        discount_value,
        valid_from,
        valid_until,
        description=None,
        minimum_amount=0.0,
        maximum_discount=None,
        total_limit=None,
        per_user_limit=1,
        applicable_services=None,
        applicable_products=None,
        created_by=None,
    ):
        normalized = normalize_code(code)
        if not _CODE_PATTERN.match(normalized):
            raise ValidationError({"code": ["Coupon code must be 3-20 letters or digits"]})

        services = list(applicable_services or [])
        products = list(applicable_products or [])
        now = datetime.now(UTC)

        coupon = cls(
            code=normalized,
            name=name,
            description=description,
            discount=Discount(discount_type=discount_type, value=discount_value),
            minimum_amount=minimum_amount or 0.0,
            maximum_discount=maximum_discount,
            usage_limit=UsageLimit(total=total_limit, per_user=per_user_limit or 1),
            usage_count=0,
            valid_from=as_utc(valid_from),
            valid_until=as_utc(valid_until),
            apply_to_all=not services and not products,
            applicable_services=json.dumps([str(s) for s in services]),
            applicable_products=json.dumps([str(p) for p in products]),
            is_active=True,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=discount_type,
                discount_value=discount_value,
                valid_from=coupon.valid_from,
                valid_until=coupon.valid_until,
                created_by=created_by,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def service_ids(self) -> set[str]:
        return set(json.loads(self.applicable_services or "[]"))

    @property
    def product_ids(self) -> set[str]:
        return set(json.loads(self.applicable_products or "[]"))

    @property
    def remaining_uses(self) -> int | None:
        """Redemptions left before the global cap; None when uncapped."""
        total = self.usage_limit.total if self.usage_limit else None
        if total is None:
            return None
        return max(0, total - self.usage_count)

    def uses_by(self, user_id) -> int:
        return sum(1 for usage in self.usages if str(usage.user_id) == str(user_id))

    def is_currently_valid(self, now=None) -> bool:
        now = as_utc(now) or datetime.now(UTC)
        return bool(self.is_active) and as_utc(self.valid_from) <= now <= as_utc(self.valid_until)

    def check_eligibility(self, user_id, now=None):
        """Raise CouponRejectedError unless `user_id` may redeem this coupon at `now`."""
        now = as_utc(now) or datetime.now(UTC)

        if not self.is_active:
            raise CouponRejectedError(CouponRejection.NOT_FOUND, "Invalid coupon code")

        if not (as_utc(self.valid_from) <= now <= as_utc(self.valid_until)):
            raise CouponRejectedError(CouponRejection.EXPIRED, "Coupon has expired or is not yet valid")

        remaining = self.remaining_uses
        if remaining is not None and remaining <= 0:
            raise CouponRejectedError(CouponRejection.LIMIT_EXCEEDED, "Coupon usage limit reached")

        per_user = self.usage_limit.per_user if self.usage_limit else 1
        if self.uses_by(user_id) >= (per_user or 1):
            raise CouponRejectedError(CouponRejection.LIMIT_EXCEEDED, "You have already used this coupon")

    def applies_to(self, service_id=None, product_id=None) -> bool:
        if self.apply_to_all:
            return True
        if service_id is not None and str(service_id) in self.service_ids:
            return True
        return product_id is not None and str(product_id) in self.product_ids

    def calculate_discount(self, amount) -> Decimal:
        """Discount for a price of `amount`, rounded half-up to cents.

        Below the minimum amount the discount is zero. Percentage discounts are
        capped at `maximum_discount`; fixed discounts never exceed the amount.
        """
        amount = to_decimal(amount)
        if amount < to_decimal(self.minimum_amount):
            return round_money(0)

        value = to_decimal(self.discount.value)
        if self.discount.discount_type == DiscountType.PERCENTAGE.value:
            discount = amount * value / Decimal(100)
            if self.maximum_discount is not None:
                discount = min(discount, to_decimal(self.maximum_discount))
        else:
            discount = min(value, amount)

        return round_money(max(discount, Decimal(0)))

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def redeem(self, user_id, order_id, discount_amount, now=None):
        """Consume one use of the coupon for `order_id`."""
        now = as_utc(now) or datetime.now(UTC)
        self.check_eligibility(user_id, now)

        with atomic_change(self):
            self.add_usages(
                CouponUsage(
                    user_id=user_id,
                    order_id=order_id,
                    discount_amount=as_float(discount_amount),
                    used_at=now,
                )
            )
            self.usage_count += 1
            self.updated_at = now

        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                user_id=str(user_id),
                order_id=str(order_id),
                discount_amount=as_float(discount_amount),
                usage_count=self.usage_count,
                redeemed_at=now,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code, deactivated_at=now))
