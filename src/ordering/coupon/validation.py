"""Coupon validation pipeline shared by checkout and the coupon preview.

validate (active, window, limits) → applies_to (service/product) → minimum amount.
Any failure raises CouponRejectedError carrying the rejection reason.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from ordering.catalog.listing import resolve_listing
from ordering.catalog.port import ProductSnapshot
from ordering.coupon.coupon import Coupon, as_utc, normalize_code
from ordering.order.pricing import quote_price
from ordering.shared.errors import CouponRejectedError, CouponRejection
from ordering.shared.money import to_decimal

logger = structlog.get_logger(__name__)


def find_active_coupon(code) -> Coupon:
    """Load the active coupon matching `code` case-insensitively."""
    repo = current_domain.repository_for(Coupon)
    matches = repo._dao.query.filter(code=normalize_code(code), is_active=True).all().items
    if not matches:
        raise CouponRejectedError(CouponRejection.NOT_FOUND, "Invalid coupon code")
    return repo.get(matches[0].id)


def validate_coupon(code, user_id, now=None) -> Coupon:
    coupon = find_active_coupon(code)
    coupon.check_eligibility(user_id, now)
    return coupon


def resolve_coupon_for_product(code, user_id, product: ProductSnapshot, now=None) -> Coupon:
    """Run the full pipeline for a purchase of `product` by `user_id`."""
    coupon = validate_coupon(code, user_id, now)

    if not coupon.applies_to(service_id=product.service_id, product_id=product.id):
        raise CouponRejectedError(CouponRejection.NOT_APPLICABLE, "This coupon is not valid for this product")

    if to_decimal(product.price) < to_decimal(coupon.minimum_amount):
        raise CouponRejectedError(
            CouponRejection.NOT_APPLICABLE,
            f"Minimum order amount for this coupon is {coupon.minimum_amount:.2f}",
        )

    return coupon


def coupon_summary(coupon: Coupon) -> dict:
    return {
        "code": coupon.code,
        "name": coupon.name,
        "description": coupon.description,
        "discount_type": coupon.discount.discount_type,
        "discount_value": coupon.discount.value,
        "minimum_amount": coupon.minimum_amount,
        "maximum_discount": coupon.maximum_discount,
        "remaining_uses": coupon.remaining_uses,
        "valid_until": coupon.valid_until,
    }


def quote_coupon(code, user_id, product_id=None, now=None) -> dict:
    """Preview a coupon for a user, with a price quote when a product is given.

    Nothing is redeemed; the usage ledger is left untouched.
    """
    now = as_utc(now) or datetime.now(UTC)

    if product_id is None:
        coupon = validate_coupon(code, user_id, now)
        return {"coupon": coupon_summary(coupon), "quote": None}

    product, _service = resolve_listing(product_id)
    coupon = resolve_coupon_for_product(code, user_id, product, now)
    quote = quote_price(product.price, product.currency, coupon)

    logger.debug("coupon_quoted", code=coupon.code, product_id=product.id, discount=quote.discount_amount)
    return {"coupon": coupon_summary(coupon), "quote": quote.to_dict()}
