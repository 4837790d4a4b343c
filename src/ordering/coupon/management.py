"""Coupon administration — operator commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon, DiscountType, normalize_code
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Coupon")
class CreateCoupon:
    """Publish a new coupon."""

    code = String(required=True, max_length=20)
    name = String(required=True, max_length=100)
    description = String(max_length=500)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_amount = Float(default=0.0, min_value=0.0)
    maximum_discount = Float(min_value=0.0)
    total_limit = Integer(min_value=1)
    per_user_limit = Integer(default=1, min_value=1)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    applicable_services = Text()  # JSON array of service ids
    applicable_products = Text()  # JSON array of product ids
    created_by = Identifier()


@ordering.command(part_of="Coupon")
class DeactivateCoupon:
    """Withdraw a coupon. Its usage ledger is kept."""

    code = String(required=True, max_length=20)


def _find_by_code(code) -> Coupon | None:
    repo = current_domain.repository_for(Coupon)
    matches = repo._dao.query.filter(code=normalize_code(code)).all().items
    return repo.get(matches[0].id) if matches else None


@ordering.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        if _find_by_code(command.code) is not None:
            raise ValidationError({"code": ["Coupon code already exists"]})

        coupon = Coupon.create(
            code=command.code,
            name=command.name,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            minimum_amount=command.minimum_amount,
            maximum_discount=command.maximum_discount,
            total_limit=command.total_limit,
            per_user_limit=command.per_user_limit,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            applicable_services=json.loads(command.applicable_services) if command.applicable_services else None,
            applicable_products=json.loads(command.applicable_products) if command.applicable_products else None,
            created_by=command.created_by,
        )
        current_domain.repository_for(Coupon).add(coupon)

        logger.info("coupon_created", coupon_id=str(coupon.id), code=coupon.code, created_by=command.created_by)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        coupon = _find_by_code(command.code)
        if coupon is None:
            raise ObjectNotFoundError({"code": [f"Coupon {normalize_code(command.code)} not found"]})

        coupon.deactivate()
        current_domain.repository_for(Coupon).add(coupon)

        logger.info("coupon_deactivated", coupon_id=str(coupon.id), code=coupon.code)
        return str(coupon.id)
