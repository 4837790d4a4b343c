"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Coupon")
class CouponCreated:
    """An operator published a new coupon."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    created_by = Identifier()


@ordering.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by an order; the usage ledger grew by one entry."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = Float(required=True)
    usage_count = Integer(required=True)
    redeemed_at = DateTime(required=True)


@ordering.event(part_of="Coupon")
class CouponDeactivated:
    """An operator withdrew a coupon. It stays in the ledger but no longer validates."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    deactivated_at = DateTime(required=True)
