"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order for an engagement package."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    service_id = Identifier(required=True)
    payment_method = String(required=True)
    original_price = Float(required=True)
    discount_amount = Float(required=True)
    final_price = Float(required=True)
    currency = String(required=True)
    coupon_code = String()
    ordered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An operator moved the order through the fulfillment pipeline."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    progress = Integer()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentInitiated:
    """A payment session was opened with the provider."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    transaction_id = String(required=True)
    payment_url = String()
    initiated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusChanged:
    """The normalized payment status moved, by poll or by webhook."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    transaction_id = String()
    changed_at = DateTime(required=True)
