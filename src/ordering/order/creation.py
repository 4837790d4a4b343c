"""Order placement — command and handler.

Placing an order resolves the product through the catalog, runs the coupon
pipeline, prices the order and, when a coupon is used, redeems it against the
new order's id. The order and the coupon are persisted in the same unit of
work, and `place_order` dispatches the command under the coupon's lock, so a
redemption can never exist without its order, nor an order without its
redemption.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.catalog.listing import resolve_listing
from ordering.coupon.coupon import Coupon
from ordering.coupon.validation import resolve_coupon_for_product
from ordering.domain import ordering
from ordering.order.order import Order, PaymentMethod, generate_order_number
from ordering.order.pricing import quote_price
from ordering.order.queries import count_orders
from ordering.utils.locks import coupon_key, process_serialized

logger = structlog.get_logger(__name__)

# Order numbers are derived from the order count, so numbering is serialized.
ORDER_NUMBERING_KEY = "order:numbering"


@ordering.command(part_of="Order")
class PlaceOrder:
    """Place an order for one catalog product."""

    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    full_name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=20)
    process_link = String(required=True, max_length=500)
    payment_method = String(required=True, choices=PaymentMethod)
    coupon_code = String(max_length=20)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        now = datetime.now(UTC)
        product, service = resolve_listing(command.product_id)

        coupon = None
        if command.coupon_code:
            coupon = resolve_coupon_for_product(command.coupon_code, command.customer_id, product, now)

        quote = quote_price(product.price, product.currency, coupon)

        order = Order.create(
            order_number=generate_order_number(count_orders(), now),
            customer_id=command.customer_id,
            product=product,
            service=service,
            customer_details={"full_name": command.full_name, "email": command.email, "phone": command.phone},
            process_link=command.process_link,
            payment_method=command.payment_method,
            quote=quote,
            coupon=coupon,
            now=now,
        )

        if coupon is not None:
            coupon.redeem(
                user_id=command.customer_id,
                order_id=str(order.id),
                discount_amount=quote.discount_amount,
                now=now,
            )
            current_domain.repository_for(Coupon).add(coupon)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(command.customer_id),
            final_price=quote.final_price,
            coupon_code=coupon.code if coupon is not None else None,
        )
        return str(order.id)


def place_order(command: PlaceOrder) -> str:
    """Dispatch PlaceOrder, serialized on order numbering and on the coupon it redeems."""
    keys = [ORDER_NUMBERING_KEY]
    if command.coupon_code:
        keys.append(coupon_key(command.coupon_code))
    return process_serialized(command, *keys)
