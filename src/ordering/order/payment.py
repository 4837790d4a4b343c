"""Payment reconciliation — commands and handler.

InitiatePayment opens a provider session for a pending order.
SyncPaymentStatus polls the provider and applies the mapped status.
RecordPaymentResult applies a status delivered by a verified webhook.

Provider calls happen before any mutation: a provider failure raises
PaymentProviderError and leaves the order untouched.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.gateway import get_gateway
from ordering.gateway.port import PaymentRequest
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.order.queries import get_order
from ordering.shared.errors import InvalidTransitionError
from ordering.utils.locks import order_key, process_serialized

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class InitiatePayment:
    """Open a payment session with the provider behind the order's payment method."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class SyncPaymentStatus:
    """Poll the provider for the order's payment status."""

    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class RecordPaymentResult:
    """Apply a normalized payment status reported by the provider."""

    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)
    provider_payload = Text()  # JSON


def _payment_request(order: Order) -> PaymentRequest:
    return PaymentRequest(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.customer_id),
        amount=order.pricing.final_price,
        currency=order.pricing.currency,
        description=f"{order.catalog.service_name} - {order.catalog.product_name}",
        customer_name=order.customer.full_name,
        customer_email=order.customer.email,
        customer_phone=order.customer.phone,
    )


@ordering.command_handler(part_of=Order)
class PaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        order = get_order(command.order_id)

        # Checked before the provider call so a second click never opens a second session
        if OrderStatus(order.status) != OrderStatus.PENDING or order.payment.status != PaymentStatus.PENDING.value:
            raise InvalidTransitionError(
                f"Cannot start payment: order is {order.status}, payment is {order.payment.status}"
            )

        gateway = get_gateway(order.payment.method)
        handle_ = gateway.create_payment(_payment_request(order))

        order.record_payment_initiated(handle_.payment_id, handle_.payment_url, handle_.raw)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "payment_initiated",
            order_id=str(order.id),
            provider=gateway.name,
            transaction_id=handle_.payment_id,
        )
        return {
            "payment_id": handle_.payment_id,
            "payment_url": handle_.payment_url,
            "status": order.payment.status,
        }

    @handle(SyncPaymentStatus)
    def sync_payment_status(self, command):
        order = get_order(command.order_id)
        if not order.payment.transaction_id:
            return order.payment.status

        gateway = get_gateway(order.payment.method)
        result = gateway.check_status(order.payment.transaction_id)

        if order.apply_payment_result(result.status, result.raw):
            current_domain.repository_for(Order).add(order)
            logger.info(
                "payment_status_synced",
                order_id=str(order.id),
                provider=gateway.name,
                provider_status=result.provider_status,
                payment_status=order.payment.status,
            )
        return order.payment.status

    @handle(RecordPaymentResult)
    def record_payment_result(self, command):
        order = get_order(command.order_id)
        payload = json.loads(command.provider_payload) if command.provider_payload else None

        changed = order.apply_payment_result(command.payment_status, payload)
        if changed:
            current_domain.repository_for(Order).add(order)
        return changed


def initiate_payment(order_id) -> dict:
    return process_serialized(InitiatePayment(order_id=order_id), order_key(order_id))


def sync_payment_status(order_id) -> str:
    return process_serialized(SyncPaymentStatus(order_id=order_id), order_key(order_id))
