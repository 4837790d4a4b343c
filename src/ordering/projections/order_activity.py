"""Order activity — append-only audit trail of all order events."""

import json
import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged, PaymentInitiated, PaymentStatusChanged
from ordering.order.order import Order


@ordering.projection
class OrderActivity:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=30)
    event_type = String(required=True, max_length=50)
    description = String(required=True, max_length=500)
    occurred_at = DateTime(required=True)
    event_metadata = Text()  # JSON: extra event data


def _add_entry(event, event_type, description, occurred_at, event_metadata=None):
    current_domain.repository_for(OrderActivity).add(
        OrderActivity(
            entry_id=str(uuid.uuid4()),
            order_id=event.order_id,
            order_number=event.order_number,
            event_type=event_type,
            description=description,
            occurred_at=occurred_at,
            event_metadata=json.dumps(event_metadata) if event_metadata else None,
        )
    )


def activity_for(order_id) -> list[OrderActivity]:
    """Entries for one order, oldest first."""
    return (
        current_domain.repository_for(OrderActivity)
        ._dao.query.filter(order_id=str(order_id))
        .order_by("occurred_at")
        .all()
        .items
    )


@ordering.projector(projector_for=OrderActivity, aggregates=[Order])
class OrderActivityProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        _add_entry(
            event,
            "OrderPlaced",
            f"Order placed for {event.final_price:.2f} {event.currency}",
            event.ordered_at,
            {"coupon_code": event.coupon_code, "payment_method": event.payment_method},
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        _add_entry(
            event,
            "OrderStatusChanged",
            f"Status changed from {event.previous_status} to {event.new_status}",
            event.changed_at,
            {"progress": event.progress},
        )

    @on(PaymentInitiated)
    def on_payment_initiated(self, event):
        _add_entry(
            event,
            "PaymentInitiated",
            f"Payment initiated via {event.payment_method}",
            event.initiated_at,
            {"transaction_id": event.transaction_id},
        )

    @on(PaymentStatusChanged)
    def on_payment_status_changed(self, event):
        _add_entry(
            event,
            "PaymentStatusChanged",
            f"Payment status changed from {event.previous_status} to {event.new_status}",
            event.changed_at,
            {"transaction_id": event.transaction_id},
        )
