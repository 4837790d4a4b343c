"""Order fulfillment status — operator command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.queries import get_order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    """Move an order through the fulfillment pipeline."""

    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    admin_notes = String(max_length=1000)
    progress = Integer(min_value=0, max_value=100)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = get_order(command.order_id)
        previous = order.status

        order.transition_status(command.status, admin_notes=command.admin_notes, progress=command.progress)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            progress=order.processing.progress,
        )
        return order.status
