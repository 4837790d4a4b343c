"""Read helpers over the Order repository."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.order import Order


def count_orders() -> int:
    return current_domain.repository_for(Order)._dao.query.all().total


def find_by_order_number(order_number) -> Order | None:
    number = str(order_number or "").strip()
    if not number:
        return None
    matches = current_domain.repository_for(Order)._dao.query.filter(order_number=number).all().items
    return matches[0] if matches else None


def get_order(order_id) -> Order:
    """Load an order by id, raising ObjectNotFoundError when missing."""
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError({"order_id": [f"Order {order_id} not found"]}) from None


def orders_for_customer(customer_id) -> list[Order]:
    """The customer's orders, newest first."""
    return (
        current_domain.repository_for(Order)
        ._dao.query.filter(customer_id=str(customer_id))
        .order_by("-created_at")
        .all()
        .items
    )
