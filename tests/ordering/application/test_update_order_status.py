"""Application tests for UpdateOrderStatus."""

import pytest
from ordering.order.creation import PlaceOrder, place_order
from ordering.order.order import Order
from ordering.order.status import UpdateOrderStatus
from ordering.shared.errors import InvalidTransitionError
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place():
    return place_order(
        PlaceOrder(
            customer_id="user-1",
            product_id="prod-1000",
            full_name="Ali Veli",
            email="ali@example.com",
            phone="05551234567",
            process_link="https://instagram.com/aliveli",
            payment_method="crypto_dodo",
        )
    )


def _update(order_id, status, **kwargs):
    return current_domain.process(UpdateOrderStatus(order_id=order_id, status=status, **kwargs), asynchronous=False)


@pytest.mark.usefixtures("catalog")
class TestUpdateOrderStatus:
    def test_returns_and_persists_new_status(self):
        order_id = _place()
        assert _update(order_id, "processing", admin_notes="Started by ops") == "processing"

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "processing"
        assert order.admin_notes == "Started by ops"
        assert order.timestamps.started is not None

    def test_progress_is_recorded(self):
        order_id = _place()
        _update(order_id, "in_progress", progress=60)
        assert current_domain.repository_for(Order).get(order_id).processing.progress == 60

    def test_completion_sets_progress_and_timestamp(self):
        order_id = _place()
        _update(order_id, "processing")
        _update(order_id, "completed")

        order = current_domain.repository_for(Order).get(order_id)
        assert order.processing.progress == 100
        assert order.timestamps.completed is not None
        assert order.order_duration_hours is not None

    def test_terminal_order_rejects_change(self):
        order_id = _place()
        _update(order_id, "cancelled")
        with pytest.raises(InvalidTransitionError):
            _update(order_id, "processing")
        assert current_domain.repository_for(Order).get(order_id).status == "cancelled"

    def test_unknown_status_rejected_by_command(self):
        order_id = _place()
        with pytest.raises(ValidationError):
            _update(order_id, "shipped")

    def test_out_of_range_progress_rejected_by_command(self):
        order_id = _place()
        with pytest.raises(ValidationError):
            _update(order_id, "in_progress", progress=101)

    def test_missing_order(self):
        with pytest.raises(ObjectNotFoundError):
            _update("missing-order", "processing")
