"""Application tests for initiating payments, polling providers and recording results."""

import json

import pytest
from ordering.order.creation import PlaceOrder, place_order
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentResult, initiate_payment, sync_payment_status
from ordering.order.status import UpdateOrderStatus
from ordering.shared.errors import InvalidTransitionError, PaymentProviderError
from protean import current_domain
from protean.exceptions import ValidationError


def _place(payment_method="crypto_dodo"):
    return place_order(
        PlaceOrder(
            customer_id="user-1",
            product_id="prod-1000",
            full_name="Ali Veli",
            email="ali@example.com",
            phone="05551234567",
            process_link="https://instagram.com/aliveli",
            payment_method=payment_method,
        )
    )


def _load(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.mark.usefixtures("catalog")
class TestInitiatePayment:
    def test_opens_session_and_records_it(self, dodo_gateway):
        order_id = _place()
        result = initiate_payment(order_id)

        assert result["payment_id"].startswith("fake_pay_")
        assert result["payment_url"] == f"https://pay.example.test/{result['payment_id']}"
        assert result["status"] == "processing"

        order = _load(order_id)
        assert order.payment.status == "processing"
        assert order.payment.transaction_id == result["payment_id"]
        assert order.status == "pending"

    def test_sends_final_price_to_provider(self, dodo_gateway):
        order = _load(_place())
        initiate_payment(order.id)
        assert dodo_gateway.calls == [
            {"method": "create_payment", "order_number": order.order_number, "amount": 1000.0}
        ]

    def test_routes_coinbase_orders_to_coinbase(self, dodo_gateway, coinbase_gateway):
        order_id = _place(payment_method="crypto_coinbase")
        initiate_payment(order_id)
        assert len(coinbase_gateway.calls) == 1
        assert dodo_gateway.calls == []

    def test_second_initiation_rejected_without_provider_call(self, dodo_gateway):
        order_id = _place()
        initiate_payment(order_id)
        with pytest.raises(InvalidTransitionError):
            initiate_payment(order_id)
        assert len(dodo_gateway.calls) == 1

    def test_cancelled_order_rejected(self, dodo_gateway):
        order_id = _place()
        current_domain.process(UpdateOrderStatus(order_id=order_id, status="cancelled"), asynchronous=False)
        with pytest.raises(InvalidTransitionError):
            initiate_payment(order_id)
        assert dodo_gateway.calls == []

    def test_provider_failure_leaves_order_untouched(self, dodo_gateway):
        order_id = _place()
        dodo_gateway.configure(should_fail=True)
        with pytest.raises(PaymentProviderError):
            initiate_payment(order_id)

        order = _load(order_id)
        assert order.payment.status == "pending"
        assert order.payment.transaction_id is None

    @pytest.mark.parametrize("payment_method", ["credit_card", "bank_transfer"])
    def test_offline_methods_not_supported(self, payment_method):
        order_id = _place(payment_method=payment_method)
        with pytest.raises(ValidationError):
            initiate_payment(order_id)


@pytest.mark.usefixtures("catalog")
class TestSyncPaymentStatus:
    def test_without_session_returns_current_status(self, dodo_gateway):
        order_id = _place()
        assert sync_payment_status(order_id) == "pending"
        assert dodo_gateway.calls == []

    def test_applies_provider_status(self, dodo_gateway):
        order_id = _place()
        initiate_payment(order_id)
        dodo_gateway.configure(provider_status="completed")

        assert sync_payment_status(order_id) == "completed"
        order = _load(order_id)
        assert order.payment.paid_at is not None
        assert order.timestamps.paid is not None
        assert order.status == "pending"

    def test_unknown_provider_status_maps_to_pending(self, dodo_gateway):
        order_id = _place()
        initiate_payment(order_id)
        dodo_gateway.configure(provider_status="requires_review")
        assert sync_payment_status(order_id) == "pending"

    def test_unchanged_status_not_rewritten(self, dodo_gateway):
        order_id = _place()
        initiate_payment(order_id)
        dodo_gateway.configure(provider_status="completed")
        sync_payment_status(order_id)
        paid_at = _load(order_id).payment.paid_at

        sync_payment_status(order_id)
        assert _load(order_id).payment.paid_at == paid_at

    def test_provider_failure_propagates(self, dodo_gateway):
        order_id = _place()
        initiate_payment(order_id)
        dodo_gateway.configure(should_fail=True)
        with pytest.raises(PaymentProviderError):
            sync_payment_status(order_id)
        assert _load(order_id).payment.status == "processing"


@pytest.mark.usefixtures("catalog")
class TestRecordPaymentResult:
    def _record(self, order_id, status, payload=None):
        return current_domain.process(
            RecordPaymentResult(
                order_id=order_id,
                payment_status=status,
                provider_payload=json.dumps(payload) if payload is not None else None,
            ),
            asynchronous=False,
        )

    def test_reports_change(self):
        order_id = _place()
        assert self._record(order_id, "completed", {"event_type": "payment.completed"}) is True
        assert _load(order_id).payment_payload == {"event_type": "payment.completed"}

    def test_repeat_is_a_no_op(self):
        order_id = _place()
        self._record(order_id, "completed")
        assert self._record(order_id, "completed") is False

    def test_unknown_status_rejected(self):
        order_id = _place()
        with pytest.raises(ValidationError):
            self._record(order_id, "settled")
