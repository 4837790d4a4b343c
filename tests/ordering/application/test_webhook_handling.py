"""Application tests for verified provider webhooks."""

import hashlib
import hmac
import json

import httpx
import pytest
from ordering.gateway import set_gateway
from ordering.gateway.dodo_adapter import DodoPaymentsGateway
from ordering.order.creation import PlaceOrder, place_order
from ordering.order.order import Order
from ordering.order.payment import initiate_payment
from ordering.order.webhook import handle_webhook
from ordering.projections.order_activity import activity_for
from ordering.shared.errors import InvalidSignatureError
from protean import current_domain
from protean.exceptions import ObjectNotFoundError

SIGNATURE = "test-signature"


def _place_and_initiate():
    order_id = place_order(
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
    initiate_payment(order_id)
    return current_domain.repository_for(Order).get(order_id)


def _payload(event_type, order_number, status=None):
    data = {"order_id": order_number, "status": status or event_type.rsplit(".", 1)[-1]}
    return json.dumps({"event_type": event_type, "data": data}).encode()


@pytest.mark.usefixtures("catalog", "dodo_gateway")
class TestWebhookHandling:
    def test_completed_webhook_marks_paid(self):
        order = _place_and_initiate()
        assert handle_webhook("dodo", _payload("payment.completed", order.order_number), SIGNATURE) is True

        order = current_domain.repository_for(Order).get(order.id)
        assert order.payment.status == "completed"
        assert order.payment.paid_at is not None
        assert order.status == "pending"

    def test_replayed_webhook_applied_once(self):
        order = _place_and_initiate()
        payload = _payload("payment.completed", order.order_number)

        assert handle_webhook("dodo", payload, SIGNATURE) is True
        paid_at = current_domain.repository_for(Order).get(order.id).payment.paid_at
        assert handle_webhook("dodo", payload, SIGNATURE) is False

        reloaded = current_domain.repository_for(Order).get(order.id)
        assert reloaded.payment.paid_at == paid_at
        changes = [entry for entry in activity_for(order.id) if entry.event_type == "PaymentStatusChanged"]
        assert len(changes) == 1

    def test_failed_webhook(self):
        order = _place_and_initiate()
        handle_webhook("dodo", _payload("payment.failed", order.order_number), SIGNATURE)
        assert current_domain.repository_for(Order).get(order.id).payment.status == "failed"

    def test_invalid_signature_rejected_before_anything_else(self):
        order = _place_and_initiate()
        with pytest.raises(InvalidSignatureError):
            handle_webhook("dodo", _payload("payment.completed", order.order_number), "forged")
        assert current_domain.repository_for(Order).get(order.id).payment.status == "processing"

    def test_missing_signature_rejected(self):
        with pytest.raises(InvalidSignatureError):
            handle_webhook("dodo", b"{}", None)

    def test_unknown_order_acknowledged(self):
        assert handle_webhook("dodo", _payload("payment.completed", "ORD-0000000000000-9999"), SIGNATURE) is False

    def test_unhandled_event_type_ignored(self):
        order = _place_and_initiate()
        assert handle_webhook("dodo", _payload("refund.created", order.order_number), SIGNATURE) is False
        assert current_domain.repository_for(Order).get(order.id).payment.status == "processing"

    @pytest.mark.parametrize("raw", [b"not json", b"[1, 2, 3]"])
    def test_malformed_payload_ignored(self, raw):
        assert handle_webhook("dodo", raw, SIGNATURE) is False

    def test_unknown_provider(self):
        with pytest.raises(ObjectNotFoundError):
            handle_webhook("paypal", b"{}", SIGNATURE)


@pytest.mark.usefixtures("catalog", "dodo_gateway")
class TestSignedDodoWebhook:
    SECRET = "whsec_dodo"

    def _install_dodo(self):
        gateway = DodoPaymentsGateway(
            api_key="dodo_key",
            webhook_secret=self.SECRET,
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        set_gateway(gateway)

    def _signed(self, raw):
        return hmac.new(self.SECRET.encode(), raw, hashlib.sha256).hexdigest()

    def test_payment_status_taken_from_payload_data(self):
        order = _place_and_initiate()
        self._install_dodo()
        raw = _payload("payment.completed", order.order_number, status="completed")

        assert handle_webhook("dodo", raw, self._signed(raw)) is True

        reloaded = current_domain.repository_for(Order).get(order.id)
        assert reloaded.payment.status == "completed"
        assert reloaded.payment.paid_at is not None

    def test_failed_event_applies_mapped_status(self):
        order = _place_and_initiate()
        self._install_dodo()
        raw = _payload("payment.failed", order.order_number, status="cancelled")

        assert handle_webhook("dodo", raw, self._signed(raw)) is True
        assert current_domain.repository_for(Order).get(order.id).payment.status == "cancelled"
