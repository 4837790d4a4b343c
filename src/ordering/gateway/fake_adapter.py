"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. Tests configure the
status it reports and whether calls fail, and inspect `calls` afterwards.
Webhook payloads use the DodoPayments shape.
"""

from uuid import uuid4

from ordering.gateway.port import PaymentGateway, PaymentHandle, PaymentRequest, ProviderStatus, WebhookNotice
from ordering.shared.errors import PaymentProviderError

_KNOWN_STATUSES = frozenset({"pending", "processing", "completed", "failed", "cancelled", "refunded"})


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    signature_header = "X-Fake-Signature"

    def __init__(self, name: str = "dodo", payment_method: str = "crypto_dodo") -> None:
        self.name = name
        self.payment_method = payment_method
        self.provider_status: str = "pending"
        self.should_fail: bool = False
        self.calls: list[dict] = []

    def configure(self, provider_status: str = "pending", should_fail: bool = False) -> None:
        """Configure gateway behavior at runtime."""
        self.provider_status = provider_status
        self.should_fail = should_fail

    def _maybe_fail(self) -> None:
        if self.should_fail:
            raise PaymentProviderError(self.name, "Simulated provider outage")

    def create_payment(self, request: PaymentRequest) -> PaymentHandle:
        self.calls.append({"method": "create_payment", "order_number": request.order_number, "amount": request.amount})
        self._maybe_fail()

        payment_id = f"fake_pay_{uuid4().hex[:12]}"
        return PaymentHandle(
            payment_id=payment_id,
            payment_url=f"https://pay.example.test/{payment_id}",
            status="pending",
            raw={"id": payment_id, "status": "pending"},
        )

    def check_status(self, payment_id: str) -> ProviderStatus:
        self.calls.append({"method": "check_status", "payment_id": payment_id})
        self._maybe_fail()
        return ProviderStatus(
            provider_status=self.provider_status,
            status=self.map_status(self.provider_status),
            raw={"id": payment_id, "status": self.provider_status},
        )

    def map_status(self, provider_status: str | None) -> str:
        return provider_status if provider_status in _KNOWN_STATUSES else "pending"

    def parse_webhook(self, payload: dict) -> WebhookNotice | None:
        event_type = payload.get("event_type") or ""
        data = payload.get("data") or {}
        order_number = data.get("order_id")
        status = data.get("status")
        if not event_type.startswith("payment.") or not order_number or status not in _KNOWN_STATUSES:
            return None
        return WebhookNotice(event_type=event_type, order_number=order_number, status=status, raw=payload)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
