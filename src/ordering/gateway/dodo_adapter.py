"""DodoPayments adapter.

Bearer-authenticated REST API: `POST /v1/payments` opens a session,
`GET /v1/payments/{id}` reports its status. Dodo's statuses already use
the normalized vocabulary; anything unrecognized is treated as pending.
Webhooks are signed with a hex HMAC-SHA256 of the raw body. Only
`payment.completed` and `payment.failed` events are applied, with the status
taken from `data.status`.
"""

import httpx

from ordering.gateway.client import ProviderClient
from ordering.gateway.port import (
    PaymentGateway,
    PaymentHandle,
    PaymentRequest,
    ProviderStatus,
    WebhookNotice,
    verify_hmac_signature,
)
from ordering.shared.errors import PaymentProviderError

_KNOWN_STATUSES = frozenset({"pending", "processing", "completed", "failed", "cancelled", "refunded"})

_WEBHOOK_EVENTS = frozenset({"payment.completed", "payment.failed"})


class DodoPaymentsGateway(PaymentGateway):
    name = "dodo"
    payment_method = "crypto_dodo"
    signature_header = "X-Dodo-Signature"

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        base_url: str = "https://api.dodopayments.com",
        callback_base_url: str = "http://localhost:8000",
        frontend_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.callback_base_url = callback_base_url
        self.frontend_url = frontend_url
        self.http = ProviderClient(
            self.name,
            base_url,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def create_payment(self, request: PaymentRequest) -> PaymentHandle:
        payload = {
            "amount": request.amount,
            "currency": request.currency,
            "order_id": request.order_number,
            "description": request.description,
            "customer": {
                "name": request.customer_name,
                "email": request.customer_email,
                "phone": request.customer_phone,
            },
            "callback_url": f"{self.callback_base_url}/payments/webhooks/dodo",
            "return_url": f"{self.frontend_url}/payment/success?order={request.order_number}",
            "cancel_url": f"{self.frontend_url}/payment/cancel?order={request.order_number}",
            "metadata": {"order_id": request.order_id, "user_id": request.user_id},
        }
        body = self.http.request("POST", "/v1/payments", json=payload)

        if not body.get("id"):
            raise PaymentProviderError(self.name, "Payment response carried no id")
        return PaymentHandle(
            payment_id=str(body["id"]),
            payment_url=body.get("payment_url"),
            status=self.map_status(body.get("status")),
            raw=body,
        )

    def check_status(self, payment_id: str) -> ProviderStatus:
        body = self.http.request("GET", f"/v1/payments/{payment_id}")
        provider_status = body.get("status")
        return ProviderStatus(provider_status=provider_status, status=self.map_status(provider_status), raw=body)

    def map_status(self, provider_status: str | None) -> str:
        status = (provider_status or "").lower()
        return status if status in _KNOWN_STATUSES else "pending"

    def parse_webhook(self, payload: dict) -> WebhookNotice | None:
        event_type = payload.get("event_type")
        data = payload.get("data") or {}
        order_number = data.get("order_id")
        if event_type not in _WEBHOOK_EVENTS or not order_number:
            return None
        return WebhookNotice(
            event_type=event_type,
            order_number=str(order_number),
            status=self.map_status(data.get("status")),
            raw=payload,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        return verify_hmac_signature(self.webhook_secret, payload, signature)
