"""Coinbase Commerce adapter.

Charges are created with `POST /charges` and read with `GET /charges/{id}`.
A charge's status is the status of the *last* entry in its timeline.
Webhooks are signed with a hex HMAC-SHA256 of the raw body.
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

API_VERSION = "2018-03-22"

_STATUS_MAP = {
    "NEW": "pending",
    "PENDING": "processing",
    "CONFIRMED": "completed",
    "FAILED": "failed",
    "EXPIRED": "cancelled",
    "CANCELED": "cancelled",
    "REFUND PENDING": "refunded",
    "REFUNDED": "refunded",
}

_WEBHOOK_EVENTS = frozenset({"charge:confirmed", "charge:failed"})

# Coinbase does not price in lira; such amounts are charged in USD.
_CURRENCY_MAP = {"TRY": "USD"}


def _last_timeline_status(charge: dict) -> str | None:
    timeline = charge.get("timeline") or []
    return timeline[-1].get("status") if timeline else None


class CoinbaseCommerceGateway(PaymentGateway):
    name = "coinbase"
    payment_method = "crypto_coinbase"
    signature_header = "X-CC-Webhook-Signature"

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        base_url: str = "https://api.commerce.coinbase.com",
        frontend_url: str = "http://localhost:3000",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.frontend_url = frontend_url
        self.http = ProviderClient(
            self.name,
            base_url,
            headers={
                "X-CC-Api-Key": api_key,
                "X-CC-Version": API_VERSION,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def create_payment(self, request: PaymentRequest) -> PaymentHandle:
        payload = {
            "name": f"Order {request.order_number}",
            "description": request.description,
            "pricing_type": "fixed_price",
            "local_price": {
                "amount": f"{request.amount:.2f}",
                "currency": _CURRENCY_MAP.get(request.currency, request.currency),
            },
            "metadata": {
                "order_id": request.order_id,
                "order_number": request.order_number,
                "user_id": request.user_id,
                "customer_name": request.customer_name,
                "customer_email": request.customer_email,
            },
            "redirect_url": f"{self.frontend_url}/payment/success?order={request.order_number}",
            "cancel_url": f"{self.frontend_url}/payment/cancel?order={request.order_number}",
        }
        body = self.http.request("POST", "/charges", json=payload)

        charge = body.get("data") or {}
        if not charge.get("id"):
            raise PaymentProviderError(self.name, "Charge response carried no id")
        return PaymentHandle(
            payment_id=str(charge["id"]),
            payment_url=charge.get("hosted_url"),
            status=self.map_status(_last_timeline_status(charge)),
            raw=body,
        )

    def check_status(self, payment_id: str) -> ProviderStatus:
        body = self.http.request("GET", f"/charges/{payment_id}")
        provider_status = _last_timeline_status(body.get("data") or {})
        return ProviderStatus(provider_status=provider_status, status=self.map_status(provider_status), raw=body)

    def map_status(self, provider_status: str | None) -> str:
        return _STATUS_MAP.get((provider_status or "").upper(), "pending")

    def parse_webhook(self, payload: dict) -> WebhookNotice | None:
        event = payload.get("event") or {}
        event_type = event.get("type")
        charge = event.get("data") or {}
        order_number = (charge.get("metadata") or {}).get("order_number")
        if event_type not in _WEBHOOK_EVENTS or not order_number:
            return None
        return WebhookNotice(
            event_type=event_type,
            order_number=str(order_number),
            status=self.map_status(_last_timeline_status(charge)),
            raw=payload,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        return verify_hmac_signature(self.webhook_secret, payload, signature)
