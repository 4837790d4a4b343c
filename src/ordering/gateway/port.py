"""Payment gateway port (abstract interface).

Defines the contract every crypto payment provider adapter implements, so
order commands can open sessions, poll status and read webhooks without
knowing which provider sits behind the order's payment method.

All statuses leaving an adapter are already normalized to the ordering
context's PaymentStatus values.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentRequest:
    """What a provider needs to open a payment session for an order."""

    order_id: str
    order_number: str
    user_id: str
    amount: float
    currency: str
    description: str
    customer_name: str
    customer_email: str
    customer_phone: str | None = None


@dataclass(frozen=True)
class PaymentHandle:
    """A payment session opened with the provider."""

    payment_id: str
    payment_url: str | None
    status: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderStatus:
    """The provider's current view of a payment."""

    provider_status: str | None
    status: str
    raw: dict = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookNotice:
    """An actionable webhook: which order, and the status it reports."""

    event_type: str
    order_number: str
    status: str
    raw: dict = field(default_factory=dict)


def verify_hmac_signature(secret: str, payload: bytes, signature: str) -> bool:
    """Constant-time check of a hex HMAC-SHA256 over the raw request body.

    Fails closed: no secret or no signature never verifies.
    """
    if not secret or not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = ""
    payment_method: str = ""
    signature_header: str = ""

    @abstractmethod
    def create_payment(self, request: PaymentRequest) -> PaymentHandle:
        """Open a payment session and return where the customer should pay."""
        ...

    @abstractmethod
    def check_status(self, payment_id: str) -> ProviderStatus:
        """Ask the provider for the current status of a payment."""
        ...

    @abstractmethod
    def map_status(self, provider_status: str | None) -> str:
        """Translate a provider status into a normalized payment status."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: dict) -> WebhookNotice | None:
        """Extract an actionable notice, or None for events we do not act on."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the provider."""
        ...
