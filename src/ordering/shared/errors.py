"""Error kinds raised by the ordering context.

Each subclasses the Protean exception closest to its meaning, so callers that
only care about the broad kind (validation, not found, invalid operation) keep
working, while the HTTP layer can map the specific kinds to their own status
codes.
"""

from enum import Enum

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class CouponRejection(Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    LIMIT_EXCEEDED = "limit_exceeded"
    NOT_APPLICABLE = "not_applicable"


class InvalidTransitionError(InvalidOperationError):
    """The order is in a state that does not permit the requested change."""

    def __init__(self, message: str) -> None:
        super().__init__({"status": [message]})
        self.message = message


class CouponRejectedError(ValidationError):
    """A coupon code failed the redemption checks."""

    def __init__(self, reason: CouponRejection, message: str) -> None:
        super().__init__({"coupon_code": [message]})
        self.reason = reason
        self.message = message


class ProductUnavailableError(ObjectNotFoundError):
    """The requested product, or the service it belongs to, cannot be sold."""

    def __init__(self, message: str) -> None:
        super().__init__({"product_id": [message]})
        self.message = message


class PaymentProviderError(Exception):
    """A payment provider call failed: transport error, timeout, non-2xx or bad body."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


class InvalidSignatureError(Exception):
    """An inbound webhook failed signature verification."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Invalid {provider} webhook signature")
        self.provider = provider
