"""Payment gateway registry.

Each crypto payment method is served by one provider adapter:
- crypto_dodo      → DodoPaymentsGateway
- crypto_coinbase  → CoinbaseCommerceGateway

Adapters are built from settings on first use. set_gateway() swaps one in
(FakeGateway in tests); reset_gateways() drops all overrides.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.gateway import coinbase_adapter, dodo_adapter
from ordering.gateway.port import PaymentGateway
from ordering.utils.config import settings

_METHOD_TO_PROVIDER = {
    "crypto_dodo": "dodo",
    "crypto_coinbase": "coinbase",
}

_gateways: dict[str, PaymentGateway] = {}


def _build(provider: str) -> PaymentGateway:
    if provider == "dodo":
        return dodo_adapter.DodoPaymentsGateway(
            api_key=settings.dodo_payments_api_key,
            webhook_secret=settings.dodo_payments_webhook_secret,
            base_url=settings.dodo_payments_base_url,
            callback_base_url=settings.base_url,
            frontend_url=settings.frontend_url,
            timeout=settings.payment_provider_timeout,
        )
    return coinbase_adapter.CoinbaseCommerceGateway(
        api_key=settings.coinbase_api_key,
        webhook_secret=settings.coinbase_webhook_secret,
        base_url=settings.coinbase_base_url,
        frontend_url=settings.frontend_url,
        timeout=settings.payment_provider_timeout,
    )


def get_provider_gateway(provider: str) -> PaymentGateway:
    """Return the gateway registered under a provider name ("dodo", "coinbase")."""
    if provider not in _METHOD_TO_PROVIDER.values():
        raise ObjectNotFoundError({"provider": [f"Unknown payment provider: {provider}"]})
    if provider not in _gateways:
        _gateways[provider] = _build(provider)
    return _gateways[provider]


def get_gateway(payment_method: str) -> PaymentGateway:
    """Return the gateway serving an order's payment method."""
    provider = _METHOD_TO_PROVIDER.get(payment_method)
    if provider is None:
        raise ValidationError({"payment_method": [f"Online payment is not supported for {payment_method}"]})
    return get_provider_gateway(provider)


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the gateway for `gateway.name` (useful for tests)."""
    _gateways[gateway.name] = gateway


def reset_gateways() -> None:
    """Reset to gateways built from settings."""
    _gateways.clear()
