"""Inbound provider webhooks.

The signature is checked over the raw request body before anything is
parsed. Verified webhooks are always acknowledged: events we do not act on
and order numbers we do not know are logged and dropped, so providers do
not keep retrying them.
"""

import json

import structlog

from ordering.gateway import get_provider_gateway
from ordering.order.payment import RecordPaymentResult
from ordering.order.queries import find_by_order_number
from ordering.shared.errors import InvalidSignatureError
from ordering.utils.locks import order_key, process_serialized

logger = structlog.get_logger(__name__)


def handle_webhook(provider: str, raw_payload: bytes, signature: str) -> bool:
    """Verify and apply a provider webhook.

    Returns True when the order's payment status changed.

    Raises:
        InvalidSignatureError: the signature does not match the raw payload.
    """
    gateway = get_provider_gateway(provider)
    if not gateway.verify_webhook_signature(raw_payload, signature or ""):
        logger.warning("webhook_signature_invalid", provider=provider)
        raise InvalidSignatureError(provider)

    try:
        payload = json.loads(raw_payload)
    except ValueError:
        logger.warning("webhook_payload_malformed", provider=provider)
        return False
    if not isinstance(payload, dict):
        logger.warning("webhook_payload_malformed", provider=provider)
        return False

    notice = gateway.parse_webhook(payload)
    if notice is None:
        logger.info("webhook_ignored", provider=provider, event_type=_event_type(payload))
        return False

    order = find_by_order_number(notice.order_number)
    if order is None:
        logger.warning(
            "webhook_order_not_found",
            provider=provider,
            event_type=notice.event_type,
            order_number=notice.order_number,
        )
        return False

    changed = process_serialized(
        RecordPaymentResult(
            order_id=str(order.id),
            payment_status=notice.status,
            provider_payload=json.dumps(notice.raw),
        ),
        order_key(order.id),
    )
    logger.info(
        "webhook_processed",
        provider=provider,
        event_type=notice.event_type,
        order_id=str(order.id),
        payment_status=notice.status,
        changed=changed,
    )
    return changed


def _event_type(payload: dict) -> str | None:
    return payload.get("event_type") or (payload.get("event") or {}).get("type")
