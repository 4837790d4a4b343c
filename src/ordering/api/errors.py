"""Mapping of ordering errors to HTTP responses.

Protean's own handlers are registered first; the handlers below are more
specific (FastAPI picks the closest class in the exception's MRO) and give
every error body the same shape: `{"success": false, "message": ...}` plus
`errors` or `reason` where they apply.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from ordering.catalog.http_adapter import CatalogUnavailableError
from ordering.shared.errors import (
    CouponRejectedError,
    InvalidSignatureError,
    InvalidTransitionError,
    PaymentProviderError,
    ProductUnavailableError,
)

logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def _messages_of(exc: Exception) -> dict:
    """Field messages of a Protean exception; only the `WithMessage` kinds carry `messages`."""
    messages = getattr(exc, "messages", None)
    if messages is None and exc.args:
        messages = exc.args[0]
    return messages if isinstance(messages, dict) else {}


def _first_message(messages, default: str) -> str:
    if isinstance(messages, dict):
        for values in messages.values():
            if isinstance(values, list | tuple) and values:
                return str(values[0])
            if values:
                return str(values)
    return default


async def coupon_rejected_handler(request: Request, exc: CouponRejectedError) -> JSONResponse:
    return _error(400, exc.message, reason=exc.reason.value, errors=exc.messages)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, _first_message(exc.messages, "Validation failed"), errors=exc.messages)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    messages = _messages_of(exc)
    return _error(404, _first_message(messages, "Not found"), errors=messages)


async def product_unavailable_handler(request: Request, exc: ProductUnavailableError) -> JSONResponse:
    return _error(404, exc.message)


async def invalid_transition_handler(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return _error(409, _first_message(_messages_of(exc), "Operation not allowed in the current state"))


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("version_conflict", path=request.url.path)
    return _error(409, "The resource was modified concurrently; retry the request")


async def provider_error_handler(request: Request, exc: PaymentProviderError) -> JSONResponse:
    logger.error("payment_provider_error", path=request.url.path, provider=exc.provider, error=exc.message)
    return _error(502, "Payment provider error", provider=exc.provider)


async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailableError) -> JSONResponse:
    return _error(502, "Catalog service unavailable")


async def invalid_signature_handler(request: Request, exc: InvalidSignatureError) -> JSONResponse:
    return _error(401, "Invalid webhook signature")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return _error(500, "Sunucu hatası oluştu", message_en="Server error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    """Install HTTP mappings for domain and provider errors on `app`."""
    register_protean_handlers(app)

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(CouponRejectedError, coupon_rejected_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(ProductUnavailableError, product_unavailable_handler)
    app.add_exception_handler(InvalidOperationError, invalid_transition_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(PaymentProviderError, provider_error_handler)
    app.add_exception_handler(CatalogUnavailableError, catalog_unavailable_handler)
    app.add_exception_handler(InvalidSignatureError, invalid_signature_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
