"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Request bodies accept both snake_case and the
camelCase names used by existing web clients (`processLink`, `couponCode`).
"""

from datetime import datetime
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PaymentMethodName = Literal["crypto_dodo", "crypto_coinbase", "credit_card", "bank_transfer"]
OrderStatusName = Literal["pending", "processing", "in_progress", "completed", "cancelled", "refunded"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_PHONE_PATTERN = r"^\+?[0-9\s\-()]{7,20}$"
_COUPON_PATTERN = r"^[A-Za-z0-9]{3,20}$"


class RequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(RequestSchema):
    product_id: str
    full_name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=254)
    phone: str = Field(pattern=_PHONE_PATTERN)
    process_link: str = Field(max_length=500)
    payment_method: PaymentMethodName
    coupon_code: str | None = Field(default=None, pattern=_COUPON_PATTERN)

    @field_validator("process_link")
    @classmethod
    def process_link_must_be_http_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("processLink must be a valid http(s) URL")
        return v

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "examples": [
                {
                    "productId": "prod-ig-1000",
                    "fullName": "Ayşe Yılmaz",
                    "email": "ayse@example.com",
                    "phone": "+90 555 123 4567",
                    "processLink": "https://instagram.com/ayse",
                    "paymentMethod": "crypto_dodo",
                    "couponCode": "WELCOME20",
                }
            ]
        },
    )


class UpdateOrderStatusRequest(RequestSchema):
    status: OrderStatusName
    admin_notes: str | None = Field(default=None, max_length=1000)
    progress: int | None = Field(default=None, ge=0, le=100)


class ValidateCouponRequest(RequestSchema):
    coupon_code: str = Field(pattern=_COUPON_PATTERN)
    product_id: str | None = None


class OrderQueryRequest(RequestSchema):
    order_number: str | None = None


# ---------------------------------------------------------------------------
# Coupon Request Schemas
# ---------------------------------------------------------------------------
class CreateCouponRequest(RequestSchema):
    code: str = Field(pattern=_COUPON_PATTERN)
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(ge=0)
    minimum_amount: float = Field(default=0.0, ge=0)
    maximum_discount: float | None = Field(default=None, ge=0)
    total_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int = Field(default=1, ge=1)
    valid_from: datetime
    valid_until: datetime
    applicable_services: list[str] = Field(default_factory=list)
    applicable_products: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str
    order_number: str


class PaymentSessionResponse(BaseModel):
    payment_id: str
    payment_url: str | None = None
    status: str


class PaymentStatusResponse(BaseModel):
    order_id: str
    payment_status: str


class CouponIdResponse(BaseModel):
    coupon_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class WebhookAck(BaseModel):
    success: bool = True
