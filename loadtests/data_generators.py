"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's request schemas
(email and phone patterns, http(s) process links, coupon code format) and
use the camelCase field names existing web clients send.
"""

import hashlib
import hmac
import json
import os
import random
import uuid
from datetime import UTC, datetime, timedelta

from faker import Faker
from jose import jwt

fake = Faker("tr_TR")

AUTH_SECRET_KEY = os.environ.get("AUTH_SECRET_KEY", "change-me-in-production")
AUTH_ALGORITHM = os.environ.get("AUTH_ALGORITHM", "HS256")
OPERATOR_ROLE = os.environ.get("OPERATOR_ROLE", "admin")
DODO_WEBHOOK_SECRET = os.environ.get("DODO_PAYMENTS_WEBHOOK_SECRET", "")
PRODUCT_IDS = [p.strip() for p in os.environ.get("LOADTEST_PRODUCT_IDS", "prod-ig-1000").split(",") if p.strip()]

PAYMENT_METHODS = ["crypto_dodo", "crypto_coinbase"]
PLATFORMS = ["instagram.com", "tiktok.com", "youtube.com", "x.com"]


# ---------- Auth ----------


def unique_user_id() -> str:
    return f"user-lt-{uuid.uuid4().hex[:8]}"


def bearer_headers(user_id: str, role: str = "user") -> dict:
    """Authorization header with a token the API will accept."""
    token = jwt.encode({"sub": user_id, "role": role}, AUTH_SECRET_KEY, algorithm=AUTH_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


def operator_headers() -> dict:
    return bearer_headers(f"ops-lt-{uuid.uuid4().hex[:6]}", role=OPERATOR_ROLE)


# ---------- Orders ----------


def valid_email() -> str:
    local = fake.user_name()[:20]
    return f"{local}.{uuid.uuid4().hex[:4]}@example.com"


def valid_phone() -> str:
    """Turkish mobile numbers, e.g. '+90 532 123 4567'."""
    return f"+90 5{random.randint(30, 59)} {random.randint(100, 999)} {random.randint(1000, 9999)}"


def process_link() -> str:
    return f"https://{random.choice(PLATFORMS)}/{fake.user_name()[:30]}"


def order_data(product_id: str | None = None, coupon_code: str | None = None) -> dict:
    """Generate PlaceOrderRequest payload."""
    payload = {
        "productId": product_id or random.choice(PRODUCT_IDS),
        "fullName": fake.name()[:100],
        "email": valid_email(),
        "phone": valid_phone(),
        "processLink": process_link(),
        "paymentMethod": random.choice(PAYMENT_METHODS),
    }
    if coupon_code:
        payload["couponCode"] = coupon_code
    return payload


def status_update_data(status: str, progress: int | None = None) -> dict:
    """Generate UpdateOrderStatusRequest payload."""
    payload = {"status": status}
    if progress is not None:
        payload["progress"] = progress
    if random.random() < 0.3:
        payload["adminNotes"] = fake.sentence()[:200]
    return payload


# ---------- Coupons ----------


def coupon_code() -> str:
    return f"LT{uuid.uuid4().hex[:8].upper()}"


def coupon_data(code: str | None = None, total_limit: int | None = None) -> dict:
    """Generate CreateCouponRequest payload valid from now for a week."""
    now = datetime.now(UTC)
    percentage = random.random() < 0.5
    return {
        "code": code or coupon_code(),
        "name": f"Load test {fake.word()}"[:100],
        "discountType": "percentage" if percentage else "fixed",
        "discountValue": random.choice([10, 15, 20]) if percentage else random.choice([25, 50, 100]),
        "maximumDiscount": 150 if percentage else None,
        "totalLimit": total_limit,
        "perUserLimit": 1,
        "validFrom": (now - timedelta(minutes=5)).isoformat(),
        "validUntil": (now + timedelta(days=7)).isoformat(),
    }


# ---------- Webhooks ----------


def dodo_webhook(order_number: str, event_type: str = "payment.completed") -> tuple[bytes, dict]:
    """Raw DodoPayments webhook body plus its signature header."""
    raw = json.dumps(
        {
            "event_type": event_type,
            "data": {
                "order_id": order_number,
                "payment_id": f"pay_{uuid.uuid4().hex[:12]}",
                "status": event_type.rsplit(".", 1)[-1],
            },
        }
    ).encode()
    signature = hmac.new(DODO_WEBHOOK_SECRET.encode(), raw, hashlib.sha256).hexdigest()
    return raw, {"Content-Type": "application/json", "X-Dodo-Signature": signature}
