"""Shared fixtures for ordering tests: catalog, gateways, coupons and auth tokens."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt
from ordering.catalog import set_catalog
from ordering.catalog.fake_adapter import InMemoryCatalog
from ordering.catalog.port import ProductSnapshot, ServiceSnapshot
from ordering.coupon.coupon import Coupon
from ordering.gateway import set_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.utils.config import settings
from protean import current_domain


@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog()
    catalog.add_service(
        ServiceSnapshot(id="svc-ig", name="Instagram Followers", description="Real-looking followers")
    )
    catalog.add_service(ServiceSnapshot(id="svc-old", name="Retired Service", is_active=False))
    catalog.add_product(
        ProductSnapshot(id="prod-1000", name="1000 Followers", price=1000.0, service_id="svc-ig", quantity=1000)
    )
    catalog.add_product(
        ProductSnapshot(id="prod-100", name="100 Followers", price=100.0, service_id="svc-ig", quantity=100)
    )
    catalog.add_product(
        ProductSnapshot(id="prod-off", name="Paused Package", price=50.0, service_id="svc-ig", is_active=False)
    )
    catalog.add_product(ProductSnapshot(id="prod-old", name="Old Package", price=50.0, service_id="svc-old"))
    set_catalog(catalog)
    return catalog


@pytest.fixture()
def dodo_gateway():
    gateway = FakeGateway(name="dodo", payment_method="crypto_dodo")
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def coinbase_gateway():
    gateway = FakeGateway(name="coinbase", payment_method="crypto_coinbase")
    set_gateway(gateway)
    return gateway


def _build_coupon(code="SAVE150", discount_type="fixed", discount_value=150.0, **overrides):
    now = datetime.now(UTC)
    params = {
        "code": code,
        "name": f"{code} coupon",
        "discount_type": discount_type,
        "discount_value": discount_value,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
    }
    params.update(overrides)
    return Coupon.create(**params)


@pytest.fixture()
def make_coupon():
    """Build an unsaved coupon valid from yesterday for thirty days."""
    return _build_coupon


@pytest.fixture()
def add_coupon():
    """Persist a coupon built like make_coupon and return it."""

    def _add(**kwargs):
        coupon = _build_coupon(**kwargs)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _add


def _token_for(user_id, role="user"):
    return jwt.encode({"sub": user_id, "role": role}, settings.auth_secret_key, algorithm=settings.auth_algorithm)


@pytest.fixture()
def auth_headers():
    """Build a bearer Authorization header for a user id and role."""

    def _headers(user_id="user-1", role="user"):
        return {"Authorization": f"Bearer {_token_for(user_id, role)}"}

    return _headers
