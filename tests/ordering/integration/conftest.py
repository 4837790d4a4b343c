import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_exception_handlers
from ordering.api.routes import coupon_router, order_router, payment_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(coupon_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def order_body():
    def _body(**overrides):
        body = {
            "productId": "prod-1000",
            "fullName": "Ayşe Yılmaz",
            "email": "ayse@example.com",
            "phone": "+90 555 123 4567",
            "processLink": "https://instagram.com/ayse",
            "paymentMethod": "crypto_dodo",
        }
        body.update(overrides)
        return body

    return _body
