"""Integration tests for the /orders endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.order.order import Order
from protean import current_domain

pytestmark = pytest.mark.usefixtures("catalog")


def _place(client, auth_headers, order_body, user_id="user-1", **overrides):
    response = client.post("/orders", json=order_body(**overrides), headers=auth_headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateOrderEndpoint:
    def test_requires_authentication(self, client, order_body):
        response = client.post("/orders", json=order_body())
        assert response.status_code == 401

    def test_rejects_bad_token(self, client, order_body):
        response = client.post("/orders", json=order_body(), headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_creates_order_for_principal(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body, user_id="user-42")
        assert data["order_number"].startswith("ORD-")

        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.customer_id == "user-42"
        assert order.process_link == "https://instagram.com/ayse"

    def test_accepts_snake_case_fields(self, client, auth_headers):
        body = {
            "product_id": "prod-100",
            "full_name": "Ali Veli",
            "email": "ali@example.com",
            "phone": "05551234567",
            "process_link": "https://tiktok.com/@ali",
            "payment_method": "crypto_coinbase",
        }
        response = client.post("/orders", json=body, headers=auth_headers())
        assert response.status_code == 201

    def test_applies_coupon(self, client, auth_headers, order_body, add_coupon):
        add_coupon(code="SAVE150")
        data = _place(client, auth_headers, order_body, couponCode="save150")
        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.pricing.final_price == 850.0

    def test_rejected_coupon_reports_reason(self, client, auth_headers, order_body, add_coupon):
        add_coupon(code="ONCE", total_limit=1)
        _place(client, auth_headers, order_body, user_id="user-1", couponCode="ONCE")

        response = client.post("/orders", json=order_body(couponCode="ONCE"), headers=auth_headers("user-2"))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["reason"] == "limit_exceeded"

    def test_unknown_coupon(self, client, auth_headers, order_body):
        response = client.post("/orders", json=order_body(couponCode="NOPE123"), headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["reason"] == "not_found"

    def test_unavailable_product(self, client, auth_headers, order_body):
        response = client.post("/orders", json=order_body(productId="prod-off"), headers=auth_headers())
        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"processLink": "instagram.com/ayse"},
            {"email": "not-an-email"},
            {"phone": "12"},
            {"paymentMethod": "cash"},
            {"couponCode": "bad code!"},
        ],
    )
    def test_rejects_invalid_body(self, client, auth_headers, order_body, overrides):
        response = client.post("/orders", json=order_body(**overrides), headers=auth_headers())
        assert response.status_code == 422


class TestReadOrderEndpoints:
    def test_lists_only_own_orders(self, client, auth_headers, order_body):
        mine = _place(client, auth_headers, order_body, user_id="user-1")
        _place(client, auth_headers, order_body, user_id="user-2")

        response = client.get("/orders", headers=auth_headers("user-1"))
        assert response.status_code == 200
        orders = response.json()["data"]
        assert [o["order_number"] for o in orders] == [mine["order_number"]]

    def test_owner_reads_detail(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.get(f"/orders/{data['order_id']}", headers=auth_headers())
        assert response.status_code == 200
        detail = response.json()["data"]
        assert detail["customer"]["email"] == "ayse@example.com"
        assert detail["pricing"]["final_price"] == 1000.0

    def test_other_customer_forbidden(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.get(f"/orders/{data['order_id']}", headers=auth_headers("user-2"))
        assert response.status_code == 403

    def test_operator_reads_any_order(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.get(f"/orders/{data['order_id']}", headers=auth_headers("ops-1", role="admin"))
        assert response.status_code == 200

    def test_missing_order(self, client, auth_headers):
        response = client.get("/orders/does-not-exist", headers=auth_headers())
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Order does-not-exist not found",
            "errors": {"order_id": ["Order does-not-exist not found"]},
        }

    def test_activity_log(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        client.put(
            f"/orders/{data['order_id']}/status",
            json={"status": "processing"},
            headers=auth_headers("ops-1", role="admin"),
        )

        response = client.get(f"/orders/{data['order_id']}/activity", headers=auth_headers())
        assert response.status_code == 200
        event_types = [entry["event_type"] for entry in response.json()["data"]]
        assert event_types == ["OrderPlaced", "OrderStatusChanged"]


class TestValidateCouponEndpoint:
    def test_returns_quote(self, client, auth_headers, add_coupon):
        add_coupon(code="SAVE150")
        response = client.post(
            "/orders/validate-coupon",
            json={"couponCode": "SAVE150", "productId": "prod-1000"},
            headers=auth_headers(),
        )
        assert response.status_code == 200
        assert response.json()["data"]["quote"]["final_price"] == 850.0

    def test_expired_coupon(self, client, auth_headers, add_coupon):
        now = datetime.now(UTC)
        add_coupon(code="OLD", valid_from=now - timedelta(days=10), valid_until=now - timedelta(days=1))
        response = client.post("/orders/validate-coupon", json={"couponCode": "OLD"}, headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["reason"] == "expired"

    def test_requires_authentication(self, client):
        response = client.post("/orders/validate-coupon", json={"couponCode": "SAVE150"})
        assert response.status_code == 401


class TestPublicLookupEndpoints:
    def test_query_requires_order_number(self, client):
        response = client.post("/orders/query", json={})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Sipariş numarası gereklidir"
        assert body["message_en"] == "Order number is required"

    def test_query_unknown_number(self, client):
        response = client.post("/orders/query", json={"orderNumber": "ORD-0000000000000-0000"})
        assert response.status_code == 404
        assert response.json()["message_en"] == "Order number not found. Please try again."

    def test_query_returns_redacted_order(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.post("/orders/query", json={"orderNumber": data["order_number"]})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Sipariş bulundu"
        assert body["data"]["order_number"] == data["order_number"]
        assert "ayse@example.com" not in response.text
        assert "user-1" not in response.text

    def test_track_unknown_number(self, client):
        response = client.get("/orders/track/ORD-0000000000000-0000")
        assert response.status_code == 404
        body = response.json()
        assert body["message"] == "Sipariş bulunamadı"
        assert body["message_en"] == "Order not found"

    def test_track_returns_timeline(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.get(f"/orders/track/{data['order_number']}")
        assert response.status_code == 200
        steps = [entry["step"] for entry in response.json()["data"]["timeline"]]
        assert steps == ["ordered", "payment_pending"]


class TestUpdateStatusEndpoint:
    def test_operator_updates_status(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.put(
            f"/orders/{data['order_id']}/status",
            json={"status": "in_progress", "progress": 30, "adminNotes": "Queued"},
            headers=auth_headers("ops-1", role="admin"),
        )
        assert response.status_code == 200
        assert response.json() == {"status": "in_progress"}

        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.processing.progress == 30
        assert order.admin_notes == "Queued"

    def test_customer_cannot_update(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.put(
            f"/orders/{data['order_id']}/status", json={"status": "completed"}, headers=auth_headers()
        )
        assert response.status_code == 403

    def test_terminal_order_conflict(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        admin = auth_headers("ops-1", role="admin")
        client.put(f"/orders/{data['order_id']}/status", json={"status": "cancelled"}, headers=admin)

        response = client.put(f"/orders/{data['order_id']}/status", json={"status": "processing"}, headers=admin)
        assert response.status_code == 409
        assert response.json()["success"] is False
        assert response.json()["message"] == "Cannot change status of a cancelled order"

    def test_unknown_status(self, client, auth_headers, order_body):
        data = _place(client, auth_headers, order_body)
        response = client.put(
            f"/orders/{data['order_id']}/status",
            json={"status": "shipped"},
            headers=auth_headers("ops-1", role="admin"),
        )
        assert response.status_code == 422
