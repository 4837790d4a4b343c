"""Concurrent requests against routes that call providers or wait on entity locks."""

import inspect
import threading

import pytest
from ordering.api.routes import coupon_router, order_router, payment_router
from ordering.domain import ordering
from ordering.order.order import Order
from protean import current_domain

pytestmark = pytest.mark.usefixtures("catalog")

BLOCKING_ENDPOINTS = {
    "create_order",
    "validate_coupon",
    "update_order_status",
    "start_payment",
    "poll_payment_status",
}


def _race(count, request):
    start = threading.Barrier(count)
    responses = []

    def worker():
        with ordering.domain_context():
            start.wait()
            responses.append(request())

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return responses


class TestRouteDeclarations:
    def test_blocking_routes_run_in_threadpool(self):
        routes = [*order_router.routes, *payment_router.routes, *coupon_router.routes]
        endpoints = {route.endpoint.__name__: route.endpoint for route in routes}

        assert BLOCKING_ENDPOINTS <= set(endpoints)
        for name in BLOCKING_ENDPOINTS:
            assert not inspect.iscoroutinefunction(endpoints[name]), name


@pytest.mark.usefixtures("dodo_gateway")
class TestConcurrentPaymentStart:
    def test_only_one_session_opens(self, client, auth_headers, order_body, dodo_gateway):
        placed = client.post("/orders", json=order_body(), headers=auth_headers())
        assert placed.status_code == 201
        order_id = placed.json()["order_id"]

        responses = _race(3, lambda: client.post(f"/payments/{order_id}", headers=auth_headers()))

        assert sorted(response.status_code for response in responses) == [201, 409, 409]
        assert [call["method"] for call in dodo_gateway.calls] == ["create_payment"]
        assert current_domain.repository_for(Order).get(order_id).payment.status == "processing"


class TestConcurrentOrderPlacement:
    def test_single_use_coupon_redeemed_once(self, client, auth_headers, order_body, add_coupon):
        add_coupon(code="ONCE", total_limit=1)
        users = iter(["user-1", "user-2", "user-3"])
        lock = threading.Lock()

        def place():
            with lock:
                user_id = next(users)
            return client.post("/orders", json=order_body(couponCode="ONCE"), headers=auth_headers(user_id))

        responses = _race(3, place)

        assert sorted(response.status_code for response in responses) == [201, 400, 400]
        rejected = [response.json() for response in responses if response.status_code == 400]
        assert {body["reason"] for body in rejected} == {"limit_exceeded"}
