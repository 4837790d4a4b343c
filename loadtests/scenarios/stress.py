"""Stress test scenarios for write contention.

OrderFloodUser places orders as fast as possible, contending on order
numbering. CouponContentionUser has many customers race for a coupon with
a small global cap. WebhookReplayUser replays the same signed provider
webhook to check that duplicates are acknowledged and applied once.
"""

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import (
    bearer_headers,
    coupon_data,
    dodo_webhook,
    operator_headers,
    order_data,
    unique_user_id,
)
from loadtests.helpers.response import extract_error_detail


class OrderFloodUser(HttpUser):
    """Stress test: maximum order placement throughput.

    Every order takes the numbering lock, so throughput here bounds the
    whole write path. Watch for duplicate order numbers in the logs.
    """

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    @task
    def place_order(self):
        with self.client.post(
            "/orders",
            json=order_data(),
            headers=bearer_headers(unique_user_id()),
            catch_response=True,
            name="POST /orders (flood)",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Place order failed: {resp.status_code} — {extract_error_detail(resp)}")


class CouponContentionUser(HttpUser):
    """Stress test: many customers racing for a capped coupon.

    The first user to start publishes a coupon capped at 10 uses; everyone
    then tries to redeem it. Exactly 10 orders should succeed; the rest must
    be rejected with `limit_exceeded`.
    """

    wait_time = constant_pacing(0.2)
    shared_code: str | None = None

    def on_start(self):
        if CouponContentionUser.shared_code is None:
            payload = coupon_data(total_limit=10)
            resp = self.client.post("/coupons", json=payload, headers=operator_headers(), name="POST /coupons")
            if resp.status_code == 201:
                CouponContentionUser.shared_code = payload["code"]

    @task
    def redeem(self):
        if CouponContentionUser.shared_code is None:
            return
        with self.client.post(
            "/orders",
            json=order_data(coupon_code=CouponContentionUser.shared_code),
            headers=bearer_headers(unique_user_id()),
            catch_response=True,
            name="POST /orders (capped coupon)",
        ) as resp:
            if resp.status_code == 201:
                return
            if resp.status_code == 400 and resp.json().get("reason") == "limit_exceeded":
                resp.success()
            else:
                resp.failure(f"Unexpected answer: {resp.status_code} — {extract_error_detail(resp)}")


class WebhookReplayUser(HttpUser):
    """Stress test: the same signed webhook delivered over and over.

    Requires DODO_PAYMENTS_WEBHOOK_SECRET to match the server's.
    """

    wait_time = constant_pacing(0.1)

    def on_start(self):
        self.order_number = None
        resp = self.client.post(
            "/orders",
            json=order_data(),
            headers=bearer_headers(unique_user_id()),
            name="POST /orders",
        )
        if resp.status_code == 201:
            self.order_number = resp.json()["order_number"]

    @task
    def replay(self):
        if self.order_number is None:
            return
        raw, headers = dodo_webhook(self.order_number)
        with self.client.post(
            "/payments/webhooks/dodo",
            data=raw,
            headers=headers,
            catch_response=True,
            name="POST /payments/webhooks/dodo",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Webhook rejected: {resp.status_code} — {extract_error_detail(resp)}")
