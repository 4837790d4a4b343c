"""Ordering load test scenarios.

Three stateful SequentialTaskSet journeys: the full order lifecycle from
placement through payment and fulfillment, checkout with a freshly published
coupon, and anonymous order tracking.
"""

from locust import SequentialTaskSet, task

from loadtests.data_generators import (
    bearer_headers,
    coupon_data,
    operator_headers,
    order_data,
    status_update_data,
    unique_user_id,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CouponState, OrderState


def _place_order(taskset, state: OrderState, payload: dict) -> bool:
    with taskset.client.post(
        "/orders",
        json=payload,
        headers=bearer_headers(state.user_id),
        catch_response=True,
        name="POST /orders",
    ) as resp:
        if resp.status_code == 201:
            body = resp.json()
            state.order_id = body["order_id"]
            state.order_number = body["order_number"]
            return True
        resp.failure(f"Place order failed: {resp.status_code} — {extract_error_detail(resp)}")
        return False


class OrderLifecycleJourney(SequentialTaskSet):
    """Place Order -> Start Payment -> Poll -> Processing -> In Progress -> Complete -> Activity.

    The happy path across both axes of an order: the customer pays while an
    operator moves the order through fulfillment.
    Generates events: OrderPlaced, PaymentInitiated, PaymentStatusChanged (when
    the provider reports a change), OrderStatusChanged (x3).
    """

    def on_start(self):
        self.state = OrderState(user_id=unique_user_id())
        self.operator = operator_headers()

    @task
    def place_order(self):
        if not _place_order(self, self.state, order_data()):
            self.interrupt()

    @task
    def start_payment(self):
        with self.client.post(
            f"/payments/{self.state.order_id}",
            headers=bearer_headers(self.state.user_id),
            catch_response=True,
            name="POST /payments/{order_id}",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.payment_id = body["payment_id"]
                self.state.payment_status = body["status"]
            elif resp.status_code == 502:
                # Provider sandbox unavailable; keep exercising fulfillment
                resp.success()
            else:
                resp.failure(f"Start payment failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def poll_payment(self):
        with self.client.get(
            f"/payments/{self.state.order_id}/status",
            headers=bearer_headers(self.state.user_id),
            catch_response=True,
            name="GET /payments/{order_id}/status",
        ) as resp:
            if resp.status_code == 200:
                self.state.payment_status = resp.json()["payment_status"]
            elif resp.status_code == 502:
                resp.success()
            else:
                resp.failure(f"Poll payment failed: {resp.status_code} — {extract_error_detail(resp)}")

    def _update_status(self, status, progress=None):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json=status_update_data(status, progress),
            headers=self.operator,
            catch_response=True,
            name="PUT /orders/{id}/status",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = resp.json()["status"]
            else:
                resp.failure(f"Update to {status} failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def mark_processing(self):
        self._update_status("processing")

    @task
    def mark_in_progress(self):
        self._update_status("in_progress", progress=50)

    @task
    def mark_completed(self):
        self._update_status("completed")

    @task
    def read_activity(self):
        with self.client.get(
            f"/orders/{self.state.order_id}/activity",
            headers=bearer_headers(self.state.user_id),
            catch_response=True,
            name="GET /orders/{id}/activity",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Read activity failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CouponCheckoutJourney(SequentialTaskSet):
    """Publish Coupon -> Preview -> Place Order With Coupon -> Reuse (rejected).

    An operator publishes a single-use-per-customer coupon; the customer
    previews it, redeems it, then tries to use it a second time.
    Generates events: CouponCreated, OrderPlaced, CouponRedeemed.
    """

    def on_start(self):
        self.order = OrderState(user_id=unique_user_id())
        self.coupon = CouponState()

    @task
    def publish_coupon(self):
        payload = coupon_data()
        with self.client.post(
            "/coupons",
            json=payload,
            headers=operator_headers(),
            catch_response=True,
            name="POST /coupons",
        ) as resp:
            if resp.status_code == 201:
                self.coupon.code = payload["code"]
                self.coupon.coupon_id = resp.json()["coupon_id"]
            else:
                resp.failure(f"Publish coupon failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def preview_coupon(self):
        with self.client.post(
            "/orders/validate-coupon",
            json={"couponCode": self.coupon.code, "productId": order_data()["productId"]},
            headers=bearer_headers(self.order.user_id),
            catch_response=True,
            name="POST /orders/validate-coupon",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Preview coupon failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def redeem_coupon(self):
        if _place_order(self, self.order, order_data(coupon_code=self.coupon.code)):
            self.coupon.redemptions += 1

    @task
    def reuse_coupon(self):
        with self.client.post(
            "/orders",
            json=order_data(coupon_code=self.coupon.code),
            headers=bearer_headers(self.order.user_id),
            catch_response=True,
            name="POST /orders (coupon reuse)",
        ) as resp:
            if resp.status_code == 400 and resp.json().get("reason") == "limit_exceeded":
                resp.success()
            else:
                resp.failure(f"Coupon reuse not rejected: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class PublicTrackingJourney(SequentialTaskSet):
    """Place Order -> Query By Number -> Track -> Query Unknown Number.

    Anonymous lookups are the most frequent read in production: customers
    share order numbers and refresh the tracking page.
    """

    def on_start(self):
        self.state = OrderState(user_id=unique_user_id())

    @task
    def place_order(self):
        if not _place_order(self, self.state, order_data()):
            self.interrupt()

    @task
    def query_order(self):
        with self.client.post(
            "/orders/query",
            json={"orderNumber": self.state.order_number},
            catch_response=True,
            name="POST /orders/query",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Query order failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def track_order(self):
        with self.client.get(
            f"/orders/track/{self.state.order_number}",
            catch_response=True,
            name="GET /orders/track/{order_number}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Track order failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def query_unknown(self):
        with self.client.post(
            "/orders/query",
            json={"orderNumber": "ORD-0000000000000-0000"},
            catch_response=True,
            name="POST /orders/query (unknown)",
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Unknown order not reported: {resp.status_code}")

    @task
    def done(self):
        self.interrupt()
