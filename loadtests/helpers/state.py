"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks ids returned by creation endpoints so follow-up operations can
reference them.
"""

from dataclasses import dataclass


@dataclass
class OrderState:
    """Tracks state for a single simulated order lifecycle."""

    user_id: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    payment_id: str | None = None
    current_status: str = "pending"
    payment_status: str = "pending"


@dataclass
class CouponState:
    """Tracks a coupon published during a journey."""

    code: str | None = None
    coupon_id: str | None = None
    redemptions: int = 0
