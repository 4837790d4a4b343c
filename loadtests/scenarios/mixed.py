"""Mixed ordering workload scenario.

Combines the ordering journeys with weights that model realistic traffic.
This is the recommended scenario for load baseline testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.ordering import CouponCheckoutJourney, OrderLifecycleJourney, PublicTrackingJourney


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload.

    - Public tracking: customers refreshing order status (most common)
    - Order lifecycle: placement, payment and fulfillment
    - Coupon checkout: campaign traffic
    """

    wait_time = between(0.5, 3.0)
    tasks = {
        PublicTrackingJourney: 6,
        OrderLifecycleJourney: 4,
        CouponCheckoutJourney: 2,
    }
