"""Engagement Orders load testing — Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection or use --tags.

The target server must be able to resolve the products listed in
LOADTEST_PRODUCT_IDS (point CATALOG_BASE_URL at a catalog service), and
share AUTH_SECRET_KEY / DODO_PAYMENTS_WEBHOOK_SECRET with the load test.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Mixed workload only:
    locust -f loadtests/locustfile.py MixedWorkloadUser

    # Stress test:
    locust -f loadtests/locustfile.py OrderFloodUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py MixedWorkloadUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.mixed import MixedWorkloadUser  # noqa: F401
from loadtests.scenarios.stress import CouponContentionUser, OrderFloodUser, WebhookReplayUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Extracts the API error body so you see "Coupon usage limit reached"
    instead of just "400".
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Log a marker when load test begins."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(**_kwargs):
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}\n")
