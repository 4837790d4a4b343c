"""Ordering bounded context — engagement-package orders, coupons and payments.

Handles the order lifecycle, the coupon redemption ledger, and reconciliation
of payment state with the external crypto payment providers.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
