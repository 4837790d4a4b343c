"""Application tests for the coupon preview, which never redeems."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.coupon.coupon import Coupon
from ordering.coupon.validation import quote_coupon, validate_coupon
from ordering.shared.errors import CouponRejectedError, CouponRejection, ProductUnavailableError
from protean import current_domain


@pytest.mark.usefixtures("catalog")
class TestQuoteCoupon:
    def test_quote_for_product(self, add_coupon):
        add_coupon(code="SAVE150")
        result = quote_coupon("save150", "user-1", product_id="prod-1000")

        assert result["coupon"]["code"] == "SAVE150"
        assert result["quote"]["original_price"] == 1000.0
        assert result["quote"]["discount_amount"] == 150.0
        assert result["quote"]["final_price"] == 850.0

    def test_without_product_returns_no_quote(self, add_coupon):
        add_coupon(code="SAVE150", total_limit=5)
        result = quote_coupon("SAVE150", "user-1")
        assert result["quote"] is None
        assert result["coupon"]["remaining_uses"] == 5

    def test_preview_does_not_redeem(self, add_coupon):
        coupon = add_coupon(code="SAVE150")
        quote_coupon("SAVE150", "user-1", product_id="prod-1000")
        quote_coupon("SAVE150", "user-1", product_id="prod-1000")
        assert current_domain.repository_for(Coupon).get(coupon.id).usage_count == 0

    def test_unavailable_product(self, add_coupon):
        add_coupon(code="SAVE150")
        with pytest.raises(ProductUnavailableError):
            quote_coupon("SAVE150", "user-1", product_id="prod-off")


class TestValidateCoupon:
    def test_unknown_code(self):
        with pytest.raises(CouponRejectedError) as exc:
            validate_coupon("NOPE123", "user-1")
        assert exc.value.reason == CouponRejection.NOT_FOUND

    def test_expired(self, add_coupon):
        now = datetime.now(UTC)
        add_coupon(code="OLD", valid_from=now - timedelta(days=30), valid_until=now - timedelta(days=1))
        with pytest.raises(CouponRejectedError) as exc:
            validate_coupon("OLD", "user-1")
        assert exc.value.reason == CouponRejection.EXPIRED

    def test_not_yet_valid(self, add_coupon):
        now = datetime.now(UTC)
        add_coupon(code="SOON", valid_from=now + timedelta(days=1), valid_until=now + timedelta(days=5))
        with pytest.raises(CouponRejectedError) as exc:
            validate_coupon("SOON", "user-1")
        assert exc.value.reason == CouponRejection.EXPIRED
