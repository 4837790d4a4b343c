"""Pricing engine — turns a list price and an optional coupon into a quote.

Pure functions only: the same quote is used to price a new order and to
answer the coupon preview, so both always agree.
"""

from dataclasses import dataclass
from decimal import Decimal

from ordering.shared.money import as_float, round_money, to_decimal


@dataclass(frozen=True)
class PriceQuote:
    original_price: float
    discount_amount: float
    final_price: float
    currency: str

    def to_dict(self) -> dict:
        return {
            "original_price": self.original_price,
            "discount_amount": self.discount_amount,
            "final_price": self.final_price,
            "currency": self.currency,
        }


def quote_price(list_price, currency: str = "TRY", coupon=None) -> PriceQuote:
    """Price `list_price`, applying `coupon.calculate_discount` when given.

    The discount is clamped to [0, list_price] so the final price never goes
    negative.
    """
    original = round_money(list_price)
    discount = Decimal(0)
    if coupon is not None:
        discount = to_decimal(coupon.calculate_discount(original))
    discount = round_money(min(max(discount, Decimal(0)), original))
    final = round_money(max(original - discount, Decimal(0)))

    return PriceQuote(
        original_price=as_float(original),
        discount_amount=as_float(discount),
        final_price=as_float(final),
        currency=currency,
    )
