"""Order aggregate (CQRS) — the core of the ordering domain.

An order is a single engagement package bought by one customer. Identity,
customer details, catalog snapshot and pricing are fixed at creation; the
rest of the aggregate tracks two independent axes:

    status          pending → processing | in_progress → completed
                    cancelled / refunded from any non-terminal state
    payment.status  pending → processing → completed | failed | cancelled | refunded

Operators drive `status`; payment reconciliation drives `payment.status`.
Neither axis writes to the other. Terminal orders (completed, cancelled,
refunded) accept no further status changes. Every timestamp is write-once.
"""

import json
import math
import re
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject
from protean.utils.reflection import declared_fields

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged, PaymentInitiated, PaymentStatusChanged
from ordering.shared.errors import InvalidTransitionError
from ordering.shared.money import round_money, to_decimal

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]{7,20}$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CRYPTO_DODO = "crypto_dodo"
    CRYPTO_COINBASE = "crypto_coinbase"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})
_WORK_STATUSES = frozenset({OrderStatus.PROCESSING, OrderStatus.IN_PROGRESS})


def _replace(vo, **changes):
    """Value objects are immutable: build a copy with `changes` applied."""
    values = {name: getattr(vo, name) for name in declared_fields(type(vo))}
    values.update(changes)
    return type(vo)(**values)


def generate_order_number(existing_count: int, now: datetime | None = None) -> str:
    """`ORD-<unix millis>-<4-digit sequence>`; the sequence wraps at 10000."""
    now = now or datetime.now(UTC)
    millis = int(now.timestamp() * 1000)
    sequence = (existing_count + 1) % 10000
    return f"ORD-{millis}-{sequence:04d}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class CatalogSnapshot:
    """The product and service as they were when the order was placed."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    product_quantity = Integer(default=1, min_value=0)
    service_id = Identifier(required=True)
    service_name = String(required=True, max_length=200)
    service_description = String(max_length=1000)


@ordering.value_object(part_of="Order")
class CustomerDetails:
    """Contact details the customer entered at checkout."""

    full_name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=20)

    @invariant.post
    def email_must_be_valid(self):
        if self.email and not _EMAIL_PATTERN.match(self.email):
            raise ValidationError({"email": ["Invalid email address"]})

    @invariant.post
    def phone_must_be_valid(self):
        if self.phone and not _PHONE_PATTERN.match(self.phone):
            raise ValidationError({"phone": ["Invalid phone number"]})


@ordering.value_object(part_of="Order")
class Pricing:
    """Price locked at checkout: list price, coupon discount and what is charged."""

    original_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    final_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="TRY")

    @invariant.post
    def final_price_must_match_discount(self):
        expected = round_money(max(to_decimal(self.original_price) - to_decimal(self.discount_amount), Decimal(0)))
        if round_money(self.final_price) != expected:
            raise ValidationError({"final_price": ["Final price must equal original price minus discount"]})


@ordering.value_object(part_of="Order")
class CouponSnapshot:
    code = String(required=True, max_length=20)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True, min_value=0.0)


@ordering.value_object(part_of="Order")
class PaymentDetails:
    """Payment state as last reconciled with the provider."""

    method = String(required=True, choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=255)
    payment_url = String(max_length=1000)
    payment_data = Text()  # JSON: last provider payload
    paid_at = DateTime()


@ordering.value_object(part_of="Order")
class ProcessingDetails:
    started_at = DateTime()
    completed_at = DateTime()
    progress = Integer(default=0, min_value=0, max_value=100)
    notes = String(max_length=1000)


@ordering.value_object(part_of="Order")
class OrderTimestamps:
    """Audit trail of lifecycle milestones. Each is set at most once."""

    ordered = DateTime(required=True)
    paid = DateTime()
    started = DateTime()
    completed = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    customer_id = Identifier(required=True)
    catalog = ValueObject(CatalogSnapshot, required=True)
    process_link = String(required=True, max_length=500)
    customer = ValueObject(CustomerDetails, required=True)
    pricing = ValueObject(Pricing, required=True)
    coupon = ValueObject(CouponSnapshot)
    payment = ValueObject(PaymentDetails, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    processing = ValueObject(ProcessingDetails)
    admin_notes = String(max_length=1000)
    timestamps = ValueObject(OrderTimestamps, required=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def timestamps_cannot_precede_order(self):
        if self.timestamps is None:
            return
        ordered = self.timestamps.ordered
        for milestone in ("paid", "started", "completed"):
            value = getattr(self.timestamps, milestone)
            if value is not None and value < ordered:
                raise ValidationError({"timestamps": [f"'{milestone}' cannot precede the order time"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        customer_id,
        product,
        service,
        customer_details,
        process_link,
        payment_method,
        quote,
        coupon=None,
        now=None,
    ):
        """Place a new order.

        Args:
            product: ProductSnapshot from the catalog.
            service: ServiceSnapshot the product belongs to.
            customer_details: Dict with full_name, email, phone.
            quote: PriceQuote from the pricing engine.
            coupon: The redeemed Coupon, if any.
        """
        now = now or datetime.now(UTC)

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            catalog=CatalogSnapshot(
                product_id=str(product.id),
                product_name=product.name,
                product_quantity=product.quantity,
                service_id=str(service.id),
                service_name=service.name,
                service_description=service.description,
            ),
            process_link=process_link,
            customer=CustomerDetails(
                full_name=customer_details["full_name"].strip(),
                email=customer_details["email"].strip().lower(),
                phone=customer_details["phone"].strip(),
            ),
            pricing=Pricing(
                original_price=quote.original_price,
                discount_amount=quote.discount_amount,
                final_price=quote.final_price,
                currency=quote.currency,
            ),
            coupon=(
                CouponSnapshot(
                    code=coupon.code,
                    discount_type=coupon.discount.discount_type,
                    discount_value=coupon.discount.value,
                )
                if coupon is not None
                else None
            ),
            payment=PaymentDetails(method=payment_method, status=PaymentStatus.PENDING.value),
            status=OrderStatus.PENDING.value,
            processing=ProcessingDetails(progress=0),
            timestamps=OrderTimestamps(ordered=now),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                product_id=str(product.id),
                service_id=str(service.id),
                payment_method=payment_method,
                original_price=quote.original_price,
                discount_amount=quote.discount_amount,
                final_price=quote.final_price,
                currency=quote.currency,
                coupon_code=coupon.code if coupon is not None else None,
                ordered_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment.status == PaymentStatus.COMPLETED.value

    @property
    def order_duration_hours(self) -> int | None:
        """Whole hours (rounded up) from ordering to completion."""
        return _hours_between(self.timestamps.ordered, self.timestamps.completed)

    @property
    def processing_duration_hours(self) -> int | None:
        """Whole hours (rounded up) from processing start to completion."""
        return _hours_between(self.timestamps.started, self.timestamps.completed)

    @property
    def payment_payload(self) -> dict | None:
        return json.loads(self.payment.payment_data) if self.payment.payment_data else None

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def transition_status(self, new_status, admin_notes=None, progress=None, now=None):
        """Move the order to `new_status` on an operator's request."""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {new_status}"]}) from None

        current = OrderStatus(self.status)
        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Cannot change status of a {current.value} order")

        now = now or datetime.now(UTC)
        processing = self.processing or ProcessingDetails(progress=0)
        timestamps = self.timestamps

        if progress is not None:
            processing = _replace(processing, progress=progress)

        if target in _WORK_STATUSES and processing.started_at is None:
            processing = _replace(processing, started_at=now)
        if target in _WORK_STATUSES and timestamps.started is None:
            timestamps = _replace(timestamps, started=now)

        if target == OrderStatus.COMPLETED:
            processing = _replace(processing, progress=100, completed_at=processing.completed_at or now)
            if timestamps.completed is None:
                timestamps = _replace(timestamps, completed=now)

        self.status = target.value
        self.processing = processing
        self.timestamps = timestamps
        if admin_notes is not None:
            self.admin_notes = admin_notes
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                progress=processing.progress,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_initiated(self, transaction_id, payment_url, provider_payload=None, now=None):
        """Record the provider session opened for this order."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransitionError(f"Cannot start payment for a {self.status} order")
        if self.payment.status != PaymentStatus.PENDING.value:
            raise InvalidTransitionError(f"Payment is already {self.payment.status}")

        now = now or datetime.now(UTC)
        self.payment = _replace(
            self.payment,
            status=PaymentStatus.PROCESSING.value,
            transaction_id=transaction_id,
            payment_url=payment_url,
            payment_data=json.dumps(provider_payload) if provider_payload is not None else None,
        )
        self.updated_at = now

        self.raise_(
            PaymentInitiated(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_method=self.payment.method,
                transaction_id=transaction_id,
                payment_url=payment_url,
                initiated_at=now,
            )
        )

    def apply_payment_result(self, normalized_status, provider_payload=None, now=None) -> bool:
        """Apply a normalized payment status reported by the provider.

        Returns False, with no mutation and no event, when the status is
        unchanged; this is what makes replayed webhooks and repeated polls
        idempotent. The order's fulfillment `status` is never touched.
        """
        try:
            target = PaymentStatus(normalized_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {normalized_status}"]}) from None

        previous = self.payment.status
        if previous == target.value:
            return False

        now = now or datetime.now(UTC)
        changes = {"status": target.value}
        if provider_payload is not None:
            changes["payment_data"] = json.dumps(provider_payload)
        if target == PaymentStatus.COMPLETED and self.payment.paid_at is None:
            changes["paid_at"] = now
        self.payment = _replace(self.payment, **changes)

        if target == PaymentStatus.COMPLETED and self.timestamps.paid is None:
            self.timestamps = _replace(self.timestamps, paid=now)
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                transaction_id=self.payment.transaction_id,
                changed_at=now,
            )
        )
        return True


def _hours_between(start, end) -> int | None:
    if start is None or end is None:
        return None
    return math.ceil((end - start).total_seconds() / 3600)
