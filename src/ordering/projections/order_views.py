"""Order read views — redacted public snapshot, tracking timeline and owner detail.

Pure transforms over a persisted Order: nothing here reads the catalog or
the provider, and nothing is stored. Anyone who knows an order number sees
the public and tracking views, so customer id, email, phone, provider
payloads and operator notes only appear in the owner detail view.

Timeline entries carry Turkish and English text side by side.
"""

from ordering.order.order import Order, OrderStatus, PaymentStatus


def _iso(value):
    return value.isoformat() if value is not None else None


def public_order_view(order: Order) -> dict:
    """Order snapshot safe to show to anyone holding the order number."""
    processing = order.processing
    return {
        "order_number": order.order_number,
        "status": order.status,
        "customer_name": order.customer.full_name,
        "service": {
            "id": str(order.catalog.service_id),
            "name": order.catalog.service_name,
            "description": order.catalog.service_description,
        },
        "product": {
            "id": str(order.catalog.product_id),
            "name": order.catalog.product_name,
            "quantity": order.catalog.product_quantity,
        },
        "process_link": order.process_link,
        "pricing": {
            "original_price": order.pricing.original_price,
            "discount_amount": order.pricing.discount_amount,
            "final_price": order.pricing.final_price,
            "currency": order.pricing.currency,
        },
        "coupon_code": order.coupon.code if order.coupon else None,
        "payment": {
            "method": order.payment.method,
            "status": order.payment.status,
            "paid_at": _iso(order.payment.paid_at),
        },
        "processing": {
            "progress": processing.progress if processing else 0,
            "started_at": _iso(processing.started_at) if processing else None,
            "completed_at": _iso(processing.completed_at) if processing else None,
        },
        "timestamps": {
            "ordered": _iso(order.timestamps.ordered),
            "paid": _iso(order.timestamps.paid),
            "started": _iso(order.timestamps.started),
            "completed": _iso(order.timestamps.completed),
        },
        "order_duration_hours": order.order_duration_hours,
        "processing_duration_hours": order.processing_duration_hours,
    }


def _step(step, title, title_en, description, description_en, timestamp, completed):
    return {
        "step": step,
        "title": title,
        "title_en": title_en,
        "description": description,
        "description_en": description_en,
        "timestamp": _iso(timestamp),
        "completed": completed,
    }


def tracking_timeline(order: Order) -> list[dict]:
    """Milestones of the order, in the order a customer lives through them."""
    timestamps = order.timestamps
    progress = order.processing.progress if order.processing else 0
    paid = order.payment.status == PaymentStatus.COMPLETED.value

    timeline = [
        _step(
            "ordered",
            "Sipariş Alındı",
            "Order Placed",
            "Siparişiniz başarıyla alındı",
            "Your order has been successfully placed",
            timestamps.ordered,
            True,
        )
    ]

    if paid:
        timeline.append(
            _step(
                "paid",
                "Ödeme Alındı",
                "Payment Received",
                "Ödemeniz başarıyla alındı",
                "Your payment has been successfully received",
                timestamps.paid,
                True,
            )
        )
    else:
        timeline.append(
            _step(
                "payment_pending",
                "Ödeme Bekleniyor",
                "Payment Pending",
                "Ödemeniz bekleniyor",
                "Waiting for your payment",
                None,
                False,
            )
        )

    if timestamps.started is not None:
        timeline.append(
            _step(
                "processing",
                "İşleme Alındı",
                "Processing Started",
                f"İşlem başladı ({progress}% tamamlandı)",
                f"Processing started ({progress}% completed)",
                timestamps.started,
                progress == 100,
            )
        )
    elif paid:
        timeline.append(
            _step(
                "processing_pending",
                "İşleme Alınacak",
                "Will Be Processed",
                "Siparişiniz yakında işleme alınacak",
                "Your order will be processed soon",
                None,
                False,
            )
        )

    if order.status == OrderStatus.COMPLETED.value:
        timeline.append(
            _step(
                "completed",
                "Tamamlandı",
                "Completed",
                "Siparişiniz başarıyla tamamlandı",
                "Your order has been successfully completed",
                timestamps.completed,
                True,
            )
        )

    return timeline


def tracking_view(order: Order) -> dict:
    """Order summary plus timeline for the public tracking page."""
    return {
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment.status,
        "progress": order.processing.progress if order.processing else 0,
        "service_name": order.catalog.service_name,
        "product_name": order.catalog.product_name,
        "product_quantity": order.catalog.product_quantity,
        "final_price": order.pricing.final_price,
        "currency": order.pricing.currency,
        "ordered_at": _iso(order.timestamps.ordered),
        "completed_at": _iso(order.timestamps.completed),
        "timeline": tracking_timeline(order),
    }


def order_detail_view(order: Order) -> dict:
    """Full order for its owner or an operator: the public view plus private fields."""
    view = public_order_view(order)
    view.update(
        {
            "id": str(order.id),
            "customer_id": str(order.customer_id),
            "customer": {
                "full_name": order.customer.full_name,
                "email": order.customer.email,
                "phone": order.customer.phone,
            },
            "admin_notes": order.admin_notes,
            "processing_notes": order.processing.notes if order.processing else None,
        }
    )
    view["payment"].update(
        {
            "transaction_id": order.payment.transaction_id,
            "payment_url": order.payment.payment_url,
            "payment_data": order.payment_payload,
        }
    )
    return view
