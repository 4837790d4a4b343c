"""FastAPI routes for the Ordering domain: orders, payments and coupons.

Routes that call the catalog or a payment provider, or that wait on the
per-entity locks, are plain `def` so FastAPI runs them in its threadpool.
"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from ordering.api.deps import Principal, ensure_can_access, get_current_principal, require_operator
from ordering.api.schemas import (
    CouponIdResponse,
    CreateCouponRequest,
    OrderIdResponse,
    OrderQueryRequest,
    PaymentSessionResponse,
    PaymentStatusResponse,
    PlaceOrderRequest,
    StatusResponse,
    UpdateOrderStatusRequest,
    ValidateCouponRequest,
    WebhookAck,
)
from ordering.coupon.management import CreateCoupon, DeactivateCoupon
from ordering.coupon.validation import quote_coupon
from ordering.gateway import get_provider_gateway
from ordering.order.creation import PlaceOrder, place_order
from ordering.order.payment import initiate_payment, sync_payment_status
from ordering.order.queries import find_by_order_number, get_order, orders_for_customer
from ordering.order.status import UpdateOrderStatus
from ordering.order.webhook import handle_webhook
from ordering.projections.order_activity import activity_for
from ordering.projections.order_views import order_detail_view, public_order_view, tracking_view
from ordering.utils.locks import order_key, process_serialized

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
def create_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(get_current_principal),
) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=principal.id,
        product_id=body.product_id,
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        process_link=body.process_link,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
    )
    order_id = place_order(command)
    order = get_order(order_id)
    return OrderIdResponse(order_id=order_id, order_number=order.order_number)


@order_router.get("")
async def list_my_orders(principal: Principal = Depends(get_current_principal)) -> dict:
    orders = orders_for_customer(principal.id)
    return {"success": True, "data": [order_detail_view(order) for order in orders]}


@order_router.post("/validate-coupon")
def validate_coupon(body: ValidateCouponRequest, principal: Principal = Depends(get_current_principal)) -> dict:
    """Preview a coupon, with a price quote when a product is given. Nothing is redeemed."""
    result = quote_coupon(body.coupon_code, principal.id, product_id=body.product_id)
    return {"success": True, "message": "Coupon is valid", "data": result}


@order_router.post("/query")
async def query_order(body: OrderQueryRequest):
    """Public lookup by order number. Responses carry Turkish and English messages."""
    if not body.order_number:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Sipariş numarası gereklidir",
                "message_en": "Order number is required",
            },
        )

    order = find_by_order_number(body.order_number)
    if order is None:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "message": "Sipariş numarası bulunamadı. Lütfen tekrar deneyin.",
                "message_en": "Order number not found. Please try again.",
            },
        )

    return {
        "success": True,
        "message": "Sipariş bulundu",
        "message_en": "Order found",
        "data": public_order_view(order),
    }


@order_router.get("/track/{order_number}")
async def track_order(order_number: str):
    order = find_by_order_number(order_number)
    if order is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Sipariş bulunamadı", "message_en": "Order not found"},
        )
    return {"success": True, "data": tracking_view(order)}


@order_router.get("/{order_id}")
async def get_order_detail(order_id: str, principal: Principal = Depends(get_current_principal)) -> dict:
    order = get_order(order_id)
    ensure_can_access(principal, order.customer_id)
    return {"success": True, "data": order_detail_view(order)}


@order_router.get("/{order_id}/activity")
async def get_order_activity(order_id: str, principal: Principal = Depends(get_current_principal)) -> dict:
    order = get_order(order_id)
    ensure_can_access(principal, order.customer_id)
    entries = activity_for(order_id)
    return {
        "success": True,
        "data": [
            {
                "event_type": entry.event_type,
                "description": entry.description,
                "occurred_at": entry.occurred_at.isoformat(),
                "metadata": json.loads(entry.event_metadata) if entry.event_metadata else None,
            }
            for entry in entries
        ],
    }


@order_router.put("/{order_id}/status", response_model=StatusResponse)
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(require_operator),
) -> StatusResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        admin_notes=body.admin_notes,
        progress=body.progress,
    )
    new_status = process_serialized(command, order_key(order_id))
    return StatusResponse(status=new_status)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhooks/{provider}", response_model=WebhookAck)
async def provider_webhook(provider: str, request: Request) -> WebhookAck:
    """Provider callback. Acknowledged whenever the signature verifies."""
    gateway = get_provider_gateway(provider)
    raw_payload = await request.body()
    signature = request.headers.get(gateway.signature_header, "")
    await run_in_threadpool(handle_webhook, provider, raw_payload, signature)
    return WebhookAck()


@payment_router.post("/{order_id}", status_code=201, response_model=PaymentSessionResponse)
def start_payment(order_id: str, principal: Principal = Depends(get_current_principal)) -> PaymentSessionResponse:
    order = get_order(order_id)
    ensure_can_access(principal, order.customer_id, allow_operator=False)
    result = initiate_payment(order_id)
    return PaymentSessionResponse(**result)


@payment_router.get("/{order_id}/status", response_model=PaymentStatusResponse)
def poll_payment_status(
    order_id: str,
    principal: Principal = Depends(get_current_principal),
) -> PaymentStatusResponse:
    order = get_order(order_id)
    ensure_can_access(principal, order.customer_id)
    payment_status = sync_payment_status(order_id)
    return PaymentStatusResponse(order_id=order_id, payment_status=payment_status)


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(
    body: CreateCouponRequest,
    principal: Principal = Depends(require_operator),
) -> CouponIdResponse:
    command = CreateCoupon(
        code=body.code,
        name=body.name,
        description=body.description,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        minimum_amount=body.minimum_amount,
        maximum_discount=body.maximum_discount,
        total_limit=body.total_limit,
        per_user_limit=body.per_user_limit,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        applicable_services=json.dumps(body.applicable_services),
        applicable_products=json.dumps(body.applicable_products),
        created_by=principal.id,
    )
    coupon_id = current_domain.process(command, asynchronous=False)
    return CouponIdResponse(coupon_id=coupon_id)


@coupon_router.put("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(code: str, principal: Principal = Depends(require_operator)) -> StatusResponse:
    current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    return StatusResponse(status="deactivated")
