"""Order API endpoints"""

from fastapi import APIRouter, Depends

from canteen_api.api.deps import get_lifecycle
from canteen_api.models.order import Order
from canteen_api.schemas.order import (
    LineItem,
    OrderCreate,
    OrderCreatedResponse,
    OrderResponse,
    OrderStatusResponse,
    PaymentInfo,
    PaymentIntentResponse,
)
from canteen_api.services.lifecycle import OrderLifecycleManager

router = APIRouter()


def status_response(order: Order) -> OrderStatusResponse:
    return OrderStatusResponse(
        order_id=order.order_id,
        code=order.short_code,
        canteen=order.canteen,
        total_amount=order.total_amount,
        status=order.status,
        expires_at=order.expires_at,
        paid_at=order.paid_at,
    )


def full_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.order_id,
        code=order.short_code,
        canteen=order.canteen,
        total_amount=order.total_amount,
        status=order.status,
        expires_at=order.expires_at,
        paid_at=order.paid_at,
        items=[LineItem(**item) for item in order.items_json or []],
        currency=order.currency,
        created_at=order.created_at,
        payment_info=PaymentInfo(**order.payment_info),
    )


@router.post("/order", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
):
    """Create a new order awaiting payment"""
    order = await lifecycle.create(
        order_data.canteen,
        order_data.items,
        order_data.total_amount,
    )

    return OrderCreatedResponse(
        order_id=order.order_id,
        code=order.short_code,
        canteen=order.canteen,
        total_amount=order.total_amount,
        status=order.status,
        expires_at=order.expires_at,
    )


@router.get("/order/{order_id}/status", response_model=OrderStatusResponse)
async def get_order_status(
    order_id: str,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
):
    """Get order status, expiring it if the payment window has passed"""
    order = await lifecycle.get_order(order_id)
    return status_response(order)


@router.post("/order/{order_id}/payment", response_model=PaymentIntentResponse)
async def create_payment(
    order_id: str,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
):
    """Create the provider payment intent for an order"""
    intent = await lifecycle.create_payment_intent(order_id)

    return PaymentIntentResponse(
        order_id=order_id,
        provider=intent.provider,
        intent_id=intent.intent_id,
        amount=intent.amount_minor,
        currency=intent.currency,
        key_id=intent.key_id,
    )
