"""Admin endpoints for canteen staff"""

from typing import List

from fastapi import APIRouter, Depends
import structlog

from canteen_api.api.deps import get_lifecycle, verify_admin_key
from canteen_api.api.orders import full_response
from canteen_api.errors import ValidationError
from canteen_api.schemas.order import ConfirmOrderRequest, ConfirmOrderResponse, OrderResponse
from canteen_api.services.lifecycle import OrderLifecycleManager

router = APIRouter(dependencies=[Depends(verify_admin_key)])
logger = structlog.get_logger()


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
):
    """List all orders, newest first"""
    orders = await lifecycle.list_orders()
    return [full_response(order) for order in orders]


@router.post("/admin/confirm-order", response_model=ConfirmOrderResponse)
async def confirm_order(
    request: ConfirmOrderRequest,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
):
    """Mark an order paid at the counter"""
    if not request.order_id:
        raise ValidationError("orderId required")

    order = await lifecycle.confirm_manually(request.order_id)
    logger.info("Order confirmed by admin", order_id=order.order_id)

    return ConfirmOrderResponse(order_id=order.order_id, status=order.status)
