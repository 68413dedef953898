"""Order schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LineItem(CamelModel):
    """Canonical order line item"""
    id: str
    name: str
    quantity: Union[int, float]
    # None for items from the legacy quantity map
    unit_price: Optional[Union[int, float]] = None


class OrderCreate(CamelModel):
    """
    Create order request.

    Field shapes are checked by the lifecycle manager so that every bad
    input is reported the same way.
    """
    canteen: Optional[str] = None
    items: Optional[Union[List[Any], Dict[str, Any]]] = None
    total_amount: Optional[Any] = None


class OrderCreatedResponse(CamelModel):
    order_id: str
    code: str
    canteen: str
    total_amount: float
    status: str
    expires_at: datetime


class OrderStatusResponse(CamelModel):
    order_id: str
    code: str
    canteen: str
    total_amount: float
    status: str
    expires_at: datetime
    paid_at: Optional[datetime] = None


class PaymentInfo(CamelModel):
    provider: Optional[str] = None
    method: Optional[str] = None
    intent_id: Optional[str] = None
    payment_id: Optional[str] = None


class OrderResponse(OrderStatusResponse):
    """Full order, used by the admin listing"""
    items: List[LineItem]
    currency: str
    created_at: datetime
    payment_info: PaymentInfo


class ConfirmOrderRequest(CamelModel):
    order_id: Optional[str] = None


class ConfirmOrderResponse(CamelModel):
    ok: bool = True
    order_id: str
    status: str


class PaymentIntentResponse(CamelModel):
    """Data the client needs to open the Razorpay checkout"""
    order_id: str
    provider: str
    intent_id: str
    amount: int
    currency: str
    key_id: str
