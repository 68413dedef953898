"""Pydantic schemas for request/response validation"""

from canteen_api.schemas.order import (
    LineItem,
    OrderCreate,
    OrderCreatedResponse,
    OrderStatusResponse,
    OrderResponse,
    PaymentInfo,
    ConfirmOrderRequest,
    ConfirmOrderResponse,
    PaymentIntentResponse,
)
from canteen_api.schemas.otp import (
    OtpRequest,
    OtpVerifyRequest,
    OtpSentResponse,
    OtpVerifiedResponse,
)

__all__ = [
    "LineItem",
    "OrderCreate",
    "OrderCreatedResponse",
    "OrderStatusResponse",
    "OrderResponse",
    "PaymentInfo",
    "ConfirmOrderRequest",
    "ConfirmOrderResponse",
    "PaymentIntentResponse",
    "OtpRequest",
    "OtpVerifyRequest",
    "OtpSentResponse",
    "OtpVerifiedResponse",
]
