"""Database models"""

from canteen_api.models.order import Order, OrderStatus
from canteen_api.models.otp import OtpChallenge

__all__ = [
    "Order",
    "OrderStatus",
    "OtpChallenge",
]
