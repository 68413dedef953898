"""Persistence collaborators"""

from canteen_api.repositories.orders import OrderStore
from canteen_api.repositories.otp import OtpStore

__all__ = ["OrderStore", "OtpStore"]
