"""Order lifecycle, payment and OTP services"""

from canteen_api.services.lifecycle import OrderLifecycleManager
from canteen_api.services.reconciler import WebhookReconciler, WebhookOutcome
from canteen_api.services.otp import OtpService
from canteen_api.services.gateway import PaymentGateway, PaymentIntent, RazorpayGateway

__all__ = [
    "OrderLifecycleManager",
    "WebhookReconciler",
    "WebhookOutcome",
    "OtpService",
    "PaymentGateway",
    "PaymentIntent",
    "RazorpayGateway",
]
