"""Request-scoped access to the services built at startup"""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from canteen_api.container import Services
from canteen_api.services.lifecycle import OrderLifecycleManager
from canteen_api.services.otp import OtpService
from canteen_api.services.reconciler import WebhookReconciler

admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_lifecycle(services: Services = Depends(get_services)) -> OrderLifecycleManager:
    return services.lifecycle


def get_reconciler(services: Services = Depends(get_services)) -> WebhookReconciler:
    return services.reconciler


def get_otp_service(services: Services = Depends(get_services)) -> OtpService:
    return services.otp


async def verify_admin_key(
    api_key: str = Depends(admin_key_header),
    services: Services = Depends(get_services),
) -> bool:
    """Admin endpoints stay closed until an admin key is configured"""
    expected = services.settings.admin_api_key
    if not expected or not api_key or not secrets.compare_digest(
        api_key.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or missing X-Admin-Key header",
        )
    return True
