"""Razorpay webhook handler"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from canteen_api.api.deps import get_reconciler
from canteen_api.services.reconciler import WebhookReconciler

router = APIRouter()


@router.post("")
async def handle_razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(default=None),
    reconciler: WebhookReconciler = Depends(get_reconciler),
):
    """
    Verify and apply a Razorpay notification.

    The body is read as raw bytes and never re-serialised before the
    signature check. Any verified notification is acknowledged with 200;
    the status code says nothing about the business outcome.
    """
    raw_body = await request.body()
    await reconciler.handle(raw_body, x_razorpay_signature)
    return {"status": "ok"}
